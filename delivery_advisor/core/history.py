# delivery_advisor/core/history.py
"""
Route history:
    - Synthetic delivery record generation (bootstrap and demos)
    - Delivery status (On-time or Delayed) against the promised transit time
    - Aggregation into per-route statistics and monthly transit variations
    - Loading statistics from raw records or pre-aggregated files
"""
import os
from typing import Dict, List, Optional

import numpy as np
import polars as pl
from faker import Faker

from .. import config, domain
from ..config import logger
from ..models import RouteHistory
from ..sources import readers

RECORD_COLUMNS = [
    "Delivery_ID", "Pickup_DateTime", "Destination", "Method",
    "Promised_Days", "Transit_Days", "Damaged", "Satisfaction",
]


class RouteHistoryBuilder:
    """Builds per-route delivery statistics from delivery records."""

    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed: Seed for the synthetic generator, for reproducible records.
        """
        self._rng = np.random.default_rng(seed)
        self._fake = Faker()
        if seed is not None:
            self._fake.seed_instance(seed)

    def generate_records(self, num_rows: int, progress=None, task_id=None) -> pl.DataFrame:
        """
        Generates synthetic delivery records in chunks to provide real-time progress.

        Routes are drawn among the methods each built-in city is served with. Late parcels
        are drawn from the carrier's on-time probability.

        Args:
            num_rows: The total number of records to generate.
            progress: A rich.progress object for updating the progress bar.
            task_id: The ID of the progress bar task to update.

        Returns:
            A Polars DataFrame with the columns of `RECORD_COLUMNS`.
        """
        routes = self._available_routes()
        all_data_chunks = []
        CHUNK_SIZE = 10000

        for i in range(0, num_rows, CHUNK_SIZE):
            current_chunk_size = min(CHUNK_SIZE, num_rows - i)

            route_idx = self._rng.integers(0, len(routes), current_chunk_size)
            chosen = [routes[idx] for idx in route_idx]
            promised = np.array([route["promised_days"] for route in chosen])
            delay_probability = np.array([1 - route["on_time"] / 100 for route in chosen])
            damage_rate = np.array([route["damage_rate"] for route in chosen])

            is_late = self._rng.random(current_chunk_size) < delay_probability
            delays = self._rng.integers(1, domain.MAX_GENERATED_DELAY_DAYS + 1, current_chunk_size)
            transit = promised + np.where(is_late, delays, 0)
            damaged = self._rng.random(current_chunk_size) < damage_rate
            satisfaction = np.where(
                damaged, 1,
                np.where(is_late, self._rng.integers(2, 5, current_chunk_size), self._rng.integers(4, 6, current_chunk_size))
            )

            data_chunk = {
                "Delivery_ID": [f"DA{100000 + i + j}" for j in range(current_chunk_size)],
                "Pickup_DateTime": [
                    self._fake.date_time_between(start_date=f"-{config.HISTORY_LOOKBACK_DAYS}d", end_date="now")
                    for _ in range(current_chunk_size)
                ],
                "Destination": [route["destination"] for route in chosen],
                "Method": [route["method"] for route in chosen],
                "Promised_Days": promised,
                "Transit_Days": transit,
                "Damaged": damaged,
                "Satisfaction": satisfaction,
            }
            all_data_chunks.append(pl.from_dict(data_chunk))

            if progress and task_id is not None:
                progress.update(task_id, advance=current_chunk_size)

        return pl.concat(all_data_chunks)

    @staticmethod
    def _available_routes() -> List[dict]:
        routes = []
        for city in domain.CITIES:
            for method, profile in domain.CARRIER_PROFILES.items():
                if method == 'pickup' and city["name"].lower() != config.STUDIO_CITY.lower():
                    continue
                if method == 'nova-poshta-courier' and not city["courier_available"]:
                    continue
                if 'fixed_days' in profile:
                    promised_days = profile['fixed_days'][2]
                else:
                    promised_days = city["average_delivery_days"] + profile['days_offset'][2]
                routes.append({
                    "destination": city["name"],
                    "method": method,
                    "promised_days": promised_days,
                    "on_time": profile['on_time_probability'],
                    "damage_rate": domain.HISTORY_DAMAGE_RATES.get(method, 0.0),
                })
        return routes

    def transform(self, records: pl.DataFrame) -> pl.DataFrame:
        """
        Adds the route key, the pickup month and the delivery status.

        A delivery is "Delayed" when its transit time exceeds the promised time.
        """
        missing = [col for col in RECORD_COLUMNS if col not in records.columns]
        if missing:
            raise ValueError(f"Delivery records are missing columns: {', '.join(missing)}")

        if records.schema["Pickup_DateTime"] == pl.Utf8:
            records = records.with_columns(pl.col("Pickup_DateTime").str.to_datetime())

        status_expr = (
            pl.when(pl.col("Transit_Days") > pl.col("Promised_Days"))
            .then(pl.lit("Delayed"))
            .otherwise(pl.lit("On-time"))
            .alias("Status")
        )
        return records.with_columns(
            pl.concat_str([
                pl.lit(f"{config.STUDIO_CITY.lower()}-"),
                pl.col("Destination").str.to_lowercase(),
                pl.lit("-"),
                pl.col("Method"),
            ]).alias("Route"),
            pl.col("Pickup_DateTime").dt.month().alias("Month"),
            status_expr,
        )

    @staticmethod
    def aggregate(transformed: pl.DataFrame) -> pl.DataFrame:
        """Summarizes transformed records into one row of statistics per route."""
        return (
            transformed.group_by("Route")
            .agg(
                pl.col("Transit_Days").cast(pl.Float64).mean().round(2).alias("Average_Time"),
                ((pl.col("Status") == "On-time").cast(pl.Float64).mean() * 100).round(2).alias("On_Time_Rate"),
                (pl.col("Damaged").cast(pl.Float64).mean() * 100).round(2).alias("Damage_Rate"),
                pl.col("Satisfaction").cast(pl.Float64).mean().round(2).alias("Customer_Satisfaction"),
                pl.col("Pickup_DateTime").max().alias("Last_Updated"),
            )
            .sort("Route")
        )

    @staticmethod
    def seasonal_variations(transformed: pl.DataFrame) -> Dict[str, Dict[str, float]]:
        """Average transit days per route and pickup month (months as "1".."12")."""
        monthly = (
            transformed.group_by(["Route", "Month"])
            .agg(pl.col("Transit_Days").cast(pl.Float64).mean().round(2).alias("Average_Time"))
            .sort(["Route", "Month"])
        )
        variations: Dict[str, Dict[str, float]] = {}
        for row in monthly.iter_rows(named=True):
            variations.setdefault(row["Route"], {})[str(row["Month"])] = row["Average_Time"]
        return variations

    @staticmethod
    def to_history(stats: pl.DataFrame, variations: Optional[Dict[str, Dict[str, float]]] = None) -> Dict[str, RouteHistory]:
        variations = variations or {}
        history = {}
        for row in stats.iter_rows(named=True):
            history[row["Route"]] = RouteHistory(
                route=row["Route"],
                average_time=row["Average_Time"],
                on_time_rate=row["On_Time_Rate"],
                damage_rate=row["Damage_Rate"],
                customer_satisfaction=row["Customer_Satisfaction"],
                seasonal_variations=variations.get(row["Route"], {}),
                last_updated=row.get("Last_Updated"),
            )
        return history

    def build(self, records: pl.DataFrame) -> Dict[str, RouteHistory]:
        """Runs transform and aggregation over raw records."""
        if records.is_empty():
            return {}
        transformed = self.transform(records)
        history = self.to_history(self.aggregate(transformed), self.seasonal_variations(transformed))
        logger.info(f"Built statistics for {len(history)} routes from {records.height:,} deliveries.")
        return history

    def load(self, path: str) -> Dict[str, RouteHistory]:
        """
        Loads route statistics from a file holding either raw delivery records
        or statistics already aggregated by `aggregate`.
        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"History file not found at path: {path}")
        df = readers.read_table(path)
        if "Average_Time" in df.columns:
            history = self.to_history(df)
            logger.info(f"Loaded statistics for {len(history)} routes from '{path}'.")
            return history
        return self.build(df)
