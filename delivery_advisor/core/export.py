# delivery_advisor/core/export.py
"""
Tabular exports of analyses and route history, with a metadata manifest per run.
"""
import os
import json
from datetime import datetime, timezone
from typing import List, Optional

import polars as pl

from ..config import logger
from ..models import DeliveryAnalysis
from ..sources import writers


def options_table(analysis: DeliveryAnalysis) -> pl.DataFrame:
    """Flattens the recommended option and its alternatives into one row per option."""
    rows = []
    for i, option in enumerate([analysis.recommended] + analysis.alternatives):
        dates = option.delivery_dates
        rows.append({
            "Destination": analysis.destination.name,
            "Method": option.method,
            "Provider": option.provider,
            "Recommended": i == 0,
            "Base_Cost": float(option.base_cost),
            "Insurance_Cost": float(option.insurance_cost),
            "Packaging_Cost": float(option.packaging_cost),
            "Handling_Fee": float(option.handling_fee),
            "Total_Cost": round(float(option.total_cost), 2),
            "Min_Days": option.estimated_days.min,
            "Max_Days": option.estimated_days.max,
            "Most_Likely_Days": option.estimated_days.most_likely,
            "Expected_Date": dates.expected if dates else None,
            "On_Time_Probability": float(option.predictions.on_time_probability),
            "Delay_Risk": option.predictions.delay_risk,
            "Quality_Risk": option.predictions.quality_risk,
            "Weather_Impact": float(option.predictions.weather_impact),
            "Seasonal_Factor": float(option.predictions.seasonal_factor),
            "Carbon_Footprint_Kg": round(float(option.sustainability.carbon_footprint), 3),
        })
    return pl.from_dicts(rows)


class Exporter:
    """
    Handles writing result tables to their destination.
    This includes writing to various file formats and generating a metadata manifest.
    """

    def __init__(self, config: dict):
        """
        Initializes the Exporter with the run configuration.

        Args:
            config: The run configuration dictionary; `config["output"]` holds `path` and `format`.
        """
        self.config = config

    def export_analysis(self, analysis: DeliveryAnalysis) -> List[str]:
        """Writes the options table of an analysis and returns the written paths."""
        return self.export_table(options_table(analysis), extra={
            "destination": analysis.destination.name,
            "recommended": analysis.recommended.method,
            "confidence_score": analysis.confidence_score,
        })

    def export_table(self, df: pl.DataFrame, base_path: Optional[str] = None, extra: Optional[dict] = None) -> List[str]:
        """
        Saves the DataFrame to file(s) and generates a manifest.

        With the "preview" format nothing is written.

        Args:
            df: The table to write.
            base_path: Overrides the configured output path (without extension).
            extra: Additional fields for the manifest.
        """
        output_conf = self.config.get("output", {})
        output_format = output_conf.get("format", "preview")
        base_path = base_path or output_conf.get("path", "output/default_name")

        if output_format == "preview":
            return []

        out_dir = os.path.dirname(base_path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)

        written = []
        for fmt in self._get_formats_to_write(output_format):
            writer_class = writers.WRITER_MAP.get(fmt)
            if not writer_class:
                raise ValueError(f"Unsupported output format: {fmt}")
            written.append(writer_class(base_path).write(df))

        written.append(self._generate_manifest(df, base_path, output_format, extra or {}))
        return written

    @staticmethod
    def _get_formats_to_write(format_str: str) -> List[str]:
        """
        Determines which writers to use based on the format string.

        Args:
            format_str: The format string from the configuration (e.g., "csv", "all").

        Returns:
            A list of format keys to be written.
        """
        if format_str == "all":
            return list(writers.WRITER_MAP)
        if format_str == "all_but_xlsx":
            return [f for f in writers.WRITER_MAP if f != "xlsx"]

        return [format_str]

    def _generate_manifest(self, df: pl.DataFrame, base_path: str, output_format: str, extra: dict) -> str:
        """
        Generates a JSON manifest file with metadata about the run.

        Returns:
            The manifest path.
        """
        manifest_path = f"{base_path}_manifest.json"
        logger.info(f"Generating metadata manifest at {manifest_path}...")

        manifest_data = {
            "polars_version": pl.__version__,
            "run_timestamp_utc": datetime.now(timezone.utc).isoformat(),
            "output_config": {"path": base_path, "format": output_format},
            "dataset_shape": {"rows": df.height, "columns": df.width},
            "columns": df.columns,
            **extra,
        }

        with open(manifest_path, 'w', encoding="utf-8") as f:
            json.dump(manifest_data, f, indent=4, default=str)
        return manifest_path
