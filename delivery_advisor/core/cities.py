# delivery_advisor/core/cities.py
"""
City reference data: loading and lookup of delivery destinations.
"""
import os
from typing import List, Optional

import polars as pl

from .. import domain
from ..errors import CityNotFoundError
from ..models import City, CityLogistics, Coordinates
from ..sources import readers

CITY_COLUMNS = [
    "ref", "name", "name_ua", "region", "region_ua", "population", "lat", "lng",
    "is_regional_center", "has_nova_poshta_hub", "average_delivery_days",
    "courier_available", "warehouse_count", "last_mile_quality",
]


class CityDirectory:
    """Holds the destinations the studio ships to and resolves city names."""

    def __init__(self, cities: Optional[pl.DataFrame] = None):
        """
        Args:
            cities: A flat table with the columns of `CITY_COLUMNS`. Defaults to the built-in list.
        """
        if cities is None:
            cities = pl.from_dicts(domain.CITIES)
        missing = [col for col in CITY_COLUMNS if col not in cities.columns]
        if missing:
            raise ValueError(f"City table is missing columns: {', '.join(missing)}")
        self.table = cities.select(CITY_COLUMNS)
        self._cities = [self._to_model(row) for row in self.table.iter_rows(named=True)]

    @classmethod
    def from_file(cls, path: str) -> "CityDirectory":
        """Loads the city table from a csv, json, parquet or xlsx file."""
        if not os.path.exists(path):
            raise FileNotFoundError(f"City file not found at path: {path}")
        return cls(readers.read_table(path))

    @property
    def cities(self) -> List[City]:
        return list(self._cities)

    def find_city(self, city_name: str) -> City:
        """
        Finds a city by its English or Ukrainian name, case-insensitively.
        Legacy spellings (e.g. "Kiev") are resolved through `domain.CITY_ALIASES`.

        Raises:
            CityNotFoundError: When no city matches.
        """
        needle = city_name.strip().lower()
        needle = domain.CITY_ALIASES.get(needle, needle).lower()
        for city in self._cities:
            if city.name.lower() == needle or city.name_ua.lower() == needle:
                return city
        raise CityNotFoundError(city_name)

    @staticmethod
    def _to_model(row: dict) -> City:
        return City(
            ref=row["ref"],
            name=row["name"],
            name_ua=row["name_ua"],
            region=row["region"],
            region_ua=row["region_ua"],
            population=row["population"],
            coordinates=Coordinates(lat=row["lat"], lng=row["lng"]),
            logistics=CityLogistics(
                is_regional_center=row["is_regional_center"],
                has_nova_poshta_hub=row["has_nova_poshta_hub"],
                average_delivery_days=row["average_delivery_days"],
                courier_available=row["courier_available"],
                warehouse_count=row["warehouse_count"],
                last_mile_quality=row["last_mile_quality"],
            ),
        )
