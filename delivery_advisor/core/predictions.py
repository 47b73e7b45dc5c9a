# delivery_advisor/core/predictions.py
"""
Prediction layer applied on top of the static carrier profiles:
    - Historical route statistics (transit time, on-time rate)
    - Weather impact at the destination
    - Seasonal slowdown factor
    - Damage risk for fragile parcels
    - Expected delivery dates
"""
import math
import re
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import requests

from .. import config, domain
from ..config import logger
from ..models import City, DeliveryDates, DeliveryOption, EstimatedDays, PackagingDetails, RouteHistory
from ..utils.api_client import WeatherAPIClient
from .carriers import delay_risk_for


def route_key(city: City, method: str) -> str:
    return f"{config.STUDIO_CITY.lower()}-{city.name.lower()}-{method}"


def calculate_seasonal_factor(when: datetime) -> float:
    return domain.SEASONAL_FACTORS[when.month]


def weather_impact_for_condition(condition: str) -> float:
    """Maps a forecast condition text (e.g. "Light snow") to an impact score from 0 to 100."""
    for pattern, impact in domain.WEATHER_CONDITION_IMPACTS:
        if re.search(pattern, condition):
            return impact
    return domain.DEFAULT_WEATHER_IMPACT


class WeatherImpactEstimator:
    """
    Estimates how much the weather at the destination will slow deliveries down.

    Uses the WeatherAPI forecast when a client is configured and falls back to the
    monthly climatology table otherwise, or when the forecast cannot be fetched.
    """

    def __init__(self, client: Optional[WeatherAPIClient] = None):
        self.client = client
        self._cache: Dict[str, float] = {}

    @classmethod
    def from_env(cls) -> "WeatherImpactEstimator":
        api_key = config.get_weather_api_key()
        return cls(WeatherAPIClient(api_key) if api_key else None)

    def estimate(self, city: City, when: datetime) -> float:
        if self.client is None:
            return domain.MONTHLY_WEATHER_IMPACT[when.month]

        cache_key = f"{city.name}-{when.date().isoformat()}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        location = f"{city.coordinates.lat},{city.coordinates.lng}"
        try:
            forecast = self.client.get_forecast(location)
            condition = forecast["forecast"]["forecastday"][0]["day"]["condition"]["text"]
        except (requests.exceptions.RequestException, KeyError, IndexError, TypeError) as e:
            logger.warning(f"Weather forecast unavailable for {city.name}, using climatology: {e}")
            return domain.MONTHLY_WEATHER_IMPACT[when.month]

        impact = weather_impact_for_condition(condition)
        self._cache[cache_key] = impact
        return impact


class PredictionEngine:
    """Enriches delivery options with predictions."""

    def __init__(self, history: Optional[Dict[str, RouteHistory]] = None, weather: Optional[WeatherImpactEstimator] = None):
        """
        Args:
            history: Route statistics keyed by `route_key`.
            weather: Weather impact estimator. Defaults to the climatology table.
        """
        self.history = history or {}
        self.weather = weather or WeatherImpactEstimator()

    def enhance_options(
        self, options: List[DeliveryOption], city: City, packaging: PackagingDetails, now: datetime
    ) -> List[DeliveryOption]:
        weather_impact = self.weather.estimate(city, now)
        seasonal_factor = calculate_seasonal_factor(now)
        return [
            self.enhance(option, city, packaging, now, weather_impact, seasonal_factor)
            for option in options
        ]

    def enhance(
        self,
        option: DeliveryOption,
        city: City,
        packaging: PackagingDetails,
        now: datetime,
        weather_impact: float,
        seasonal_factor: float,
    ) -> DeliveryOption:
        """Returns a copy of the option with predictions and delivery dates filled in."""
        option = option.model_copy(deep=True)

        historical = self.history.get(route_key(city, option.method))
        if historical:
            option.estimated_days = self.adjust_time_estimate(option.estimated_days, historical)
            option.predictions.on_time_probability = historical.on_time_rate

        option.predictions.delay_risk = delay_risk_for(option.predictions.on_time_probability)
        option.predictions.weather_impact = weather_impact
        option.predictions.seasonal_factor = seasonal_factor
        option.predictions.quality_risk = self.assess_quality_risk(packaging, option)
        option.delivery_dates = self.calculate_delivery_dates(option.estimated_days, seasonal_factor, now)
        return option

    @staticmethod
    def adjust_time_estimate(estimate: EstimatedDays, historical: RouteHistory) -> EstimatedDays:
        """Moves the most likely transit time up to the observed average when the route runs slower."""
        if historical.average_time <= estimate.most_likely:
            return estimate
        most_likely = math.ceil(historical.average_time)
        return EstimatedDays(min=estimate.min, max=max(estimate.max, most_likely), most_likely=most_likely)

    @staticmethod
    def assess_quality_risk(packaging: PackagingDetails, option: DeliveryOption) -> str:
        if packaging.is_fragile and option.provider not in ('nova-poshta', 'pickup'):
            return 'medium'
        return 'low'

    @staticmethod
    def calculate_delivery_dates(estimate: EstimatedDays, seasonal_factor: float, now: datetime) -> DeliveryDates:
        return DeliveryDates(
            earliest=now + timedelta(days=estimate.min * seasonal_factor),
            latest=now + timedelta(days=estimate.max * seasonal_factor),
            expected=now + timedelta(days=estimate.most_likely * seasonal_factor),
        )
