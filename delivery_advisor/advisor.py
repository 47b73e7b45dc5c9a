# delivery_advisor/advisor.py
"""
    Delivery Advisor: orchestrates packaging, carrier options, predictions,
    recommendation and risk analysis into a single delivery analysis.
"""
import time
from datetime import datetime
from typing import Dict, List, Optional

from . import config
from .config import logger
from .core.carriers import CarrierCatalog
from .core.cities import CityDirectory
from .core.history import RouteHistoryBuilder
from .core.packaging import PackagingAnalyzer
from .core.predictions import PredictionEngine, WeatherImpactEstimator
from .core.recommend import Recommender
from .core.risks import RiskAnalyzer
from .errors import CityNotFoundError
from .models import CartProject, DeliveryAnalysis, OrderQuote, RouteHistory, UserPreferences
from .payments import PaymentEngine
from .utils.api_client import NovaPoshtaAPIClient

MAX_ALTERNATIVES = 3


class DeliveryAdvisor:
    """Recommends how to ship an order and estimates what it will cost."""

    def __init__(
        self,
        cities: Optional[CityDirectory] = None,
        novaposhta_client: Optional[NovaPoshtaAPIClient] = None,
        history: Optional[Dict[str, RouteHistory]] = None,
        weather: Optional[WeatherImpactEstimator] = None,
        payment_engine: Optional[PaymentEngine] = None,
    ):
        self.cities = cities or CityDirectory()
        try:
            studio = self.cities.find_city(config.STUDIO_CITY)
        except CityNotFoundError:
            logger.warning(f"Studio city {config.STUDIO_CITY} is not in the city table, using its configured Nova Poshta ref.")
            studio = None
        self.packaging = PackagingAnalyzer()
        self.carriers = CarrierCatalog(novaposhta_client, sender_city=studio)
        self.predictions = PredictionEngine(history, weather)
        self.recommender = Recommender()
        self.risks = RiskAnalyzer()
        self.payments = payment_engine or PaymentEngine()

    @classmethod
    def from_env(cls, cities: Optional[CityDirectory] = None) -> "DeliveryAdvisor":
        """
        Builds an advisor configured from the environment:
        Nova Poshta and WeatherAPI keys, and the route history file when set.

        Args:
            cities: The destination table. Defaults to the built-in cities.
        """
        history = None
        history_path = config.get_history_path()
        if history_path:
            history = RouteHistoryBuilder().load(history_path)
        return cls(
            cities=cities,
            novaposhta_client=NovaPoshtaAPIClient(),
            history=history,
            weather=WeatherImpactEstimator.from_env(),
        )

    def analyze_delivery(
        self,
        projects: List[CartProject],
        destination_city: str,
        preferences: Optional[UserPreferences] = None,
        now: Optional[datetime] = None,
    ) -> DeliveryAnalysis:
        """
        Runs the full analysis for an order.

        Steps:
        1. Builds the packaging profile of the projects.
        2. Enumerates the delivery options for the destination.
        3. Applies predictions to every option.
        4. Picks the recommended option.
        5. Analyzes the shipment risks.
        6. Generates optimization suggestions.

        Args:
            projects: The projects of the order.
            destination_city: The destination, English or Ukrainian name.
            preferences: Budget, speed and reliability preferences. Defaults to all "medium".
            now: Reference time for seasons and dates. Defaults to the current time.
        """
        start_time = time.perf_counter()
        preferences = preferences or UserPreferences()
        now = now or datetime.now()

        city = self.cities.find_city(destination_city)
        logger.info(f"Analyzing delivery of {len(projects)} project(s) to {city.name}...")

        packaging = self.packaging.analyze(projects)
        options = self.carriers.get_delivery_options(city, packaging)
        analyzed_options = self.predictions.enhance_options(options, city, packaging, now)

        recommended = self.recommender.select(analyzed_options, preferences)
        risk_analysis = self.risks.analyze(city, packaging, now)
        optimizations = self.recommender.generate_optimizations(recommended, analyzed_options)

        analysis = DeliveryAnalysis(
            destination=city,
            packaging=packaging,
            recommended=recommended,
            recommendation_reasons=self.recommender.generate_reasons(recommended, analyzed_options),
            confidence_score=self.recommender.calculate_confidence(recommended, risk_analysis),
            alternatives=[option for option in analyzed_options if option is not recommended][:MAX_ALTERNATIVES],
            risk_analysis=risk_analysis,
            optimizations=optimizations,
        )

        duration = time.perf_counter() - start_time
        logger.info(
            f"Recommended '{recommended.method}' ({recommended.total_cost:.2f} UAH) "
            f"out of {len(analyzed_options)} options in {duration:.3f} seconds."
        )
        return analysis

    def quote_order(
        self,
        projects: List[CartProject],
        destination_city: str,
        payment_method: str,
        preferences: Optional[UserPreferences] = None,
        now: Optional[datetime] = None,
    ) -> OrderQuote:
        """Prices the order with the recommended delivery and the payment method's fee."""
        analysis = self.analyze_delivery(projects, destination_city, preferences, now)
        delivery = analysis.recommended

        subtotal = sum(project.current_price for project in projects)
        payable = subtotal + delivery.total_cost
        payment = self.payments.calculate_total_cost(payment_method, payable, now=now)

        return OrderQuote(
            subtotal=subtotal,
            delivery_method=delivery.method,
            delivery_fee=delivery.base_cost + delivery.handling_fee,
            packaging_fee=delivery.packaging_cost,
            insurance_fee=delivery.insurance_cost,
            payment_method=payment_method,
            payment_fee=payment.fee,
            savings=payment.savings or 0.0,
            total=payment.total,
            estimated_delivery=delivery.delivery_dates.expected if delivery.delivery_dates else None,
        )
