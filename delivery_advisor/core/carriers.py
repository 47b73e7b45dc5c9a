# delivery_advisor/core/carriers.py
"""
Delivery option enumeration:
    - Which carriers serve the destination
    - Cost breakdown per carrier (tariff, insurance, packaging, handling)
    - Static service profile (timing, convenience, restrictions, footprint)
    - Eligibility of the parcel against each carrier's limits
"""
import math
from typing import List, Optional

from .. import config, domain
from ..config import logger
from ..errors import NoDeliveryOptionsError
from ..models import (
    City, Convenience, DeliveryLocation, DeliveryOption, EstimatedDays, MaxDimensions,
    PackagingDetails, Predictions, Restrictions, Sustainability,
)
from ..utils.api_client import NovaPoshtaAPIClient

EARTH_RADIUS_KM = 6371


def calculate_distance(from_lat: float, from_lng: float, to_lat: float, to_lng: float) -> float:
    """Great-circle distance in km (haversine)."""
    d_lat = math.radians(to_lat - from_lat)
    d_lng = math.radians(to_lng - from_lng)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(from_lat)) * math.cos(math.radians(to_lat)) * math.sin(d_lng / 2) ** 2)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def calculate_carbon_footprint(city: City, shipping_weight: float) -> float:
    """kg of CO2 to move the parcel from the studio to the city."""
    studio_lat, studio_lng = config.STUDIO_COORDINATES
    distance = calculate_distance(studio_lat, studio_lng, city.coordinates.lat, city.coordinates.lng)
    return (distance * shipping_weight * domain.CO2_PER_KM_KG) / 1000


def delay_risk_for(on_time_probability: float) -> str:
    if on_time_probability >= 80:
        return 'low'
    if on_time_probability >= 65:
        return 'medium'
    return 'high'


class CarrierCatalog:
    """Builds the delivery options a destination can be served with."""

    def __init__(self, novaposhta_client: Optional[NovaPoshtaAPIClient] = None, sender_city: Optional[City] = None):
        """
        Args:
            novaposhta_client: Client used for Nova Poshta tariffs. Defaults to one configured from the environment.
            sender_city: The studio city. Defaults to the Nova Poshta ref in `config.STUDIO_CITY_REF`.
        """
        self.novaposhta = novaposhta_client or NovaPoshtaAPIClient()
        self.sender_city = sender_city

    def get_delivery_options(self, city: City, packaging: PackagingDetails) -> List[DeliveryOption]:
        """
        Enumerates the options for the city, in a fixed order:
        Nova Poshta warehouse, Nova Poshta courier, Ukrposhta, studio pickup.

        Raises:
            NoDeliveryOptionsError: When the parcel exceeds every carrier's limits.
        """
        methods = []
        if city.logistics.warehouse_count > 0:
            methods.append('nova-poshta-warehouse')
        if city.logistics.courier_available:
            methods.append('nova-poshta-courier')
        methods.append('ukrposhta')
        if self.is_local_delivery_available(city):
            methods.append('pickup')

        options = []
        for method in methods:
            option = self.build_option(method, city, packaging)
            if self.fits_restrictions(packaging, option.restrictions):
                options.append(option)
            else:
                logger.info(f"Parcel exceeds the limits of '{method}', option skipped.")

        if not options:
            raise NoDeliveryOptionsError(
                f"No carrier accepts a {packaging.dimensions.weight:.1f} kg parcel to {city.name}."
            )
        return options

    @staticmethod
    def is_local_delivery_available(city: City) -> bool:
        return city.name.lower() == config.STUDIO_CITY.lower()

    @staticmethod
    def fits_restrictions(packaging: PackagingDetails, restrictions: Restrictions) -> bool:
        """Checks physical weight and the parcel's sides against the carrier limits, in any orientation."""
        if packaging.dimensions.weight > restrictions.max_weight:
            return False
        parcel_sides = sorted([packaging.dimensions.width, packaging.dimensions.height, packaging.dimensions.depth])
        limit = restrictions.max_dimensions
        limit_sides = sorted([limit.width, limit.height, limit.depth])
        return all(side <= max_side for side, max_side in zip(parcel_sides, limit_sides))

    def build_option(self, method: str, city: City, packaging: PackagingDetails) -> DeliveryOption:
        profile = domain.CARRIER_PROFILES[method]

        base_cost = self._base_cost(method, city, packaging)
        insurance_cost = packaging.total_value * domain.INSURANCE_RATE if profile['insured'] else 0.0
        packaging_cost = packaging.packaging_cost * profile['packaging_multiplier']
        handling_fee = profile['handling_fee']

        if 'fixed_days' in profile:
            days_min, days_max, days_likely = profile['fixed_days']
        else:
            average = city.logistics.average_delivery_days
            offset_min, offset_max, offset_likely = profile['days_offset']
            days_min, days_max, days_likely = average + offset_min, average + offset_max, average + offset_likely

        if profile['carbon_multiplier']:
            carbon = calculate_carbon_footprint(city, packaging.shipping_weight) * profile['carbon_multiplier']
        else:
            carbon = 0.0

        width, height, depth = profile['max_dimensions']
        return DeliveryOption(
            method=method,
            provider=profile['provider'],
            base_cost=base_cost,
            insurance_cost=insurance_cost,
            packaging_cost=packaging_cost,
            handling_fee=handling_fee,
            total_cost=base_cost + insurance_cost + packaging_cost + handling_fee,
            estimated_days=EstimatedDays(min=days_min, max=days_max, most_likely=days_likely),
            predictions=Predictions(
                on_time_probability=profile['on_time_probability'],
                delay_risk=delay_risk_for(profile['on_time_probability']),
                quality_risk='low',
                weather_impact=0,
                seasonal_factor=1.0,
            ),
            convenience=Convenience(
                tracking_quality=profile['tracking_quality'],
                customer_service=profile['customer_service'],
                delivery_flexibility=profile['delivery_flexibility'],
                return_policy=profile['return_policy'],
            ),
            restrictions=Restrictions(
                max_weight=profile['max_weight'],
                max_dimensions=MaxDimensions(width=width, height=height, depth=depth),
            ),
            delivery_location=DeliveryLocation(
                type=profile['location_type'],
                address=config.STUDIO_CITY if method == 'pickup' else city.name,
            ),
            sustainability=Sustainability(
                carbon_footprint=carbon,
                packaging_recyclable=profile['packaging_recyclable'],
                route_optimization=profile['route_optimization'],
            ),
        )

    def _base_cost(self, method: str, city: City, packaging: PackagingDetails) -> float:
        profile = domain.CARRIER_PROFILES[method]
        if profile['provider'] == 'nova-poshta':
            return self.novaposhta.calculate_cost(
                city_sender=self._sender_ref(),
                city_recipient=self._nova_poshta_ref(city),
                weight=packaging.shipping_weight,
                service_type=profile['service_type'],
                declared_value=packaging.total_value,
            )
        if method == 'ukrposhta':
            return max(domain.UKRPOSHTA_MIN_COST, packaging.shipping_weight * domain.UKRPOSHTA_RATE_PER_KG)
        return 0.0

    def _nova_poshta_ref(self, city: City) -> str:
        """The live API is asked for the ref by Ukrainian name; table refs are only used offline."""
        if self.novaposhta.is_live:
            return self.novaposhta.resolve_city_ref(city.name_ua)
        return city.ref

    def _sender_ref(self) -> str:
        if self.sender_city is None:
            return config.STUDIO_CITY_REF
        return self._nova_poshta_ref(self.sender_city)
