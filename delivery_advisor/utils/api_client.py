# delivery_advisor/utils/api_client.py
"""
HTTP clients for the carrier and weather APIs.
"""
import math
from typing import Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from .. import config, domain
from ..errors import NovaPoshtaAPIError

_retry_on_network_error = retry(
    stop=stop_after_attempt(3),
    wait=wait_fixed(2),
    retry=retry_if_exception_type(requests.exceptions.RequestException),
    reraise=True,
)


def round_half_up(value: float) -> int:
    """Rounds to the nearest integer, halves going up (the way carrier tariffs are rounded)."""
    return math.floor(value + 0.5)


class NovaPoshtaAPIClient:
    """
    A client for the Nova Poshta JSON API.

    Every call is a POST of {apiKey, modelName, calledMethod, methodProperties}.
    Without a real API key, `calculate_cost` falls back to the offline tariff.
    """
    BASE_URL = config.NOVA_POSHTA_API_URL

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else config.get_nova_poshta_api_key()
        self._city_refs = {}

    @property
    def is_live(self) -> bool:
        return self.api_key not in config.NOVA_POSHTA_DEMO_KEYS

    @_retry_on_network_error
    def _request(self, model_name: str, called_method: str, method_properties: Optional[dict] = None) -> list:
        """
        Sends one API call and unwraps its `data` payload.
        Retries up to 3 times in case of transient network errors.

        Raises:
            NovaPoshtaAPIError: When the API reports a failure.
        """
        payload = {
            "apiKey": self.api_key,
            "modelName": model_name,
            "calledMethod": called_method,
            "methodProperties": method_properties or {},
        }
        response = requests.post(self.BASE_URL, json=payload, timeout=config.REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
        data = response.json()

        errors = data.get("errors") or []
        if not data.get("success") or errors:
            config.logger.error(f"Nova Poshta {model_name}.{called_method} failed: {errors}")
            raise NovaPoshtaAPIError(errors[0] if errors else "Nova Poshta API error")

        return data.get("data", [])

    def search_cities(self, city_name: str, limit: int = 20) -> list:
        return self._request("Address", "searchSettlements", {"CityName": city_name, "Limit": limit})

    def get_cities(self, city_name: str) -> list:
        return self._request("Address", "getCities", {"FindByString": city_name})

    def resolve_city_ref(self, city_name: str) -> str:
        """
        Returns the Nova Poshta ref of a city, looked up by name once per client.
        An exact name match is preferred over the first partial match.

        Raises:
            NovaPoshtaAPIError: When Nova Poshta knows no city by that name.
        """
        key = city_name.strip().lower()
        if key not in self._city_refs:
            matches = self.get_cities(city_name)
            if not matches:
                raise NovaPoshtaAPIError(f"Nova Poshta has no city named {city_name}")
            exact = [match for match in matches if str(match.get("Description", "")).lower() == key]
            self._city_refs[key] = (exact or matches)[0]["Ref"]
        return self._city_refs[key]

    def get_warehouses(self, city_ref: str, type_of_warehouse: Optional[str] = None) -> list:
        properties = {"CityRef": city_ref}
        if type_of_warehouse:
            properties["TypeOfWarehouseRef"] = type_of_warehouse
        return self._request("Address", "getWarehouses", properties)

    def calculate_delivery(
        self,
        city_sender: str,
        city_recipient: str,
        weight: float,
        service_type: str,
        cost: float,
        cargo_type: str = "Cargo",
        seats_amount: int = 1,
    ) -> dict:
        """
        Prices a shipment with `InternetDocument.getDocumentPrice`.

        Returns:
            The first result row (keys `Cost`, `AssessedCost`, `CostPack`, ...).
        """
        result = self._request("InternetDocument", "getDocumentPrice", {
            "CitySender": city_sender,
            "CityRecipient": city_recipient,
            "Weight": weight,
            "ServiceType": service_type,
            "Cost": cost,
            "CargoType": cargo_type,
            "SeatsAmount": seats_amount,
        })
        if not result:
            raise NovaPoshtaAPIError("Empty price calculation")
        return result[0]

    def track_document(self, document_number: str) -> list:
        return self._request("TrackingDocument", "getStatusDocuments", {
            "Documents": [{"DocumentNumber": document_number}]
        })

    def calculate_cost(
        self,
        city_sender: str,
        city_recipient: str,
        weight: float,
        service_type: str,
        declared_value: float = 0.0,
    ) -> float:
        """
        Returns the delivery cost in UAH for a parcel.

        Uses the live API when a key is configured, otherwise the offline tariff:
        45 UAH per billed kg (at least one), x1.5 for door delivery.
        """
        if self.is_live:
            calculation = self.calculate_delivery(
                city_sender, city_recipient, weight, service_type, max(declared_value, 1)
            )
            return float(calculation["Cost"])

        weight_multiplier = max(1, weight)
        service_multiplier = domain.NOVA_POSHTA_DOOR_MULTIPLIER if service_type == "WarehouseDoors" else 1.0
        return round_half_up(domain.NOVA_POSHTA_BASE_RATE * weight_multiplier * service_multiplier)


class WeatherAPIClient:
    """A client for fetching weather forecasts from WeatherAPI."""
    BASE_URL = config.WEATHERAPI_FORECAST_URL

    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("API key cannot be empty.")
        self.api_key = api_key

    @_retry_on_network_error
    def get_forecast(self, location: str, days: int = 1) -> dict:
        """
        Fetches the forecast for a location.
        Retries up to 3 times in case of transient network errors.

        Args:
            location: The location query (e.g., "Lviv" or "49.84,24.03").
            days: Number of forecast days.

        Returns:
            A dictionary containing the API response.
        """
        params = {
            "key": self.api_key,
            "q": location,
            "days": days,
        }
        response = requests.get(self.BASE_URL, params=params, timeout=config.REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
        return response.json()
