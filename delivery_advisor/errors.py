# delivery_advisor/errors.py
"""
Exceptions raised by the Delivery Advisor.
"""


class DeliveryAdvisorError(Exception):
    """Base class for all domain errors."""


class EmptyOrderError(DeliveryAdvisorError):
    """Raised when a delivery is analyzed for an order without projects."""


class CityNotFoundError(DeliveryAdvisorError):
    """Raised when the destination city is not in the reference data."""

    def __init__(self, city_name: str):
        super().__init__(f"City {city_name} not found")
        self.city_name = city_name


class NoDeliveryOptionsError(DeliveryAdvisorError):
    """Raised when every carrier rejects the parcel."""


class PaymentMethodNotFoundError(DeliveryAdvisorError):
    """Raised for an unknown payment method id."""

    def __init__(self, method: str):
        super().__init__(f"Payment method {method} not found")
        self.method = method


class NovaPoshtaAPIError(DeliveryAdvisorError):
    """Raised when the Nova Poshta API answers with success set to false."""


class NovaPoshtaOfflineError(DeliveryAdvisorError):
    """Raised for calls that need a live Nova Poshta API key when none is configured."""
