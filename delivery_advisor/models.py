# delivery_advisor/models.py
"""
Data models shared by the advisor, the payment engine, the CLI and the HTTP API.
"""
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

Level = Literal["low", "medium", "high"]
Quality = Literal["excellent", "good", "average", "poor"]
DeliveryMethod = Literal["nova-poshta-warehouse", "nova-poshta-courier", "ukrposhta", "justin", "pickup", "international"]
Provider = Literal["nova-poshta", "ukrposhta", "justin", "meest", "pickup"]


# --- Order input ---

class CartProject(BaseModel):
    """A configured print project waiting in the cart."""
    id: str
    product_type: str
    width: float = Field(gt=0)  # cm
    height: float = Field(gt=0)  # cm
    depth: Optional[float] = Field(default=None, gt=0)  # mm
    quantity: int = Field(default=1, ge=1)
    current_price: float = Field(default=0.0, ge=0)


class UserPreferences(BaseModel):
    budget: Level = "medium"
    speed: Level = "medium"
    reliability: Level = "medium"


# --- Geography ---

class Coordinates(BaseModel):
    lat: float
    lng: float


class CityLogistics(BaseModel):
    is_regional_center: bool
    has_nova_poshta_hub: bool
    average_delivery_days: int
    courier_available: bool
    warehouse_count: int
    last_mile_quality: Quality


class City(BaseModel):
    ref: str
    name: str
    name_ua: str
    region: str
    region_ua: str
    population: int
    coordinates: Coordinates
    logistics: CityLogistics


# --- Packaging ---

class Dimensions(BaseModel):
    width: float  # cm
    height: float  # cm
    depth: float  # cm
    weight: float  # kg


class ContentType(BaseModel):
    type: str
    quantity: int
    is_fragile: bool
    requires_special_handling: bool
    value: float


class PackagingRequirements(BaseModel):
    reinforcement: Literal["none", "light", "medium", "heavy"]
    fragile_stickers: bool
    moisture_protection: bool
    temperature_control: bool


class PackagingDetails(BaseModel):
    dimensions: Dimensions
    content_types: List[ContentType]
    packaging_requirements: PackagingRequirements
    volumetric_weight: float
    shipping_weight: float  # max(physical, volumetric)
    packaging_cost: float

    @property
    def is_fragile(self) -> bool:
        return any(content.is_fragile for content in self.content_types)

    @property
    def total_value(self) -> float:
        return sum(content.value for content in self.content_types)


# --- Delivery options ---

class EstimatedDays(BaseModel):
    min: int
    max: int
    most_likely: int


class DeliveryDates(BaseModel):
    earliest: datetime
    latest: datetime
    expected: datetime


class Predictions(BaseModel):
    on_time_probability: float  # 0-100
    delay_risk: Level
    quality_risk: Level
    weather_impact: float  # 0-100
    seasonal_factor: float


class Convenience(BaseModel):
    tracking_quality: Quality
    customer_service: float  # 0-5
    delivery_flexibility: float  # 0-100
    return_policy: Literal["easy", "moderate", "difficult"]


class MaxDimensions(BaseModel):
    width: float
    height: float
    depth: float


class Restrictions(BaseModel):
    max_weight: float
    max_dimensions: MaxDimensions
    prohibited_items: List[str] = []
    special_requirements: List[str] = []


class DeliveryLocation(BaseModel):
    type: Literal["warehouse", "postoffice", "postbox", "courier", "pickup"]
    address: str
    working_hours: str = ""


class Sustainability(BaseModel):
    carbon_footprint: float  # kg CO2
    packaging_recyclable: bool
    route_optimization: float  # 0-100


class DeliveryOption(BaseModel):
    method: DeliveryMethod
    provider: Provider
    base_cost: float
    insurance_cost: float
    packaging_cost: float
    handling_fee: float
    total_cost: float
    estimated_days: EstimatedDays
    delivery_dates: Optional[DeliveryDates] = None
    predictions: Predictions
    convenience: Convenience
    restrictions: Restrictions
    delivery_location: Optional[DeliveryLocation] = None
    sustainability: Sustainability


# --- Analysis output ---

class WeatherRisk(BaseModel):
    type: Literal["rain", "snow", "storm", "heat"]
    probability: float
    impact: Level
    mitigation: str


class LogisticsRisk(BaseModel):
    type: Literal["capacity", "strike", "holiday", "fuel", "border"]
    probability: float
    impact: Level
    affected_regions: List[str]


class PackageRisk(BaseModel):
    type: Literal["damage", "loss", "theft", "delay"]
    probability: float
    preventive_measures: List[str]


class RiskAnalysis(BaseModel):
    weather_risks: List[WeatherRisk]
    logistics_risks: List[LogisticsRisk]
    package_risks: List[PackageRisk]


class Optimization(BaseModel):
    type: Literal["cost", "speed", "reliability", "sustainability"]
    suggestion: str
    potential_saving: float  # UAH, days, points or kg CO2 depending on type
    implementation_complexity: Literal["easy", "medium", "hard"]


class DeliveryAnalysis(BaseModel):
    destination: City
    packaging: PackagingDetails
    recommended: DeliveryOption
    recommendation_reasons: List[str]
    confidence_score: float  # 0-100
    alternatives: List[DeliveryOption]
    risk_analysis: RiskAnalysis
    optimizations: List[Optimization]


class RouteHistory(BaseModel):
    """Aggregated delivery statistics of one route (studio city, destination, method)."""
    route: str
    average_time: float  # days
    on_time_rate: float  # %
    damage_rate: float  # %
    customer_satisfaction: float  # 1-5
    seasonal_variations: Dict[str, float] = {}
    weather_correlations: Dict[str, float] = {}
    last_updated: Optional[datetime] = None


# --- Payments ---

class PaymentTrigger(BaseModel):
    trigger: Literal["security", "speed", "familiarity", "status", "savings"]
    strength: float  # 0-100
    message: str


class Promotion(BaseModel):
    type: Literal["cashback", "discount", "no_fee", "bonus_points"]
    value: float
    description: str
    valid_until: datetime


class PaymentMethodDetails(BaseModel):
    id: str
    name: str
    description: str
    fee_percentage: float
    fee_fixed: float
    minimum_amount: float
    maximum_amount: float
    trust_score: float
    convenience_score: float
    speed_score: float
    triggers: List[PaymentTrigger]
    is_available: bool = True
    unavailable_reason: Optional[str] = None
    average_completion_time: float  # seconds
    success_rate: float
    user_satisfaction: float
    promotion: Optional[Promotion] = None
    requirements: List[str] = []
    supported_currencies: List[str] = ["UAH"]
    regions: List[str] = ["UA"]


class FailedAttempt(BaseModel):
    method: str
    reason: str
    timestamp: datetime


class UserPaymentProfile(BaseModel):
    risk_tolerance: Level
    price_sensitivity: Level
    convenience_preference: Literal["speed", "security", "cost", "familiarity"]
    age_group: Optional[Literal["18-25", "26-35", "36-45", "46-55", "55+"]] = None
    device_type: Literal["mobile", "tablet", "desktop"]
    preferred_methods: List[str] = []
    failed_attempts: List[FailedAttempt] = []
    order_value: float = 0.0
    is_first_time: bool = True
    has_apple_pay: bool = False
    has_google_pay: bool = False
    city: Optional[str] = None
    time_of_day: Literal["morning", "afternoon", "evening", "night"] = "afternoon"
    day_of_week: Literal["weekday", "weekend"] = "weekday"


class AppliedPromotion(BaseModel):
    type: str
    discount: float
    description: str


class PaymentCost(BaseModel):
    original_amount: float
    fee: float
    total: float
    savings: Optional[float] = None
    promotion: Optional[AppliedPromotion] = None


class PaymentRecommendation(BaseModel):
    method: str
    confidence: float  # 0-100
    reasoning: List[str]
    psychological_match: float  # 0-100
    advantages: List[str]
    disadvantages: Optional[List[str]] = None
    total_cost: float
    savings: Optional[float] = None
    estimated_time: float  # seconds
    user_friction_score: float  # 0-100
    variant: Optional[Literal["control", "experiment_1", "experiment_2"]] = None


class OrderQuote(BaseModel):
    """Price breakdown of an order once delivery and payment are chosen."""
    subtotal: float
    delivery_method: str
    delivery_fee: float
    packaging_fee: float
    insurance_fee: float
    payment_method: str
    payment_fee: float
    savings: float = 0.0
    total: float
    currency: Literal["UAH", "USD", "EUR"] = "UAH"
    estimated_delivery: Optional[datetime] = None
