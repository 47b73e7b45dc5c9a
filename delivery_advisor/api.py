# delivery_advisor/api.py
"""
HTTP API powered by FastAPI.
"""
from datetime import datetime
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .advisor import DeliveryAdvisor
from .config import logger
from .errors import (
    CityNotFoundError, DeliveryAdvisorError, NovaPoshtaAPIError, NovaPoshtaOfflineError, PaymentMethodNotFoundError,
)
from .models import (
    CartProject, City, DeliveryAnalysis, OrderQuote, PaymentCost, PaymentRecommendation, UserPreferences,
)

load_dotenv()

# --- App Initialization ---
app = FastAPI(title="Delivery Advisor API")

# --- Global State ---
_advisor: Optional[DeliveryAdvisor] = None


def get_advisor() -> DeliveryAdvisor:
    """Builds the advisor from the environment on first use."""
    global _advisor
    if _advisor is None:
        _advisor = DeliveryAdvisor.from_env()
    return _advisor


def set_advisor(advisor: Optional[DeliveryAdvisor]):
    global _advisor
    _advisor = advisor


# --- Request Models ---

class AnalyzeRequest(BaseModel):
    projects: List[CartProject]
    destination_city: str
    preferences: UserPreferences = UserPreferences()


class QuoteRequest(AnalyzeRequest):
    payment_method: str


class NovaPoshtaCalculateRequest(BaseModel):
    city_sender: str
    city_recipient: str
    weight: float = Field(gt=0)
    cost: float = Field(gt=0)
    service_type: str = "WarehouseWarehouse"
    cargo_type: str = "Cargo"
    seats_amount: int = Field(default=1, ge=1)


class PaymentRecommendRequest(BaseModel):
    order_total: float = Field(gt=0)
    user_agent: Optional[str] = None
    order_history: List[dict] = []
    session_key: Optional[str] = None


class PaymentCostRequest(BaseModel):
    method: str
    amount: float = Field(ge=0)


# --- Error Handlers ---

@app.exception_handler(DeliveryAdvisorError)
async def handle_domain_error(request: Request, exc: DeliveryAdvisorError):
    if isinstance(exc, (CityNotFoundError, PaymentMethodNotFoundError)):
        status_code = 404
    elif isinstance(exc, NovaPoshtaAPIError):
        status_code = 502
    elif isinstance(exc, NovaPoshtaOfflineError):
        status_code = 503
    else:
        status_code = 422
    logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"error": type(exc).__name__, "message": str(exc)})


# --- API Endpoints ---

@app.post("/delivery/analyze", response_model=DeliveryAnalysis)
def analyze_delivery(body: AnalyzeRequest):
    """Recommends a delivery option for the projects of an order."""
    return get_advisor().analyze_delivery(body.projects, body.destination_city, body.preferences)


@app.post("/delivery/quote", response_model=OrderQuote)
def quote_order(body: QuoteRequest):
    """Prices the order with the recommended delivery and the chosen payment method."""
    return get_advisor().quote_order(body.projects, body.destination_city, body.payment_method, body.preferences)


@app.get("/cities", response_model=List[City])
async def list_cities():
    return get_advisor().cities.cities


@app.post("/np/calculate")
def calculate_nova_poshta(body: NovaPoshtaCalculateRequest):
    """
    Prices a Nova Poshta shipment: live document price when an API key is configured,
    otherwise the offline tariff.
    """
    client = get_advisor().carriers.novaposhta
    if client.is_live:
        result = client.calculate_delivery(
            body.city_sender, body.city_recipient, body.weight, body.service_type, body.cost,
            cargo_type=body.cargo_type, seats_amount=body.seats_amount,
        )
        calculation = {
            "assessed_cost": float(result.get("AssessedCost", body.cost)),
            "delivery_cost": float(result["Cost"]),
            "redelivery_cost": float(result.get("CostRedelivery") or 0),
            "packaging_cost": float(result.get("CostPack") or 0),
            "zone": result.get("TZone"),
        }
    else:
        delivery_cost = client.calculate_cost(
            body.city_sender, body.city_recipient, body.weight, body.service_type, body.cost
        )
        calculation = {
            "assessed_cost": body.cost,
            "delivery_cost": float(delivery_cost),
            "redelivery_cost": 0.0,
            "packaging_cost": 0.0,
            "zone": None,
        }
    calculation["total_cost"] = calculation["delivery_cost"] + calculation["packaging_cost"]
    return {"success": True, "live": client.is_live, "calculation": calculation, "parameters": body.model_dump()}


@app.post("/payment/recommend", response_model=List[PaymentRecommendation])
async def recommend_payment(body: PaymentRecommendRequest, request: Request):
    """Ranks payment methods for the requesting customer."""
    engine = get_advisor().payments
    user_agent = body.user_agent or request.headers.get("user-agent", "")
    profile = engine.analyze_user_profile(user_agent, body.order_total, body.order_history, datetime.now())
    return engine.get_payment_recommendations(profile, body.order_total, session_key=body.session_key)


@app.post("/payment/cost", response_model=PaymentCost)
async def payment_cost(body: PaymentCostRequest):
    return get_advisor().payments.calculate_total_cost(body.method, body.amount)


@app.get("/np/cities")
def search_nova_poshta_cities(q: str = "", limit: int = 20):
    """Searches Nova Poshta settlements, or the built-in destinations without an API key."""
    advisor = get_advisor()
    client = advisor.carriers.novaposhta
    if client.is_live:
        return {"success": True, "live": True, "cities": client.search_cities(q, limit)}

    needle = q.strip().lower()
    cities = [
        {"ref": city.ref, "name": city.name, "name_ua": city.name_ua, "region": city.region}
        for city in advisor.cities.cities
        if needle in city.name.lower() or needle in city.name_ua.lower()
    ]
    return {"success": True, "live": False, "cities": cities[:limit]}


@app.get("/np/track/{document_number}")
def track_nova_poshta_document(document_number: str):
    client = get_advisor().carriers.novaposhta
    if not client.is_live:
        raise NovaPoshtaOfflineError("Parcel tracking needs a Nova Poshta API key.")
    statuses = client.track_document(document_number)
    if not statuses:
        raise NovaPoshtaAPIError(f"No status for document {document_number}")
    return {"success": True, "tracking": statuses[0]}
