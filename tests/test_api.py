# tests/test_api.py
import pytest
from fastapi.testclient import TestClient

from delivery_advisor import api
from delivery_advisor.advisor import DeliveryAdvisor

CANVAS = {"id": "p1", "product_type": "canvas", "width": 40, "height": 60, "quantity": 1, "current_price": 800}


@pytest.fixture
def client(offline_client):
    api.set_advisor(DeliveryAdvisor(novaposhta_client=offline_client))
    yield TestClient(api.app)
    api.set_advisor(None)


def test_analyze_delivery(client):
    response = client.post("/delivery/analyze", json={
        "projects": [CANVAS],
        "destination_city": "Kyiv",
        "preferences": {"budget": "low"},
    })

    assert response.status_code == 200
    body = response.json()
    assert body["recommended"]["method"] == "pickup"
    assert body["recommended"]["total_cost"] == pytest.approx(42.5)
    assert len(body["alternatives"]) == 3


def test_unknown_city_is_404(client):
    response = client.post("/delivery/analyze", json={"projects": [CANVAS], "destination_city": "Atlantis"})

    assert response.status_code == 404
    assert response.json() == {"error": "CityNotFoundError", "message": "City Atlantis not found"}


def test_empty_order_is_422(client):
    response = client.post("/delivery/analyze", json={"projects": [], "destination_city": "Kyiv"})

    assert response.status_code == 422
    assert response.json()["error"] == "EmptyOrderError"


def test_invalid_project_is_rejected(client):
    bad = dict(CANVAS, width=-5)

    response = client.post("/delivery/analyze", json={"projects": [bad], "destination_city": "Kyiv"})

    assert response.status_code == 422


def test_quote(client):
    response = client.post("/delivery/quote", json={
        "projects": [CANVAS], "destination_city": "Kyiv", "payment_method": "cash-on-delivery",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["delivery_method"] == "nova-poshta-warehouse"
    # 800 + 574 + 20 fixed fee
    assert body["total"] == pytest.approx(1394)


def test_cities(client):
    response = client.get("/cities")

    assert response.status_code == 200
    assert [city["name"] for city in response.json()] == ["Kyiv", "Kharkiv", "Odesa", "Lviv", "Dnipro"]


def test_nova_poshta_offline_calculation(client):
    response = client.post("/np/calculate", json={
        "city_sender": "kyiv-ref", "city_recipient": "lviv-ref", "weight": 2, "cost": 500, "service_type": "WarehouseDoors",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["live"] is False
    # 45 * 2 kg * 1.5 for door delivery
    assert body["calculation"]["delivery_cost"] == 135
    assert body["calculation"]["total_cost"] == 135


def test_payment_recommendations_use_request_user_agent(client):
    response = client.post(
        "/payment/recommend",
        json={"order_total": 800},
        headers={"User-Agent": "Mozilla/5.0 (Linux; Android 14; Pixel 8) Mobile"},
    )

    assert response.status_code == 200
    methods = [rec["method"] for rec in response.json()]
    assert "google-pay" in methods
    assert "apple-pay" not in methods


def test_payment_cost(client):
    response = client.post("/payment/cost", json={"method": "liqpay-card", "amount": 1000})

    assert response.status_code == 200
    assert response.json()["total"] == pytest.approx(1027.5)


def test_unknown_payment_method_is_404(client):
    response = client.post("/payment/cost", json={"method": "bitcoin", "amount": 1000})

    assert response.status_code == 404


def test_offline_city_search(client):
    response = client.get("/np/cities", params={"q": "ль"})

    assert response.status_code == 200
    body = response.json()
    assert body["live"] is False
    assert [city["name"] for city in body["cities"]] == ["Lviv"]


def test_tracking_needs_api_key(client):
    response = client.get("/np/track/20450000000000")

    assert response.status_code == 503
    assert response.json()["error"] == "NovaPoshtaOfflineError"
