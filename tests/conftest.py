# tests/conftest.py
import pytest

from delivery_advisor.core.cities import CityDirectory
from delivery_advisor.models import CartProject
from delivery_advisor.utils.api_client import NovaPoshtaAPIClient


@pytest.fixture(autouse=True)
def offline_environment(monkeypatch):
    """Keeps every test on the offline tariff and the climatology table."""
    monkeypatch.delenv("NOVA_POSHTA_API_KEY", raising=False)
    monkeypatch.delenv("WEATHERAPI_KEY", raising=False)
    monkeypatch.delenv("DELIVERY_HISTORY_PATH", raising=False)


@pytest.fixture
def offline_client():
    return NovaPoshtaAPIClient(api_key="demo_key")


@pytest.fixture
def cities():
    return CityDirectory()


@pytest.fixture
def kyiv(cities):
    return cities.find_city("Kyiv")


@pytest.fixture
def lviv(cities):
    return cities.find_city("Lviv")


@pytest.fixture
def canvas_project():
    """A 40x60 cm canvas print at the default depth, priced 800 UAH."""
    return CartProject(id="p1", product_type="canvas", width=40, height=60, quantity=1, current_price=800)
