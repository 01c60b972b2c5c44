"""Pytest configuration and fixtures."""

import os

os.environ["SESSION_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from retail_pos.utils.config import get_config

get_config.cache_clear()

from retail_pos.database import create_db_engine, create_session_factory, get_session_factory, init_db
from retail_pos.middleware.session_validator import ShopIdentityValidator
from retail_pos.models.schemas import ProductCreate
from retail_pos.models.tables import Product
from retail_pos.services.inventory_service import InventoryService
from retail_pos.services.shop_service import ShopService


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def shop(session_factory):
    return ShopService(session_factory).create_shop("Corner Store")


@pytest.fixture
def products(session_factory, shop):
    """
    Two products with floor prices below sell prices:

      tea       cost 30, sell 50, floor 40, stock 10, threshold 3
      biscuits  cost 20, sell 30, floor 25, stock 5, threshold 2
    """
    service = InventoryService(session_factory)
    return {
        "tea": service.create_product(
            shop["id"],
            ProductCreate(name="Tea", cost_price=30, sell_price=50, floor_price=40, current_stock=10,
                          stock_threshold=3)
        ),
        "biscuits": service.create_product(
            shop["id"],
            ProductCreate(name="Biscuits", cost_price=20, sell_price=30, floor_price=25, current_stock=5,
                          stock_threshold=2)
        ),
    }


@pytest.fixture
def stock_of(session_factory):
    """Read (current_stock, total_stock, cost_price) for a product id."""
    def _stock_of(product_id):
        with session_factory() as session:
            product = session.get(Product, product_id)
            return product.current_stock, product.total_stock, product.cost_price
    return _stock_of


@pytest.fixture
def auth_headers(shop):
    """Identity headers the session provider would attach for the shop."""
    validator = ShopIdentityValidator(secret="test-secret", validate_enabled=True)
    return {
        "X-Shop-Id": str(shop["id"]),
        "X-Shop-Signature": validator.sign(shop["id"])
    }


@pytest.fixture
def client(session_factory):
    """API client bound to the test database."""
    from retail_pos.server import app

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    yield TestClient(app)
    app.dependency_overrides.clear()
