"""Pytest fixtures for storefront tests."""

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from auth import create_access_token
from cart import CartService
from catalog import CatalogService
from orders import OrderService
from reviews import ReviewService
from schemas import Address, Product

CUSTOMER_ID = "64b7f0c2a1b2c3d4e5f60001"
OTHER_CUSTOMER_ID = "64b7f0c2a1b2c3d4e5f60002"
ADMIN_ID = "64b7f0c2a1b2c3d4e5f60099"


@pytest.fixture
def db():
    """A fresh in-memory database per test."""
    client = mongomock.MongoClient()
    test_db = client["storefront_test"]
    database.ensure_indexes(test_db)
    return test_db


@pytest.fixture
def catalog(db):
    return CatalogService(db)


@pytest.fixture
def carts(db, catalog):
    return CartService(db, catalog)


@pytest.fixture
def orders(db, catalog, carts):
    return OrderService(db, catalog, carts)


@pytest.fixture
def reviews(db, catalog):
    return ReviewService(db, catalog)


@pytest.fixture
def add_product(db):
    """Insert a product and return its id."""
    counter = {"n": 0}

    def _add(name="Widget", price=10.0, stock=10, **extra):
        counter["n"] += 1
        slug = f"{name.lower().replace(' ', '-')}-{counter['n']}"
        fields = {
            "name": name,
            "slug": slug,
            "sku": f"SKU-{counter['n']:04d}",
            "price": price,
            "stock": stock,
            "category": "general",
            "images": [f"https://img.shop.io/{slug}.jpg"],
        }
        fields.update(extra)
        return database.create_document("product", Product(**fields), database=db)

    return _add


@pytest.fixture
def address():
    return Address(street="1 Market St", city="Springfield", state="IL", zip_code="62701", country="US")


@pytest.fixture
def api_client(db):
    """Test client whose routes talk to the in-memory database."""
    from main import app, get_db

    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def bearer(user_id, email, role="customer"):
    return {"Authorization": f"Bearer {create_access_token(user_id, email, role)}"}


@pytest.fixture
def customer_headers():
    return bearer(CUSTOMER_ID, "alice@shop.io")


@pytest.fixture
def other_customer_headers():
    return bearer(OTHER_CUSTOMER_ID, "bob@shop.io")


@pytest.fixture
def admin_headers():
    return bearer(ADMIN_ID, "admin@shop.io", role="admin")


@pytest.fixture(autouse=True)
def sequential_order_numbers(monkeypatch):
    """Deterministic order numbers so several orders within one millisecond never collide."""
    import itertools

    import orders as orders_module

    counter = itertools.count(1)
    monkeypatch.setattr(orders_module, "generate_order_number", lambda: f"ORD-1700000000000-{next(counter):03d}")
