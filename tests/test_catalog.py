"""Tests for catalog lookups, admin edits and stock updates."""

import pytest

from errors import NotFoundError, ValidationError
from schemas import Product, ProductUpdate


class TestLookup:
    def test_get_product(self, catalog, add_product):
        pid = add_product("Desk Lamp", price=25.0, stock=4)
        product = catalog.get_product(pid)
        assert product["id"] == pid
        assert product["name"] == "Desk Lamp"
        assert product["stock"] == 4
        assert "_id" not in product

    def test_inactive_is_hidden(self, catalog, add_product):
        pid = add_product(is_active=False)
        with pytest.raises(NotFoundError):
            catalog.get_product(pid)
        assert catalog.get_product_any(pid)["is_active"] is False

    def test_get_by_slug(self, catalog, add_product):
        pid = add_product("Desk Lamp")
        slug = catalog.get_product(pid)["slug"]
        assert catalog.get_product_by_slug(slug)["id"] == pid


class TestListProducts:
    def test_filters_and_pagination(self, catalog, add_product):
        add_product("Red Chair", price=80.0, category="furniture")
        add_product("Blue Chair", price=120.0, category="furniture")
        add_product("Mug", price=9.0, category="kitchen")
        add_product("Old Chair", price=50.0, category="furniture", is_active=False)

        result = catalog.list_products(category="furniture", max_price=100)
        assert [p["name"] for p in result["products"]] == ["Red Chair"]

        result = catalog.list_products(search="chair", sort="price-desc", limit=1)
        assert [p["name"] for p in result["products"]] == ["Blue Chair"]
        assert result["pagination"] == {"page": 1, "limit": 1, "total": 2, "pages": 2}

    def test_limit_is_capped(self, catalog, add_product):
        add_product()
        assert catalog.list_products(limit=10_000)["pagination"]["limit"] == 100

    def test_categories(self, catalog, add_product):
        add_product(category="kitchen")
        add_product(category="furniture")
        add_product(category="garden", is_active=False)
        assert catalog.list_categories() == ["furniture", "kitchen"]


class TestAdmin:
    def test_create_update_deactivate(self, catalog):
        created = catalog.create_product(Product(name="Kettle", slug="kettle", sku="K-1", price=30.0, category="kitchen", stock=3))
        assert created["is_active"] is True

        updated = catalog.update_product(created["id"], ProductUpdate(price=35.0))
        assert updated["price"] == 35.0
        assert updated["stock"] == 3

        catalog.deactivate_product(created["id"])
        assert catalog.get_product_any(created["id"])["is_active"] is False

    def test_duplicate_sku(self, catalog):
        catalog.create_product(Product(name="Kettle", slug="kettle", sku="K-1", price=30.0, category="kitchen"))
        with pytest.raises(ValidationError):
            catalog.create_product(Product(name="Kettle 2", slug="kettle-2", sku="K-1", price=30.0, category="kitchen"))

    def test_unknown_product(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.update_product("64b7f0c2a1b2c3d4e5f6ffff", ProductUpdate(price=1.0))
        with pytest.raises(NotFoundError):
            catalog.deactivate_product("bad-id")


class TestStock:
    def test_conditional_decrement(self, catalog, add_product):
        pid = add_product(stock=3)
        assert catalog.decrement_stock(pid, 2) is True
        assert catalog.decrement_stock(pid, 2) is False
        assert catalog.get_product(pid)["stock"] == 1

    def test_restore(self, catalog, add_product):
        pid = add_product(stock=1)
        catalog.restore_stock(pid, 4)
        assert catalog.get_product(pid)["stock"] == 5
