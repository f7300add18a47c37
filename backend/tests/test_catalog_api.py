"""
Tests for menu endpoints and MenuItemService rules.
"""

from decimal import Decimal

import pytest

from rest_api.models import Category
from rest_api.services.domain import MenuItemService
from shared.utils.exceptions import ValidationError


class TestCategories:

    def test_listed_in_menu_order(self, client, tenant, category, admin_headers, db_session):
        db_session.add_all([
            Category(tenant_id=tenant.id, name="İçecekler", sort_order=5),
            Category(tenant_id=tenant.id, name="Başlangıçlar", sort_order=1),
        ])
        db_session.commit()

        response = client.get(f"/api/tenants/{tenant.id}/categories", headers=admin_headers)

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Başlangıçlar", "Ana Yemekler", "İçecekler"]

    def test_create_category(self, client, tenant, admin_headers):
        response = client.post(
            f"/api/tenants/{tenant.id}/categories",
            json={"name": "Tatlılar", "sortOrder": 4, "image": "/images/desserts.png"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["sortOrder"] == 4

    @pytest.mark.parametrize("image", [
        "javascript:alert(1)",
        "http://127.0.0.1/x.png",
        "http://localhost/x.png",
        "file:///etc/passwd",
    ])
    def test_unsafe_image_url_rejected(self, client, tenant, admin_headers, image):
        response = client.post(
            f"/api/tenants/{tenant.id}/categories",
            json={"name": "Tatlılar", "image": image},
            headers=admin_headers,
        )
        assert response.status_code == 400


class TestMenuItems:

    def test_create_menu_item(self, client, tenant, category, admin_headers):
        response = client.post(
            f"/api/tenants/{tenant.id}/menu-items",
            json={
                "categoryId": category.id,
                "name": "Lahmacun",
                "price": 12.5,
                "preparationTime": 10,
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["price"] == "12.50"
        assert body["isAvailable"] is True

    def test_foreign_category_rejected(self, client, other_tenant, category, other_headers):
        response = client.post(
            f"/api/tenants/{other_tenant.id}/menu-items",
            json={"categoryId": category.id, "name": "Lahmacun", "price": "12.50"},
            headers=other_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == f"Category {category.id} not found"

    def test_negative_price_rejected(self, client, tenant, category, admin_headers):
        response = client.post(
            f"/api/tenants/{tenant.id}/menu-items",
            json={"categoryId": category.id, "name": "Lahmacun", "price": "-1"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_list_by_category(self, client, category, kebab, waiter_headers):
        response = client.get(f"/api/categories/{category.id}/menu-items", headers=waiter_headers)

        assert response.status_code == 200
        assert [(m["name"], m["price"]) for m in response.json()] == [("Adana Kebap", "50.00")]

    def test_patch_price(self, client, kebab, admin_headers):
        response = client.patch(
            f"/api/menu-items/{kebab.id}",
            json={"price": "55"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["price"] == "55.00"
        assert response.json()["name"] == "Adana Kebap"

    def test_patch_null_name_rejected(self, client, kebab, admin_headers):
        response = client.patch(
            f"/api/menu-items/{kebab.id}",
            json={"name": None},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_waiter_cannot_patch(self, client, kebab, waiter_headers):
        response = client.patch(
            f"/api/menu-items/{kebab.id}",
            json={"isAvailable": False},
            headers=waiter_headers,
        )
        assert response.status_code == 403


class TestMenuItemService:

    def test_price_is_rounded_on_create(self, db_session, tenant, category):
        item = MenuItemService(db_session).create(
            {"category_id": category.id, "name": "Ayran", "price": Decimal("4.005")},
            tenant.id,
        )
        assert item.price == Decimal("4.01")

    def test_update_unknown_category(self, db_session, tenant, kebab):
        with pytest.raises(ValidationError):
            MenuItemService(db_session).update(kebab.id, {"category_id": 999}, tenant.id)
