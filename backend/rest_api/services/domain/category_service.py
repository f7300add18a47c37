"""
Menu Services: categories and menu items.

Usage:
    from rest_api.services.domain import CategoryService, MenuItemService

    categories = CategoryService(db).list_ordered(tenant_id)
    item = MenuItemService(db).create(data, tenant_id)
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from rest_api.models import Category, MenuItem
from rest_api.services.base_service import BaseCRUDService
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import CategoryOutput, MenuItemOutput, quantize_money


class CategoryService(BaseCRUDService[Category, CategoryOutput]):
    """
    Service for menu categories.

    Business rules:
    - Listed by sort_order
    """

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=Category,
            output_schema=CategoryOutput,
            entity_name="Category",
        )

    def list_ordered(self, tenant_id: int, *, include_inactive: bool = False) -> list[CategoryOutput]:
        entities = self._repo.find_all(
            tenant_id,
            include_inactive=include_inactive,
            order_by=Category.sort_order,
        )
        return [self.to_output(e) for e in entities]


class MenuItemService(BaseCRUDService[MenuItem, MenuItemOutput]):
    """
    Service for menu items.

    Business rules:
    - A menu item belongs to a category of the same tenant
    - Price changes never touch existing order lines (they keep unit_price)
    """

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=MenuItem,
            output_schema=MenuItemOutput,
            entity_name="Menu item",
        )

    def list_by_category(
        self,
        tenant_id: int,
        category_id: int,
        *,
        include_inactive: bool = False,
    ) -> list[MenuItemOutput]:
        return self.list_all(
            tenant_id,
            filters=[MenuItem.category_id == category_id],
            include_inactive=include_inactive,
        )

    def _validate_create(self, data: dict[str, Any], tenant_id: int) -> None:
        self._require_category(data.get("category_id"), tenant_id)
        data["price"] = quantize_money(data["price"])

    def _validate_update(self, entity: MenuItem, data: dict[str, Any], tenant_id: int) -> None:
        for required in ("name", "is_available", "is_active"):
            if required in data and data[required] is None:
                raise ValidationError(f"{required} cannot be null", field=required)
        if "category_id" in data:
            if data["category_id"] is None:
                raise ValidationError("categoryId cannot be null", field="categoryId")
            self._require_category(data["category_id"], tenant_id)
        if "price" in data:
            if data["price"] is None:
                raise ValidationError("price cannot be null", field="price")
            data["price"] = quantize_money(data["price"])

    def _require_category(self, category_id: int | None, tenant_id: int) -> None:
        category = self._db.get(Category, category_id) if category_id is not None else None
        if category is None or category.tenant_id != tenant_id:
            raise ValidationError(f"Category {category_id} not found", field="categoryId")
