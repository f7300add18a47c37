"""
Menu endpoints: categories and menu items.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rest_api.routers._common import PathId, management_scope, require_management, tenant_scope
from rest_api.services.domain import CategoryService, MenuItemService
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.schemas import (
    CategoryCreate,
    CategoryOutput,
    MenuItemCreate,
    MenuItemOutput,
    MenuItemUpdate,
)


router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/tenants/{tenant_id}/categories", response_model=list[CategoryOutput])
def list_categories(
    tenant_id: PathId,
    ctx: dict[str, Any] = Depends(tenant_scope),
    db: Session = Depends(get_db),
) -> list[CategoryOutput]:
    """Active categories in menu order."""
    return CategoryService(db).list_ordered(tenant_id)


@router.post("/tenants/{tenant_id}/categories", response_model=CategoryOutput, status_code=status.HTTP_201_CREATED)
def create_category(
    tenant_id: PathId,
    body: CategoryCreate,
    ctx: dict[str, Any] = Depends(management_scope),
    db: Session = Depends(get_db),
) -> CategoryOutput:
    return CategoryService(db).create(body.model_dump(), tenant_id)


@router.get("/tenants/{tenant_id}/menu-items", response_model=list[MenuItemOutput])
def list_menu_items(
    tenant_id: PathId,
    ctx: dict[str, Any] = Depends(tenant_scope),
    db: Session = Depends(get_db),
) -> list[MenuItemOutput]:
    return MenuItemService(db).list_all(tenant_id)


@router.post("/tenants/{tenant_id}/menu-items", response_model=MenuItemOutput, status_code=status.HTTP_201_CREATED)
def create_menu_item(
    tenant_id: PathId,
    body: MenuItemCreate,
    ctx: dict[str, Any] = Depends(management_scope),
    db: Session = Depends(get_db),
) -> MenuItemOutput:
    return MenuItemService(db).create(body.model_dump(), tenant_id)


@router.get("/categories/{category_id}/menu-items", response_model=list[MenuItemOutput])
def list_category_menu_items(
    category_id: PathId,
    ctx: dict[str, Any] = Depends(current_user_context),
    db: Session = Depends(get_db),
) -> list[MenuItemOutput]:
    tenant_id = ctx["tenant_id"]
    CategoryService(db).get_entity(category_id, tenant_id)
    return MenuItemService(db).list_by_category(tenant_id, category_id)


@router.patch("/menu-items/{menu_item_id}", response_model=MenuItemOutput)
def update_menu_item(
    menu_item_id: PathId,
    body: MenuItemUpdate,
    ctx: dict[str, Any] = Depends(require_management),
    db: Session = Depends(get_db),
) -> MenuItemOutput:
    """
    Partial update of a menu item.
    Existing order lines keep the price they were ordered at.
    """
    return MenuItemService(db).update(menu_item_id, body.model_dump(exclude_unset=True), ctx["tenant_id"])
