"""
Order endpoints.

Reads go through OrderService. Every write goes through
OrderLifecycleService: it commits first and then broadcasts the new
state to the restaurant's realtime connections, the same funnel the
realtime channel uses.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rest_api.routers._common import PathId, get_user_id, tenant_scope
from rest_api.services.domain import OrderLifecycleService, OrderService, TableService
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.schemas import (
    OrderCreate,
    OrderItemCreate,
    OrderItemDetail,
    OrderItemOutput,
    OrderItemUpdate,
    OrderOutput,
    OrderUpdate,
)
from ws_gateway.connection_manager import FanoutHub, get_hub


router = APIRouter(prefix="/api", tags=["orders"])


# =============================================================================
# Orders
# =============================================================================


@router.get("/tenants/{tenant_id}/orders", response_model=list[OrderOutput])
def list_orders(
    tenant_id: PathId,
    active: bool = Query(default=False, description="Only orders still open"),
    ctx: dict[str, Any] = Depends(tenant_scope),
    db: Session = Depends(get_db),
) -> list[OrderOutput]:
    return OrderService(db).list_for_tenant(tenant_id, active_only=active)


@router.post("/tenants/{tenant_id}/orders", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
async def open_order(
    tenant_id: PathId,
    body: OrderCreate,
    ctx: dict[str, Any] = Depends(tenant_scope),
    db: Session = Depends(get_db),
    hub: FanoutHub = Depends(get_hub),
) -> OrderOutput:
    """Open an order on a table. The waiter defaults to the logged-in user."""
    user_id = body.user_id if body.user_id is not None else get_user_id(ctx)
    return await OrderLifecycleService(db, hub).open_order(
        tenant_id,
        body.table_id,
        user_id,
        customer_count=body.customer_count,
    )


@router.get("/tables/{table_id}/orders", response_model=list[OrderOutput])
def list_table_orders(
    table_id: PathId,
    ctx: dict[str, Any] = Depends(current_user_context),
    db: Session = Depends(get_db),
) -> list[OrderOutput]:
    tenant_id = ctx["tenant_id"]
    TableService(db).get_entity(table_id, tenant_id)
    return OrderService(db).list_for_table(tenant_id, table_id)


@router.patch("/orders/{order_id}", response_model=OrderOutput)
async def update_order(
    order_id: PathId,
    body: OrderUpdate,
    ctx: dict[str, Any] = Depends(current_user_context),
    db: Session = Depends(get_db),
    hub: FanoutHub = Depends(get_hub),
) -> OrderOutput:
    """
    Update an order: status, payment, totals.

    Completing or cancelling frees the table when no other order is open
    on it; a re-opened unpaid order with a balance requests the bill.
    """
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    return await OrderLifecycleService(db, hub).update_order(order_id, ctx["tenant_id"], fields)


# =============================================================================
# Order items
# =============================================================================


@router.get("/orders/{order_id}/items", response_model=list[OrderItemDetail])
def list_order_items(
    order_id: PathId,
    ctx: dict[str, Any] = Depends(current_user_context),
    db: Session = Depends(get_db),
) -> list[OrderItemDetail]:
    return OrderService(db).list_items(order_id, ctx["tenant_id"])


@router.post("/orders/{order_id}/items", response_model=OrderItemOutput, status_code=status.HTTP_201_CREATED)
async def add_order_item(
    order_id: PathId,
    body: OrderItemCreate,
    ctx: dict[str, Any] = Depends(current_user_context),
    db: Session = Depends(get_db),
    hub: FanoutHub = Depends(get_hub),
) -> OrderItemOutput:
    return await OrderLifecycleService(db, hub).add_order_item(
        order_id,
        ctx["tenant_id"],
        body.menu_item_id,
        body.quantity,
        unit_price=body.unit_price,
        notes=body.notes,
    )


@router.patch("/order-items/{item_id}", response_model=OrderItemOutput)
async def update_order_item(
    item_id: PathId,
    body: OrderItemUpdate,
    ctx: dict[str, Any] = Depends(current_user_context),
    db: Session = Depends(get_db),
    hub: FanoutHub = Depends(get_hub),
) -> OrderItemOutput:
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    return await OrderLifecycleService(db, hub).update_order_item(item_id, ctx["tenant_id"], fields)
