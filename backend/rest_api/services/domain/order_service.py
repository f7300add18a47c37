"""
Order read service.

Writes go through OrderLifecycleService; this service only lists and
loads orders and their lines for the REST API.
"""

from __future__ import annotations

from sqlalchemy.orm import Session, selectinload

from rest_api.models import Order, OrderItem
from rest_api.services.crud.repository import OrderItemRepository, TenantRepository
from shared.config.constants import OrderStatus
from shared.utils.exceptions import NotFoundError
from shared.utils.schemas import OrderItemDetail, OrderOutput


class OrderService:
    """Queries over orders and order items, scoped to one tenant."""

    def __init__(self, db: Session):
        self._db = db
        self._orders = TenantRepository(Order, db)
        self._items = OrderItemRepository(db)

    def list_for_tenant(self, tenant_id: int, *, active_only: bool = False) -> list[OrderOutput]:
        filters = [Order.status == OrderStatus.ACTIVE.value] if active_only else None
        orders = self._orders.find_all(tenant_id, filters=filters)
        return [OrderOutput.model_validate(o) for o in orders]

    def list_for_table(self, tenant_id: int, table_id: int) -> list[OrderOutput]:
        orders = self._orders.find_all(tenant_id, filters=[Order.table_id == table_id])
        return [OrderOutput.model_validate(o) for o in orders]

    def get_order(self, order_id: int, tenant_id: int) -> OrderOutput:
        order = self._orders.find_by_id(order_id, tenant_id)
        if order is None:
            raise NotFoundError("Order", order_id, tenant_id=tenant_id)
        return OrderOutput.model_validate(order)

    def list_items(self, order_id: int, tenant_id: int) -> list[OrderItemDetail]:
        """Lines of an order with their menu item embedded."""
        if not self._orders.exists(order_id, tenant_id):
            raise NotFoundError("Order", order_id, tenant_id=tenant_id)
        items = self._items.find_by_order(
            order_id,
            tenant_id,
            options=[selectinload(OrderItem.menu_item)],
        )
        return [OrderItemDetail.model_validate(i) for i in items]
