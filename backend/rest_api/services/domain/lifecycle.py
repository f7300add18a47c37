"""
Order Lifecycle Service.

The single funnel for every table/order/order-item mutation, whether it
arrives as a REST write or a realtime message. Each operation:

1. runs the blocking SQLAlchemy work in a worker thread,
2. commits (rolling back on failure),
3. only then broadcasts the canonical entities to every connection of
   the tenant.

A failed commit never produces a broadcast.

Usage:
    service = OrderLifecycleService(db, hub)
    order = await service.update_order(order_id, tenant_id, {"status": OrderStatus.COMPLETED})
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rest_api.models import Area, MenuItem, Order, OrderItem, Table, User
from rest_api.services.crud.repository import OrderItemRepository, TenantRepository
from shared.config.constants import (
    CLOSED_ORDER_STATUSES,
    OrderItemStatus,
    OrderStatus,
    TableStatus,
)
from shared.config.logging import orders_logger as logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import (
    DatabaseError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from shared.utils.schemas import (
    OrderItemOutput,
    OrderOutput,
    TableOutput,
    quantize_money,
)
from ws_gateway.protocol import (
    order_item_updated_message,
    order_updated_message,
    table_updated_message,
)


class BroadcastPublisher(Protocol):
    """Anything that can fan a payload out to one tenant's connections."""

    async def broadcast_to_tenant(self, tenant_id: int, payload: dict[str, Any]) -> int: ...


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


class OrderLifecycleService:
    """
    Apply-mutation funnel for tables, orders and order items.

    `publisher` is normally the FanoutHub; None disables broadcasting
    (CLI, seeding).
    """

    def __init__(self, db: Session, publisher: BroadcastPublisher | None = None):
        self._db = db
        self._publisher = publisher
        self._tables = TenantRepository(Table, db)
        self._orders = TenantRepository(Order, db)
        self._menu_items = TenantRepository(MenuItem, db)
        self._items = OrderItemRepository(db)

    # =========================================================================
    # Tables
    # =========================================================================

    async def set_table_status(
        self, table_id: int, status: TableStatus | str, tenant_id: int
    ) -> TableOutput:
        """Set a table's status and broadcast `table_updated`."""
        return await self.update_table(table_id, tenant_id, {"status": status})

    async def update_table(
        self, table_id: int, tenant_id: int, fields: dict[str, Any]
    ) -> TableOutput:
        """Patch a table (name, area, capacity, position, status) and broadcast it."""
        table_out = await asyncio.to_thread(self._apply_table_update, table_id, tenant_id, fields)
        await self._publish(tenant_id, [table_updated_message(table_out)])
        return table_out

    def _apply_table_update(
        self, table_id: int, tenant_id: int, fields: dict[str, Any]
    ) -> TableOutput:
        table = self._get_table(table_id, tenant_id)

        area_id = fields.get("area_id")
        if area_id is not None and area_id != table.area_id:
            self._require_area(area_id, tenant_id)

        for field_name, value in fields.items():
            if hasattr(table, field_name):
                setattr(table, field_name, _enum_value(value))

        self._commit("update table", table_id=table_id, tenant_id=tenant_id)
        logger.info("Table updated", table_id=table_id, tenant_id=tenant_id, status=table.status)
        return TableOutput.model_validate(table)

    # =========================================================================
    # Orders
    # =========================================================================

    async def open_order(
        self,
        tenant_id: int,
        table_id: int,
        user_id: int,
        customer_count: int = 1,
    ) -> OrderOutput:
        """Open an active order on a table; the table becomes occupied."""
        order_out, table_out = await asyncio.to_thread(
            self._apply_open_order, tenant_id, table_id, user_id, customer_count
        )
        await self._publish(
            tenant_id,
            [table_updated_message(table_out), order_updated_message(order_out)],
        )
        return order_out

    def _apply_open_order(
        self, tenant_id: int, table_id: int, user_id: int, customer_count: int
    ) -> tuple[OrderOutput, TableOutput]:
        table = self._get_table(table_id, tenant_id)

        user = self._db.scalar(
            select(User).where(User.id == user_id, User.tenant_id == tenant_id)
        )
        if user is None:
            raise ValidationError(f"User {user_id} does not belong to this tenant", field="userId")

        order = Order(
            tenant_id=tenant_id,
            table_id=table.id,
            user_id=user_id,
            status=OrderStatus.ACTIVE.value,
            start_time=datetime.now(timezone.utc),
            total_amount=Decimal("0.00"),
            is_paid=False,
            customer_count=customer_count,
        )
        self._db.add(order)
        table.status = TableStatus.OCCUPIED.value

        self._commit("open order", table_id=table_id, tenant_id=tenant_id)
        logger.info("Order opened", order_id=order.id, table_id=table_id, tenant_id=tenant_id)
        return OrderOutput.model_validate(order), TableOutput.model_validate(table)

    async def set_order_status(
        self, order_id: int, status: OrderStatus | str, tenant_id: int
    ) -> OrderOutput:
        """Realtime path: change only the status, with the same side effects as REST."""
        return await self.update_order(order_id, tenant_id, {"status": status})

    async def update_order(
        self, order_id: int, tenant_id: int, fields: dict[str, Any]
    ) -> OrderOutput:
        """
        Patch an order.

        Side effects:
        - completed/cancelled: end_time is stamped if missing and the table
          is freed when no other active order remains on it.
        - an explicit `status=active, is_paid=False` on an order with a
          non-zero total marks the table bill_requested.
        """
        order_out, table_out = await asyncio.to_thread(
            self._apply_order_update, order_id, tenant_id, fields
        )
        messages = [order_updated_message(order_out)]
        if table_out is not None:
            messages.append(table_updated_message(table_out))
        await self._publish(tenant_id, messages)
        return order_out

    def _apply_order_update(
        self, order_id: int, tenant_id: int, fields: dict[str, Any]
    ) -> tuple[OrderOutput, TableOutput | None]:
        order = self._orders.find_by_id(order_id, tenant_id)
        if order is None:
            raise NotFoundError("Order", order_id, tenant_id=tenant_id)

        for field_name, value in fields.items():
            if field_name == "total_amount" and value is not None:
                value = quantize_money(value)
            if hasattr(order, field_name):
                setattr(order, field_name, _enum_value(value))

        table = self._db.get(Table, order.table_id) if order.table_id is not None else None
        previous_table_status = table.status if table is not None else None

        if order.status in {s.value for s in CLOSED_ORDER_STATUSES}:
            if order.end_time is None:
                order.end_time = datetime.now(timezone.utc)
            if table is not None and not self._has_other_active_order(table.id, order.id):
                table.status = TableStatus.EMPTY.value
        elif (
            table is not None
            and _enum_value(fields.get("status")) == OrderStatus.ACTIVE.value
            and fields.get("is_paid") is False
            and quantize_money(order.total_amount) != Decimal("0.00")
        ):
            table.status = TableStatus.BILL_REQUESTED.value

        self._commit("update order", order_id=order_id, tenant_id=tenant_id)
        logger.info("Order updated", order_id=order_id, tenant_id=tenant_id, status=order.status)

        table_out = None
        if table is not None and table.status != previous_table_status:
            table_out = TableOutput.model_validate(table)
        return OrderOutput.model_validate(order), table_out

    def _has_other_active_order(self, table_id: int, order_id: int) -> bool:
        count = self._db.scalar(
            select(func.count())
            .select_from(Order)
            .where(
                Order.table_id == table_id,
                Order.id != order_id,
                Order.status == OrderStatus.ACTIVE.value,
            )
        )
        return bool(count)

    # =========================================================================
    # Order items
    # =========================================================================

    async def add_order_item(
        self,
        order_id: int,
        tenant_id: int,
        menu_item_id: int,
        quantity: int,
        unit_price: Decimal | None = None,
        notes: str | None = None,
    ) -> OrderItemOutput:
        """
        Add a line to an active order.

        The unit price defaults to the menu item's current price and is
        frozen on the line. The order total grows by unit_price * quantity.
        """
        item_out, order_out = await asyncio.to_thread(
            self._apply_add_item, order_id, tenant_id, menu_item_id, quantity, unit_price, notes
        )
        await self._publish(
            tenant_id,
            [order_item_updated_message(item_out), order_updated_message(order_out)],
        )
        return item_out

    def _apply_add_item(
        self,
        order_id: int,
        tenant_id: int,
        menu_item_id: int,
        quantity: int,
        unit_price: Decimal | None,
        notes: str | None,
    ) -> tuple[OrderItemOutput, OrderOutput]:
        order = self._orders.find_by_id(order_id, tenant_id)
        if order is None:
            raise NotFoundError("Order", order_id, tenant_id=tenant_id)
        if order.status != OrderStatus.ACTIVE.value:
            raise InvalidStateError("Order", order.status, [OrderStatus.ACTIVE.value], order_id=order_id)

        menu_item = self._menu_items.find_by_id(menu_item_id, tenant_id, include_inactive=True)
        if menu_item is None:
            raise NotFoundError("Menu item", menu_item_id, tenant_id=tenant_id)

        price = quantize_money(menu_item.price if unit_price is None else unit_price)
        item = OrderItem(
            order_id=order.id,
            menu_item_id=menu_item.id,
            quantity=quantity,
            unit_price=price,
            status=OrderItemStatus.NEW.value,
            notes=notes,
        )
        self._db.add(item)
        order.total_amount = quantize_money(quantize_money(order.total_amount) + price * quantity)

        self._commit("add order item", order_id=order_id, tenant_id=tenant_id)
        logger.info(
            "Order item added",
            order_id=order_id,
            order_item_id=item.id,
            menu_item_id=menu_item_id,
            quantity=quantity,
            total=str(order.total_amount),
        )
        return OrderItemOutput.model_validate(item), OrderOutput.model_validate(order)

    async def set_order_item_status(
        self, item_id: int, status: Any, tenant_id: int
    ) -> OrderItemOutput:
        """Realtime path for kitchen/floor status changes."""
        return await self.update_order_item(item_id, tenant_id, {"status": status})

    async def update_order_item(
        self, item_id: int, tenant_id: int, fields: dict[str, Any]
    ) -> OrderItemOutput:
        """Patch an order line (status, quantity, notes). The order total is not recomputed."""
        item_out = await asyncio.to_thread(self._apply_item_update, item_id, tenant_id, fields)
        await self._publish(tenant_id, [order_item_updated_message(item_out)])
        return item_out

    def _apply_item_update(
        self, item_id: int, tenant_id: int, fields: dict[str, Any]
    ) -> OrderItemOutput:
        item = self._items.find_by_id(item_id, tenant_id)
        if item is None:
            raise NotFoundError("Order item", item_id, tenant_id=tenant_id)

        for field_name, value in fields.items():
            if hasattr(item, field_name):
                setattr(item, field_name, _enum_value(value))

        self._commit("update order item", order_item_id=item_id, tenant_id=tenant_id)
        logger.info("Order item updated", order_item_id=item_id, tenant_id=tenant_id, status=item.status)
        return OrderItemOutput.model_validate(item)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _get_table(self, table_id: int, tenant_id: int) -> Table:
        table = self._tables.find_by_id(table_id, tenant_id, include_inactive=True)
        if table is None:
            raise NotFoundError("Table", table_id, tenant_id=tenant_id)
        return table

    def _require_area(self, area_id: int, tenant_id: int) -> None:
        area = self._db.scalar(
            select(Area).where(Area.id == area_id, Area.tenant_id == tenant_id)
        )
        if area is None:
            raise ValidationError(f"Area {area_id} not found", field="areaId")

    def _commit(self, operation: str, **log_context: Any) -> None:
        try:
            safe_commit(self._db)
        except SQLAlchemyError as e:
            logger.error(f"Failed to {operation}", error=str(e), **log_context)
            raise DatabaseError(operation, **log_context)

    async def _publish(self, tenant_id: int, messages: list[dict[str, Any]]) -> None:
        if self._publisher is None:
            return
        for message in messages:
            try:
                await self._publisher.broadcast_to_tenant(tenant_id, message)
            except Exception as e:
                logger.error(
                    "Failed to broadcast update",
                    tenant_id=tenant_id,
                    message_type=message.get("type"),
                    error=str(e),
                )
