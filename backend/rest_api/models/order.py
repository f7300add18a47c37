"""
Order Models: Order, OrderItem.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import OrderItemStatus, OrderStatus

from .base import MONEY, ZERO, Base, CreatedAtMixin

if TYPE_CHECKING:
    from .table import Table
    from .user import User
    from .catalog import MenuItem


class Order(Base):
    """
    A tab opened against a table.
    Status: active, completed, cancelled (the last two are terminal).
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenants.id"), nullable=False, index=True
    )
    # Nullable for takeaway orders
    table_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("tables.id"), nullable=True, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=OrderStatus.ACTIVE.value, index=True
    )
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_method: Mapped[Optional[str]] = mapped_column(Text)
    customer_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index("ix_orders_tenant_status", "tenant_id", "status"),
        Index("ix_orders_table_status", "table_id", "status"),
        CheckConstraint("total_amount >= 0", name="chk_order_total_non_negative"),
    )

    # Relationships
    table: Mapped[Optional["Table"]] = relationship(back_populates="orders")
    user: Mapped["User"] = relationship(back_populates="orders")
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", order_by="OrderItem.id"
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, table_id={self.table_id}, status='{self.status}', total={self.total_amount})>"


class OrderItem(CreatedAtMixin, Base):
    """
    One line of an order: a quantity of a menu item at a locked-in price.
    Status: new, preparing, served, cancelled. Never deleted.
    """

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("orders.id"), nullable=False, index=True
    )
    menu_item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("menu_items.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # Snapshot of MenuItem.price when the line was added
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=OrderItemStatus.NEW.value, index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_item_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="chk_order_item_price_non_negative"),
    )

    # Relationships
    order: Mapped["Order"] = relationship(back_populates="items")
    menu_item: Mapped["MenuItem"] = relationship(back_populates="order_items")

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, qty={self.quantity}, status='{self.status}')>"
