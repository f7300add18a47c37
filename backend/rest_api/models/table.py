"""
Floor Models: Area, Table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import TableStatus

from .base import ActiveMixin, Base

if TYPE_CHECKING:
    from .tenant import Tenant
    from .order import Order


class Area(ActiveMixin, Base):
    """A named floor zone grouping tables (indoor, terrace, ...)."""

    __tablename__ = "areas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenants.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)

    # Relationships
    tenant: Mapped["Tenant"] = relationship(back_populates="areas")
    tables: Mapped[list["Table"]] = relationship(back_populates="area")


class Table(ActiveMixin, Base):
    """
    Physical table on the floor.
    Status: empty, occupied, bill_requested.
    """

    __tablename__ = "tables"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenants.id"), nullable=False, index=True
    )
    area_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("areas.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)  # "Masa 5", "Terrace 2"
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    # Floor-plan coordinates in pixels
    pos_x: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    pos_y: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=TableStatus.EMPTY.value, index=True
    )

    __table_args__ = (
        Index("ix_tables_tenant_status", "tenant_id", "status"),
    )

    # Relationships
    tenant: Mapped["Tenant"] = relationship(back_populates="tables")
    area: Mapped["Area"] = relationship(back_populates="tables")
    orders: Mapped[list["Order"]] = relationship(back_populates="table")

    def __repr__(self) -> str:
        return f"<Table(id={self.id}, name='{self.name}', status='{self.status}', tenant_id={self.tenant_id})>"
