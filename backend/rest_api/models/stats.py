"""
Reporting Model: daily Stat snapshot per tenant.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import MONEY, ZERO, Base


class Stat(Base):
    """Aggregated figures for one tenant and one calendar day."""

    __tablename__ = "stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenants.id"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, default=dt.date.today)
    daily_revenue: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    customer_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_check: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    # Percentage 0-100
    occupancy_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=ZERO)

    __table_args__ = (
        UniqueConstraint("tenant_id", "date", name="uq_stats_tenant_date"),
    )

    def __repr__(self) -> str:
        return f"<Stat(tenant_id={self.tenant_id}, date={self.date}, revenue={self.daily_revenue})>"
