"""
Base class and shared column mixins for all SQLAlchemy ORM models.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Money columns: exact decimals, two places
MONEY = Numeric(10, 2, asdecimal=True)
ZERO = Decimal("0.00")


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ActiveMixin:
    """
    Soft-disable flag shared by catalog and floor entities.

    Rows are never deleted; `is_active=False` hides them from listings.
    """

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        id_val = getattr(self, "id", None)
        active = "active" if self.is_active else "inactive"
        return f"<{class_name}(id={id_val}, {active})>"


class CreatedAtMixin:
    """Server-side creation timestamp."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
