"""
Multi-Tenancy Model: Tenant.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin

if TYPE_CHECKING:
    from .user import User
    from .table import Area, Table


class Tenant(CreatedAtMixin, Base):
    """
    One restaurant: the isolation boundary for data and realtime fanout.
    All other entities belong to a tenant. Tenants are never deleted.
    """

    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    logo: Mapped[Optional[str]] = mapped_column(Text)
    address: Mapped[Optional[str]] = mapped_column(Text)
    phone: Mapped[Optional[str]] = mapped_column(Text)
    email: Mapped[Optional[str]] = mapped_column(Text)
    theme_color: Mapped[Optional[str]] = mapped_column(Text, default="#4F46E5")

    # Relationships
    users: Mapped[list["User"]] = relationship(back_populates="tenant")
    areas: Mapped[list["Area"]] = relationship(back_populates="tenant")
    tables: Mapped[list["Table"]] = relationship(back_populates="tenant")

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name='{self.name}')>"
