"""
CRUD infrastructure: tenant-scoped repositories.
"""

from .repository import BaseRepository, TenantRepository, OrderItemRepository

__all__ = [
    "BaseRepository",
    "TenantRepository",
    "OrderItemRepository",
]
