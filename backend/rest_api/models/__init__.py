"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class and column mixins
- tenant: Tenant
- user: User
- table: Area, Table
- catalog: Category, MenuItem
- order: Order, OrderItem
- stats: Stat
"""

# Base classes
from .base import Base, ActiveMixin, CreatedAtMixin

# Core tenant model
from .tenant import Tenant

# Staff
from .user import User

# Floor
from .table import Area, Table

# Menu
from .catalog import Category, MenuItem

# Orders
from .order import Order, OrderItem

# Reporting
from .stats import Stat

__all__ = [
    "Base",
    "ActiveMixin",
    "CreatedAtMixin",
    "Tenant",
    "User",
    "Area",
    "Table",
    "Category",
    "MenuItem",
    "Order",
    "OrderItem",
    "Stat",
]
