"""
Domain Services - Application Layer.

Services contain business logic and orchestrate operations.
They use Repositories for data access.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Every table/order/order-item mutation goes through OrderLifecycleService,
which persists and then broadcasts to the tenant's realtime connections.
"""

from .table_service import AreaService, TableService
from .category_service import CategoryService, MenuItemService
from .staff_service import StaffService
from .order_service import OrderService
from .dashboard_service import DashboardService
from .lifecycle import OrderLifecycleService, BroadcastPublisher

__all__ = [
    "AreaService",
    "TableService",
    "CategoryService",
    "MenuItemService",
    "StaffService",
    "OrderService",
    "DashboardService",
    "OrderLifecycleService",
    "BroadcastPublisher",
]
