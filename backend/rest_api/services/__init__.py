"""
Services module for business logic.

- domain/: Application services (business logic), including the order
  lifecycle funnel shared by REST and realtime writes
- crud/: Repository pattern with tenant isolation

Usage:
    from rest_api.services.domain import TableService
    service = TableService(db)
    tables = service.list_all(tenant_id)
"""

from .domain import (
    AreaService,
    TableService,
    CategoryService,
    MenuItemService,
    StaffService,
    OrderService,
    DashboardService,
    OrderLifecycleService,
)

from .base_service import BaseService, BaseCRUDService

__all__ = [
    "AreaService",
    "TableService",
    "CategoryService",
    "MenuItemService",
    "StaffService",
    "OrderService",
    "DashboardService",
    "OrderLifecycleService",
    "BaseService",
    "BaseCRUDService",
]
