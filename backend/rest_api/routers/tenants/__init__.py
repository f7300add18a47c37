"""
Tenant routers - /api/tenants/{tenant_id}, /api/tenants/{tenant_id}/users
"""

from .routes import router

__all__ = ["router"]
