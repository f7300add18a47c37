"""
Common dependencies shared across routers.
"""

from .base import (
    PathId,
    get_user_id,
    management_scope,
    require_management,
    tenant_scope,
)

__all__ = [
    "PathId",
    "get_user_id",
    "management_scope",
    "require_management",
    "tenant_scope",
]
