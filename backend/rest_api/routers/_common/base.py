"""
Session and tenant-scope dependencies for routers.

Routes addressed by tenant (`/api/tenants/{tenant_id}/...`) use
`tenant_scope`; routes addressed by entity id scope their lookups to the
session tenant, so another tenant's entity is simply not found.
"""

from typing import Annotated, Any

from fastapi import Depends, Path

from shared.config.constants import Limits, MANAGEMENT_ROLES
from shared.security.auth import current_user_context, require_roles, require_tenant


# Entity id in a URL path; out-of-range ids fail validation (400) before any query
PathId = Annotated[int, Path(gt=0, le=Limits.MAX_ENTITY_ID)]


def get_user_id(ctx: dict[str, Any]) -> int:
    """Extract the user ID from the session claims."""
    return int(ctx["sub"])


def tenant_scope(tenant_id: PathId, ctx: dict[str, Any] = Depends(current_user_context)) -> dict[str, Any]:
    """Session claims, after checking the path tenant is the session's tenant (403 otherwise)."""
    require_tenant(ctx, tenant_id)
    return ctx


def management_scope(ctx: dict[str, Any] = Depends(tenant_scope)) -> dict[str, Any]:
    """Tenant scope restricted to admins and managers."""
    require_roles(ctx, sorted(MANAGEMENT_ROLES))
    return ctx


def require_management(ctx: dict[str, Any] = Depends(current_user_context)) -> dict[str, Any]:
    """Admin/manager session for routes without a tenant in the path."""
    require_roles(ctx, sorted(MANAGEMENT_ROLES))
    return ctx
