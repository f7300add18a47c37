"""
Tenant and staff listing endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rest_api.routers._common import PathId, management_scope, tenant_scope
from rest_api.services.domain import StaffService
from shared.infrastructure.db import get_db
from shared.utils.schemas import TenantOutput, UserOutput


router = APIRouter(prefix="/api/tenants", tags=["tenants"])


@router.get("/{tenant_id}", response_model=TenantOutput)
def get_tenant(
    tenant_id: PathId,
    ctx: dict[str, Any] = Depends(tenant_scope),
    db: Session = Depends(get_db),
) -> TenantOutput:
    return StaffService(db).get_tenant(tenant_id)


@router.get("/{tenant_id}/users", response_model=list[UserOutput])
def list_users(
    tenant_id: PathId,
    ctx: dict[str, Any] = Depends(management_scope),
    db: Session = Depends(get_db),
) -> list[UserOutput]:
    """Staff of the restaurant. Password hashes are never included."""
    return StaffService(db).list_users(tenant_id)
