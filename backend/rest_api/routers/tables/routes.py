"""
Floor plan endpoints: areas and tables.

Table changes after creation are applied through OrderLifecycleService
so every connected client of the restaurant sees them.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rest_api.routers._common import PathId, management_scope, tenant_scope
from rest_api.services.domain import AreaService, OrderLifecycleService, TableService
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.schemas import AreaCreate, AreaOutput, TableCreate, TableOutput, TableUpdate
from ws_gateway.connection_manager import FanoutHub, get_hub


router = APIRouter(prefix="/api", tags=["tables"])


# =============================================================================
# Areas
# =============================================================================


@router.get("/tenants/{tenant_id}/areas", response_model=list[AreaOutput])
def list_areas(
    tenant_id: PathId,
    ctx: dict[str, Any] = Depends(tenant_scope),
    db: Session = Depends(get_db),
) -> list[AreaOutput]:
    return AreaService(db).list_all(tenant_id)


@router.post("/tenants/{tenant_id}/areas", response_model=AreaOutput, status_code=status.HTTP_201_CREATED)
def create_area(
    tenant_id: PathId,
    body: AreaCreate,
    ctx: dict[str, Any] = Depends(management_scope),
    db: Session = Depends(get_db),
) -> AreaOutput:
    return AreaService(db).create(body.model_dump(), tenant_id)


@router.get("/areas/{area_id}/tables", response_model=list[TableOutput])
def list_area_tables(
    area_id: PathId,
    ctx: dict[str, Any] = Depends(current_user_context),
    db: Session = Depends(get_db),
) -> list[TableOutput]:
    tenant_id = ctx["tenant_id"]
    # 404 for unknown areas or areas of another restaurant
    AreaService(db).get_entity(area_id, tenant_id)
    return TableService(db).list_by_area(tenant_id, area_id)


# =============================================================================
# Tables
# =============================================================================


@router.get("/tenants/{tenant_id}/tables", response_model=list[TableOutput])
def list_tables(
    tenant_id: PathId,
    ctx: dict[str, Any] = Depends(tenant_scope),
    db: Session = Depends(get_db),
) -> list[TableOutput]:
    return TableService(db).list_all(tenant_id)


@router.post("/tenants/{tenant_id}/tables", response_model=TableOutput, status_code=status.HTTP_201_CREATED)
def create_table(
    tenant_id: PathId,
    body: TableCreate,
    ctx: dict[str, Any] = Depends(management_scope),
    db: Session = Depends(get_db),
) -> TableOutput:
    return TableService(db).create(body.model_dump(), tenant_id)


@router.patch("/tables/{table_id}", response_model=TableOutput)
async def update_table(
    table_id: PathId,
    body: TableUpdate,
    ctx: dict[str, Any] = Depends(current_user_context),
    db: Session = Depends(get_db),
    hub: FanoutHub = Depends(get_hub),
) -> TableOutput:
    """Change a table's status or layout and broadcast `table_updated`."""
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    return await OrderLifecycleService(db, hub).update_table(table_id, ctx["tenant_id"], fields)
