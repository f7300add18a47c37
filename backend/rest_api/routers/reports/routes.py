"""
Dashboard and statistics endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rest_api.routers._common import PathId, tenant_scope
from rest_api.services.domain import DashboardService
from shared.config.constants import Limits
from shared.infrastructure.db import get_db
from shared.utils.schemas import DashboardOutput, StatOutput


router = APIRouter(prefix="/api/tenants", tags=["reports"])


@router.get("/{tenant_id}/dashboard", response_model=DashboardOutput)
def get_dashboard(
    tenant_id: PathId,
    ctx: dict[str, Any] = Depends(tenant_scope),
    db: Session = Depends(get_db),
) -> DashboardOutput:
    """Today's revenue figures, the floor and the best sellers."""
    return DashboardService(db).get_dashboard(tenant_id)


@router.get("/{tenant_id}/stats", response_model=list[StatOutput])
def list_stats(
    tenant_id: PathId,
    days: int = Query(default=Limits.DEFAULT_STATS_DAYS, ge=1, le=Limits.MAX_STATS_DAYS),
    ctx: dict[str, Any] = Depends(tenant_scope),
    db: Session = Depends(get_db),
) -> list[StatOutput]:
    return DashboardService(db).list_stats(tenant_id, days)
