"""
Floor Services: areas and tables.

Usage:
    from rest_api.services.domain import AreaService, TableService

    areas = AreaService(db).list_all(tenant_id)
    tables = TableService(db).list_by_area(tenant_id, area_id)

Table mutations after creation (status, layout) go through
OrderLifecycleService so they are broadcast.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from rest_api.models import Area, Table
from rest_api.services.base_service import BaseCRUDService
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import AreaOutput, TableOutput


class AreaService(BaseCRUDService[Area, AreaOutput]):
    """Service for floor areas."""

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=Area,
            output_schema=AreaOutput,
            entity_name="Area",
        )


class TableService(BaseCRUDService[Table, TableOutput]):
    """
    Service for table management.

    Business rules:
    - A table belongs to an area of the same tenant
    - New tables start empty unless a status is given
    """

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=Table,
            output_schema=TableOutput,
            entity_name="Table",
        )

    def list_by_area(
        self,
        tenant_id: int,
        area_id: int,
        *,
        include_inactive: bool = False,
    ) -> list[TableOutput]:
        """List tables of one area, ordered by id."""
        return self.list_all(
            tenant_id,
            filters=[Table.area_id == area_id],
            include_inactive=include_inactive,
        )

    def _validate_create(self, data: dict[str, Any], tenant_id: int) -> None:
        area_id = data.get("area_id")
        area = self._db.get(Area, area_id) if area_id is not None else None
        if area is None or area.tenant_id != tenant_id:
            raise ValidationError(f"Area {area_id} not found", field="areaId")

        status = data.get("status")
        if status is not None:
            data["status"] = getattr(status, "value", status)
