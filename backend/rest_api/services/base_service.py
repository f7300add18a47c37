"""
Base Service Classes.

Provides base classes for application services that:
- Use Repository for data access (not direct queries)
- Convert ORM entities to camelCase output schemas
- Handle business logic and orchestration

Architecture:
    Router (thin) → Service (business logic) → Repository (data access) → Model

Usage:
    from rest_api.services.base_service import BaseCRUDService

    class CategoryService(BaseCRUDService[Category, CategoryOutput]):
        def __init__(self, db: Session):
            super().__init__(
                db=db,
                model=Category,
                output_schema=CategoryOutput,
                entity_name="Category",
            )
"""

from __future__ import annotations

from abc import ABC
from typing import Any, Generic, TypeVar, Type

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rest_api.models import Base
from rest_api.services.crud.repository import TenantRepository
from shared.infrastructure.db import safe_commit
from shared.config.logging import get_logger
from shared.utils.exceptions import NotFoundError, DatabaseError

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
OutputT = TypeVar("OutputT", bound=BaseModel)


class BaseService(ABC, Generic[ModelT]):
    """
    Abstract base service for domain operations.

    Subclasses implement specific business logic while this class
    provides common infrastructure (repository access, logging).
    """

    def __init__(self, db: Session, model: Type[ModelT]):
        self._db = db
        self._model = model
        self._repo = TenantRepository(model, db)

    @property
    def db(self) -> Session:
        """Database session."""
        return self._db

    @property
    def repo(self) -> TenantRepository[ModelT]:
        """Repository for data access."""
        return self._repo


class BaseCRUDService(BaseService[ModelT], Generic[ModelT, OutputT]):
    """
    Base service for tenant-scoped entities with create/read/update.

    Entities are never hard-deleted; they are hidden with `is_active=False`
    through `update`.
    """

    def __init__(
        self,
        db: Session,
        model: Type[ModelT],
        output_schema: Type[OutputT],
        entity_name: str,
    ):
        super().__init__(db, model)
        self._output_schema = output_schema
        self._entity_name = entity_name

    @property
    def entity_name(self) -> str:
        """Human-readable entity name for messages."""
        return self._entity_name

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_entity(
        self,
        entity_id: int,
        tenant_id: int,
        *,
        options: list[Any] | None = None,
        include_inactive: bool = True,
    ) -> ModelT:
        """
        Get raw entity within the tenant.

        Raises:
            NotFoundError: If entity not found or owned by another tenant.
        """
        entity = self._repo.find_by_id(
            entity_id,
            tenant_id,
            options=options,
            include_inactive=include_inactive,
        )
        if entity is None:
            raise NotFoundError(self._entity_name, entity_id, tenant_id=tenant_id)
        return entity

    def list_all(
        self,
        tenant_id: int,
        *,
        filters: list[Any] | None = None,
        include_inactive: bool = False,
        order_by: Any | None = None,
    ) -> list[OutputT]:
        """List entities for tenant."""
        entities = self._repo.find_all(
            tenant_id,
            filters=filters,
            include_inactive=include_inactive,
            order_by=order_by,
        )
        return [self.to_output(e) for e in entities]

    # =========================================================================
    # Write Operations
    # =========================================================================

    def create(self, data: dict[str, Any], tenant_id: int) -> OutputT:
        """
        Create new entity within the tenant.

        Raises:
            ValidationError: If data is invalid.
            DatabaseError: If creation fails.
        """
        self._validate_create(data, tenant_id)

        data["tenant_id"] = tenant_id
        entity = self._model(**data)
        self._db.add(entity)
        self._commit(entity, "create", tenant_id=tenant_id)

        logger.info(f"{self._entity_name} created", entity_id=entity.id, tenant_id=tenant_id)
        return self.to_output(entity)

    def update(self, entity_id: int, data: dict[str, Any], tenant_id: int) -> OutputT:
        """
        Apply a partial update.

        Raises:
            NotFoundError: If entity not found.
            ValidationError: If data is invalid.
            DatabaseError: If update fails.
        """
        entity = self.get_entity(entity_id, tenant_id)
        self._validate_update(entity, data, tenant_id)

        for field_name, value in data.items():
            if hasattr(entity, field_name):
                setattr(entity, field_name, value)

        self._commit(entity, "update", entity_id=entity_id)
        return self.to_output(entity)

    # =========================================================================
    # Transformation
    # =========================================================================

    def to_output(self, entity: ModelT) -> OutputT:
        """Convert entity to output DTO."""
        return self._output_schema.model_validate(entity)

    # =========================================================================
    # Validation Hooks (override in subclasses)
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], tenant_id: int) -> None:
        """Validate data before create. Raises ValidationError."""
        pass

    def _validate_update(self, entity: ModelT, data: dict[str, Any], tenant_id: int) -> None:
        """Validate data before update. Raises ValidationError."""
        pass

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _commit(self, entity: ModelT, operation: str, **log_context: Any) -> None:
        try:
            safe_commit(self._db)
            self._db.refresh(entity)
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to {operation} {self._entity_name}",
                error=str(e),
                **log_context,
            )
            raise DatabaseError(f"{operation} {self._entity_name.lower()}")
