"""
Repository Pattern for database access.

Provides a clean abstraction layer between business logic and data
access, with built-in multi-tenant isolation.

Usage:
    from rest_api.services.crud.repository import TenantRepository, OrderItemRepository

    table_repo = TenantRepository(Table, db)
    tables = table_repo.find_all(tenant_id=1)
    table = table_repo.find_by_id(5, tenant_id=1)

    # Order lines carry no tenant_id; they are scoped through their order
    item_repo = OrderItemRepository(db)
    item = item_repo.find_by_id(42, tenant_id=1)
"""

from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import select, func, exists as sql_exists
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from rest_api.models import Base, Order, OrderItem

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Base repository providing common database operations.

    Used directly only for entities without tenant isolation (Tenant).
    For multi-tenant entities, use TenantRepository instead.
    """

    def __init__(self, model: type[ModelT], session: Session):
        self._model = model
        self._session = session

    @property
    def model(self) -> type[ModelT]:
        """The SQLAlchemy model class."""
        return self._model

    @property
    def session(self) -> Session:
        """The database session."""
        return self._session

    def _base_query(self) -> Select:
        """Create base select query."""
        return select(self._model)

    def _apply_active_filter(self, query: Select, include_inactive: bool) -> Select:
        """Apply is_active filter if model has it."""
        if hasattr(self._model, "is_active") and not include_inactive:
            query = query.where(self._model.is_active.is_(True))
        return query

    def _apply_options(self, query: Select, options: list[Any] | None) -> Select:
        """Apply eager loading options."""
        if options:
            query = query.options(*options)
        return query

    def _apply_window(
        self,
        query: Select,
        order_by: Any | None,
        limit: int | None,
        offset: int | None,
    ) -> Select:
        if order_by is not None:
            query = query.order_by(order_by)
        else:
            query = query.order_by(self._model.id)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query

    def find_by_id(
        self,
        entity_id: int,
        *,
        options: list[Any] | None = None,
        include_inactive: bool = False,
    ) -> ModelT | None:
        """
        Find entity by primary key.

        Returns:
            Entity or None if not found.
        """
        query = self._base_query().where(self._model.id == entity_id)
        query = self._apply_active_filter(query, include_inactive)
        query = self._apply_options(query, options)
        return self._session.scalar(query)

    def exists(self, entity_id: int) -> bool:
        """Check if entity exists by ID."""
        query = select(sql_exists().where(self._model.id == entity_id))
        return self._session.scalar(query) or False


class TenantRepository(BaseRepository[ModelT]):
    """
    Repository with automatic multi-tenant isolation.

    All queries are filtered by tenant_id to ensure data isolation.
    The model must have a `tenant_id` column.

    Usage:
        repo = TenantRepository(Category, db)
        categories = repo.find_all(tenant_id=1)
    """

    def _tenant_query(self, tenant_id: int) -> Select:
        """Create tenant-filtered base query."""
        if not hasattr(self._model, "tenant_id"):
            raise AttributeError(
                f"Model {self._model.__name__} does not have tenant_id column. "
                "Use BaseRepository instead."
            )
        return self._base_query().where(self._model.tenant_id == tenant_id)

    def find_by_id(
        self,
        entity_id: int,
        tenant_id: int,
        *,
        options: list[Any] | None = None,
        include_inactive: bool = False,
    ) -> ModelT | None:
        """
        Find entity by ID within tenant scope.

        Returns:
            Entity or None if not found or owned by another tenant.
        """
        query = self._tenant_query(tenant_id).where(self._model.id == entity_id)
        query = self._apply_active_filter(query, include_inactive)
        query = self._apply_options(query, options)
        return self._session.scalar(query)

    def find_all(
        self,
        tenant_id: int,
        *,
        filters: list[Any] | None = None,
        options: list[Any] | None = None,
        include_inactive: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        """
        Find all entities within tenant scope.

        Args:
            tenant_id: The tenant ID for isolation.
            filters: Extra WHERE clauses (e.g. `Table.area_id == 3`).
            options: SQLAlchemy loader options.
            include_inactive: Include soft-disabled entities.
            limit: Maximum results.
            offset: Skip count.
            order_by: Order expression (defaults to primary key).

        Returns:
            Sequence of entities.
        """
        query = self._tenant_query(tenant_id)
        if filters:
            query = query.where(*filters)
        query = self._apply_active_filter(query, include_inactive)
        query = self._apply_options(query, options)
        query = self._apply_window(query, order_by, limit, offset)
        return self._session.scalars(query).all()

    def count(
        self,
        tenant_id: int,
        *,
        filters: list[Any] | None = None,
        include_inactive: bool = False,
    ) -> int:
        """Count entities within tenant scope."""
        query = select(func.count()).select_from(self._model).where(
            self._model.tenant_id == tenant_id
        )
        if filters:
            query = query.where(*filters)
        if hasattr(self._model, "is_active") and not include_inactive:
            query = query.where(self._model.is_active.is_(True))
        return self._session.scalar(query) or 0

    def exists(self, entity_id: int, tenant_id: int) -> bool:
        """Check if entity exists within tenant scope."""
        query = select(
            sql_exists().where(
                self._model.id == entity_id,
                self._model.tenant_id == tenant_id,
            )
        )
        return self._session.scalar(query) or False


class OrderItemRepository(BaseRepository[OrderItem]):
    """
    Order lines, scoped to a tenant through their parent order.
    """

    def __init__(self, session: Session):
        super().__init__(OrderItem, session)

    def _tenant_query(self, tenant_id: int) -> Select:
        return (
            select(OrderItem)
            .join(Order, OrderItem.order_id == Order.id)
            .where(Order.tenant_id == tenant_id)
        )

    def find_by_id(
        self,
        entity_id: int,
        tenant_id: int,
        *,
        options: list[Any] | None = None,
    ) -> OrderItem | None:
        """Find an order line whose order belongs to `tenant_id`."""
        query = self._tenant_query(tenant_id).where(OrderItem.id == entity_id)
        query = self._apply_options(query, options)
        return self._session.scalar(query)

    def find_by_order(
        self,
        order_id: int,
        tenant_id: int,
        *,
        options: list[Any] | None = None,
    ) -> Sequence[OrderItem]:
        """All lines of one order, oldest first."""
        query = self._tenant_query(tenant_id).where(OrderItem.order_id == order_id)
        query = self._apply_options(query, options)
        return self._session.scalars(query.order_by(OrderItem.id)).all()
