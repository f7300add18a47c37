"""
Dashboard and reporting service.

Usage:
    from rest_api.services.domain import DashboardService

    service = DashboardService(db)
    dashboard = service.get_dashboard(tenant_id)
    history = service.list_stats(tenant_id, days=7)
    service.rollup_day(tenant_id, date.today())
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from rest_api.models import MenuItem, Order, OrderItem, Stat, Table
from shared.config.constants import Limits, OrderItemStatus, OrderStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.utils.schemas import (
    ActiveOrderSummary,
    DashboardOutput,
    OrderItemDetail,
    OrderOutput,
    PopularItem,
    StatOutput,
    TableBrief,
    TableOutput,
    quantize_money,
)

logger = get_logger(__name__)

ZERO = Decimal("0.00")


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


class DashboardService:
    """Read models for the manager dashboard and daily stats."""

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Dashboard
    # =========================================================================

    def get_dashboard(self, tenant_id: int, *, now: datetime | None = None) -> DashboardOutput:
        """
        Today's stat row (zeros when none was rolled up yet), every table,
        active orders with lines and elapsed minutes, and the best sellers.
        """
        now = now or datetime.now(timezone.utc)

        today_stat = self._db.scalar(
            select(Stat).where(Stat.tenant_id == tenant_id, Stat.date == now.date())
        )

        tables = self._db.scalars(
            select(Table).where(Table.tenant_id == tenant_id).order_by(Table.id)
        ).all()

        return DashboardOutput(
            daily_revenue=today_stat.daily_revenue if today_stat else ZERO,
            customer_count=today_stat.customer_count if today_stat else 0,
            average_check=today_stat.average_check if today_stat else ZERO,
            occupancy_rate=today_stat.occupancy_rate if today_stat else ZERO,
            tables=[TableOutput.model_validate(t) for t in tables],
            active_orders=self._active_orders(tenant_id, now),
            popular_items=self._popular_items(tenant_id),
        )

    def _active_orders(self, tenant_id: int, now: datetime) -> list[ActiveOrderSummary]:
        orders = self._db.scalars(
            select(Order)
            .where(Order.tenant_id == tenant_id, Order.status == OrderStatus.ACTIVE.value)
            .options(
                selectinload(Order.table),
                selectinload(Order.items).selectinload(OrderItem.menu_item),
            )
            .order_by(Order.start_time)
        ).all()

        summaries = []
        for order in orders:
            items = [OrderItemDetail.model_validate(i) for i in order.items]
            # Recomputed from the lines, as shown to the floor staff
            total = sum(
                (quantize_money(i.unit_price) * i.quantity for i in order.items),
                ZERO,
            )
            duration = int((now - _as_utc(order.start_time)).total_seconds() // 60)

            data = OrderOutput.model_validate(order).model_dump()
            data.update(
                table=TableBrief.model_validate(order.table) if order.table else None,
                items=items,
                total_amount=quantize_money(total),
                duration=max(duration, 0),
            )
            summaries.append(ActiveOrderSummary(**data))
        return summaries

    def _popular_items(self, tenant_id: int) -> list[PopularItem]:
        """Menu items ranked by quantity ordered (cancelled lines excluded)."""
        ordered = func.coalesce(func.sum(OrderItem.quantity), 0)
        rows = self._db.execute(
            select(MenuItem.id, MenuItem.name, ordered.label("count"))
            .join(OrderItem, OrderItem.menu_item_id == MenuItem.id)
            .where(
                MenuItem.tenant_id == tenant_id,
                OrderItem.status != OrderItemStatus.CANCELLED.value,
            )
            .group_by(MenuItem.id, MenuItem.name)
            .order_by(ordered.desc(), MenuItem.id)
            .limit(Limits.POPULAR_ITEMS_LIMIT)
        ).all()
        return [PopularItem(id=r.id, name=r.name, count=int(r.count)) for r in rows]

    # =========================================================================
    # Stats
    # =========================================================================

    def list_stats(self, tenant_id: int, days: int = Limits.DEFAULT_STATS_DAYS) -> list[StatOutput]:
        """The most recent `days` stat rows, newest first."""
        stats = self._db.scalars(
            select(Stat)
            .where(Stat.tenant_id == tenant_id)
            .order_by(Stat.date.desc())
            .limit(days)
        ).all()
        return [StatOutput.model_validate(s) for s in stats]

    def rollup_day(self, tenant_id: int, day: date) -> StatOutput:
        """
        Compute (or recompute) the stat row of one day from its completed orders.

        Revenue is the sum of completed order totals started that day;
        occupancy is the share of tables that hosted at least one order.
        """
        start, end = _day_bounds(day)
        day_orders = self._db.scalars(
            select(Order).where(
                Order.tenant_id == tenant_id,
                Order.start_time >= start,
                Order.start_time < end,
                Order.status != OrderStatus.CANCELLED.value,
            )
        ).all()
        completed = [o for o in day_orders if o.status == OrderStatus.COMPLETED.value]

        revenue = quantize_money(sum((quantize_money(o.total_amount) for o in completed), ZERO))
        customers = sum(o.customer_count for o in completed)
        average = quantize_money(revenue / len(completed)) if completed else ZERO

        table_count = self._db.scalar(
            select(func.count()).select_from(Table).where(Table.tenant_id == tenant_id)
        ) or 0
        used_tables = {o.table_id for o in day_orders if o.table_id is not None}
        occupancy = (
            quantize_money(Decimal(len(used_tables) * 100) / table_count) if table_count else ZERO
        )

        stat = self._db.scalar(select(Stat).where(Stat.tenant_id == tenant_id, Stat.date == day))
        if stat is None:
            stat = Stat(tenant_id=tenant_id, date=day)
            self._db.add(stat)
        stat.daily_revenue = revenue
        stat.customer_count = customers
        stat.average_check = average
        stat.occupancy_rate = occupancy
        safe_commit(self._db)

        logger.info(
            "Daily stats rolled up",
            tenant_id=tenant_id,
            day=day.isoformat(),
            revenue=str(revenue),
            orders=len(completed),
        )
        return StatOutput.model_validate(stat)
