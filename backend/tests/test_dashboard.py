"""
Tests for the dashboard, daily stat rollup and the reports endpoints.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from rest_api.models import MenuItem, Order, OrderItem, Stat
from rest_api.services.domain import DashboardService


DAY = date(2026, 10, 17)
NOON = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def _order(db, tenant, table, user, *, status, total, customers=2, start=NOON):
    order = Order(
        tenant_id=tenant.id,
        table_id=table.id,
        user_id=user.id,
        status=status,
        start_time=start,
        total_amount=Decimal(total),
        is_paid=status == "completed",
        customer_count=customers,
    )
    db.add(order)
    db.commit()
    return order


def _line(db, order, menu_item, quantity, status="new"):
    db.add(OrderItem(
        order_id=order.id,
        menu_item_id=menu_item.id,
        quantity=quantity,
        unit_price=menu_item.price,
        status=status,
    ))
    db.commit()


class TestDashboard:

    def test_empty_restaurant(self, db_session, tenant, tables):
        dashboard = DashboardService(db_session).get_dashboard(tenant.id)

        assert dashboard.daily_revenue == Decimal("0.00")
        assert dashboard.customer_count == 0
        assert len(dashboard.tables) == 5
        assert dashboard.active_orders == []
        assert dashboard.popular_items == []

    def test_active_orders_with_lines_and_duration(self, db_session, tenant, tables, admin_user, kebab):
        now = NOON + timedelta(minutes=25)
        order = _order(db_session, tenant, tables[2], admin_user, status="active", total="100.00")
        _line(db_session, order, kebab, 2)

        dashboard = DashboardService(db_session).get_dashboard(tenant.id, now=now)

        [summary] = dashboard.active_orders
        assert summary.id == order.id
        assert summary.duration == 25
        assert summary.table.name == "Masa 3"
        assert summary.total_amount == Decimal("100.00")
        assert summary.items[0].menu_item.name == "Adana Kebap"

    def test_popular_items_skip_cancelled_lines(self, db_session, tenant, tables, admin_user, kebab, category):
        ayran = MenuItem(tenant_id=tenant.id, category_id=category.id, name="Ayran", price=Decimal("15.00"))
        db_session.add(ayran)
        db_session.commit()
        order = _order(db_session, tenant, tables[0], admin_user, status="active", total="0.00")
        _line(db_session, order, kebab, 2)
        _line(db_session, order, ayran, 1)
        _line(db_session, order, ayran, 5, status="cancelled")

        popular = DashboardService(db_session).get_dashboard(tenant.id).popular_items

        assert [(p.name, p.count) for p in popular] == [("Adana Kebap", 2), ("Ayran", 1)]

    def test_today_stat_is_used(self, db_session, tenant):
        db_session.add(Stat(
            tenant_id=tenant.id,
            date=DAY,
            daily_revenue=Decimal("1250.00"),
            customer_count=31,
            average_check=Decimal("40.32"),
            occupancy_rate=Decimal("70.00"),
        ))
        db_session.commit()

        dashboard = DashboardService(db_session).get_dashboard(tenant.id, now=NOON)

        assert dashboard.daily_revenue == Decimal("1250.00")
        assert dashboard.customer_count == 31


class TestRollup:

    def test_rollup_day(self, db_session, tenant, tables, admin_user):
        _order(db_session, tenant, tables[0], admin_user, status="completed", total="100.00", customers=2)
        _order(db_session, tenant, tables[1], admin_user, status="completed", total="50.00", customers=3)
        _order(db_session, tenant, tables[2], admin_user, status="active", total="20.00")
        _order(db_session, tenant, tables[3], admin_user, status="cancelled", total="80.00")
        # Previous day, not counted
        _order(db_session, tenant, tables[4], admin_user, status="completed", total="999.00",
               start=NOON - timedelta(days=1))

        stat = DashboardService(db_session).rollup_day(tenant.id, DAY)

        assert stat.daily_revenue == Decimal("150.00")
        assert stat.customer_count == 5
        assert stat.average_check == Decimal("75.00")
        # Three of five tables hosted a non-cancelled order
        assert stat.occupancy_rate == Decimal("60.00")

    def test_rollup_is_repeatable(self, db_session, tenant, tables, admin_user):
        service = DashboardService(db_session)
        service.rollup_day(tenant.id, DAY)
        _order(db_session, tenant, tables[0], admin_user, status="completed", total="40.00")

        stat = service.rollup_day(tenant.id, DAY)

        assert stat.daily_revenue == Decimal("40.00")
        assert db_session.query(Stat).filter_by(tenant_id=tenant.id).count() == 1

    def test_no_orders(self, db_session, tenant):
        stat = DashboardService(db_session).rollup_day(tenant.id, DAY)

        assert stat.daily_revenue == Decimal("0.00")
        assert stat.average_check == Decimal("0.00")
        assert stat.occupancy_rate == Decimal("0.00")


class TestReportEndpoints:

    def test_dashboard_endpoint(self, client, tenant, table5, active_order, admin_headers):
        response = client.get(f"/api/tenants/{tenant.id}/dashboard", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["dailyRevenue"] == "0.00"
        assert [o["id"] for o in body["activeOrders"]] == [active_order.id]
        assert body["activeOrders"][0]["table"] == {"id": table5.id, "name": "Masa 5"}
        assert {"tables", "popularItems", "occupancyRate", "averageCheck"} <= set(body)

    def test_stats_endpoint(self, client, db_session, tenant, tables, admin_user, admin_headers):
        _order(db_session, tenant, tables[0], admin_user, status="completed", total="100.00")
        DashboardService(db_session).rollup_day(tenant.id, DAY)

        response = client.get(f"/api/tenants/{tenant.id}/stats", params={"days": 7}, headers=admin_headers)

        assert response.status_code == 200
        [row] = response.json()
        assert row["date"] == "2026-10-17"
        assert row["dailyRevenue"] == "100.00"

    def test_stats_days_bounds(self, client, tenant, admin_headers):
        response = client.get(f"/api/tenants/{tenant.id}/stats", params={"days": 0}, headers=admin_headers)
        assert response.status_code == 400

    def test_other_tenant_dashboard_forbidden(self, client, tenant, other_headers):
        assert client.get(f"/api/tenants/{tenant.id}/dashboard", headers=other_headers).status_code == 403
