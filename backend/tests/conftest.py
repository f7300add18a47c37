"""
Pytest configuration and fixtures for backend tests.

The application runs against SQLite in-memory (one shared connection, see
shared.infrastructure.db.build_engine). Environment overrides must be set
before any application module is imported.
"""

import os

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ.setdefault("ENVIRONMENT", "test")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from rest_api.main import app
from rest_api.models import (
    Area,
    Base,
    Category,
    MenuItem,
    Order,
    Table,
    Tenant,
    User,
)
from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal, engine
from shared.security.auth import sign_session_token
from shared.security.password import hash_password
from shared.security.rate_limit import limiter


TEST_PASSWORD = "testpass123"
_TEST_HASH = hash_password(TEST_PASSWORD, rounds=4)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database for each test.
    The session shares the application's in-memory connection.
    """
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    limiter.reset()
    yield


@pytest.fixture(scope="function")
def client(db_session):
    """Test client; entering it runs the lifespan so the realtime hub exists."""
    with TestClient(app) as test_client:
        yield test_client


def session_headers(user: User) -> dict[str, str]:
    """Cookie header carrying a session for `user`."""
    token = sign_session_token(
        user_id=user.id,
        tenant_id=user.tenant_id,
        role=user.role,
        username=user.username,
    )
    return {"cookie": f"{settings.session_cookie_name}={token}"}


# =============================================================================
# Tenants and staff
# =============================================================================


def _make_user(db, tenant, username, role):
    user = User(
        tenant_id=tenant.id,
        username=username,
        password=_TEST_HASH,
        full_name=username.title(),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def tenant(db_session):
    tenant = Tenant(name="Test Restaurant", theme_color="#4F46E5")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture
def other_tenant(db_session):
    tenant = Tenant(name="Other Restaurant")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture
def admin_user(db_session, tenant):
    return _make_user(db_session, tenant, "admin", "admin")


@pytest.fixture
def waiter_user(db_session, tenant):
    return _make_user(db_session, tenant, "waiter", "waiter")


@pytest.fixture
def other_admin(db_session, other_tenant):
    return _make_user(db_session, other_tenant, "other-admin", "admin")


@pytest.fixture
def admin_headers(admin_user):
    return session_headers(admin_user)


@pytest.fixture
def waiter_headers(waiter_user):
    return session_headers(waiter_user)


@pytest.fixture
def other_headers(other_admin):
    return session_headers(other_admin)


# =============================================================================
# Floor and menu
# =============================================================================


@pytest.fixture
def area(db_session, tenant):
    area = Area(tenant_id=tenant.id, name="İç Alan", is_active=True)
    db_session.add(area)
    db_session.commit()
    return area


@pytest.fixture
def tables(db_session, tenant, area):
    """Five empty tables; tables[4] is "Masa 5"."""
    created = [
        Table(
            tenant_id=tenant.id,
            area_id=area.id,
            name=f"Masa {i}",
            capacity=4,
            pos_x=0,
            pos_y=0,
            status="empty",
            is_active=True,
        )
        for i in range(1, 6)
    ]
    db_session.add_all(created)
    db_session.commit()
    return created


@pytest.fixture
def table5(tables):
    return tables[4]


@pytest.fixture
def other_table(db_session, other_tenant):
    area = Area(tenant_id=other_tenant.id, name="Terrace", is_active=True)
    db_session.add(area)
    db_session.flush()
    table = Table(tenant_id=other_tenant.id, area_id=area.id, name="T1", capacity=2, status="empty")
    db_session.add(table)
    db_session.commit()
    return table


@pytest.fixture
def category(db_session, tenant):
    category = Category(tenant_id=tenant.id, name="Ana Yemekler", sort_order=2, is_active=True)
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def kebab(db_session, tenant, category):
    """Menu item priced 50.00."""
    item = MenuItem(
        tenant_id=tenant.id,
        category_id=category.id,
        name="Adana Kebap",
        price=Decimal("50.00"),
        preparation_time=15,
        is_available=True,
        is_active=True,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture
def active_order(db_session, tenant, table5, admin_user):
    """Active order on table 5; the table is occupied."""
    order = Order(
        tenant_id=tenant.id,
        table_id=table5.id,
        user_id=admin_user.id,
        status="active",
        total_amount=Decimal("0.00"),
        is_paid=False,
        customer_count=2,
    )
    table5.status = "occupied"
    db_session.add(order)
    db_session.commit()
    return order


def reload(db_session, instance):
    """Re-read an instance after the application committed changes."""
    db_session.expire_all()
    return db_session.get(type(instance), instance.id)
