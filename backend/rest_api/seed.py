"""
Seed data for development and testing.
Creates a demo restaurant: tenant, admin user, two areas with ten tables,
four menu categories and their menu items.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import Area, Category, MenuItem, Table, Tenant, User
from shared.config.constants import Roles, TableStatus
from shared.config.logging import get_logger
from shared.security.password import hash_password

logger = get_logger(__name__)


DEMO_TENANT_NAME = "Demo Restaurant"
DEMO_USERNAME = "admin"
DEMO_PASSWORD = "password"

# Floor plan grid: three tables per row
TABLE_COUNT = 10
INDOOR_TABLE_COUNT = 6
TABLES_PER_ROW = 3
TABLE_SPACING_X = 150
TABLE_SPACING_Y = 120

CATEGORY_NAMES = ["İçecekler", "Başlangıçlar", "Ana Yemekler", "Tatlılar"]

# (name, category index, price, preparation minutes)
MENU_ITEMS = [
    ("Ayran", 0, "15.00", 1),
    ("Kola", 0, "20.00", 1),
    ("Çay", 0, "10.00", 3),
    ("Mercimek Çorbası", 1, "35.00", 5),
    ("Salata", 1, "40.00", 7),
    ("Adana Kebap", 2, "150.00", 15),
    ("Pide", 2, "80.00", 12),
    ("Tavuk Şiş", 2, "120.00", 15),
    ("Künefe", 3, "60.00", 10),
    ("Baklava", 3, "75.00", 5),
]


def table_position(number: int) -> tuple[int, int]:
    """Grid position of table `number` (1-based) on the floor plan."""
    index = number - 1
    return (index % TABLES_PER_ROW) * TABLE_SPACING_X, (index // TABLES_PER_ROW) * TABLE_SPACING_Y


def seed(db: Session, *, password_rounds: int = 12) -> Tenant | None:
    """
    Seed the demo restaurant.
    Idempotent: does nothing when any tenant already exists.

    Returns:
        The created tenant, or None when the database was already seeded.
    """
    if db.scalar(select(Tenant.id).limit(1)) is not None:
        logger.info("Database already seeded, skipping")
        return None

    logger.info("Seeding database with demo data")

    tenant = Tenant(
        name=DEMO_TENANT_NAME,
        address="123 Main St, Example City",
        phone="+90 555 123 4567",
        email="info@demorestaurant.com",
        theme_color="#4F46E5",
    )
    db.add(tenant)
    db.flush()

    db.add(
        User(
            tenant_id=tenant.id,
            username=DEMO_USERNAME,
            password=hash_password(DEMO_PASSWORD, rounds=password_rounds),
            full_name="Admin User",
            role=Roles.ADMIN,
            is_active=True,
        )
    )

    indoor = Area(tenant_id=tenant.id, name="İç Alan", is_active=True)
    outdoor = Area(tenant_id=tenant.id, name="Dış Alan", is_active=True)
    db.add_all([indoor, outdoor])
    db.flush()

    for number in range(1, TABLE_COUNT + 1):
        pos_x, pos_y = table_position(number)
        db.add(
            Table(
                tenant_id=tenant.id,
                area_id=indoor.id if number <= INDOOR_TABLE_COUNT else outdoor.id,
                name=f"Masa {number}",
                capacity=4,
                pos_x=pos_x,
                pos_y=pos_y,
                status=TableStatus.EMPTY.value,
                is_active=True,
            )
        )

    categories = [
        Category(tenant_id=tenant.id, name=name, sort_order=index, is_active=True)
        for index, name in enumerate(CATEGORY_NAMES)
    ]
    db.add_all(categories)
    db.flush()

    for name, category_index, price, prep_time in MENU_ITEMS:
        db.add(
            MenuItem(
                tenant_id=tenant.id,
                category_id=categories[category_index].id,
                name=name,
                price=Decimal(price),
                preparation_time=prep_time,
                is_available=True,
                is_active=True,
            )
        )

    db.commit()
    logger.info(
        "Demo data seeded",
        tenant_id=tenant.id,
        tables=TABLE_COUNT,
        categories=len(CATEGORY_NAMES),
        menu_items=len(MENU_ITEMS),
    )
    return tenant
