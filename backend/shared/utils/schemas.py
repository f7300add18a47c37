"""
Shared Pydantic schemas used across the application.

Wire format is camelCase (`tenantId`, `totalAmount`, ...) and money is a
string with two decimals ("100.00"). Models accept both the camelCase
alias and the Python field name on input.
"""

from datetime import date as calendar_date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from shared.config.constants import (
    Limits,
    OrderItemStatus,
    OrderStatus,
    PaymentMethod,
    Roles,
    TableStatus,
)
from shared.utils.validators import sanitize_text, validate_image_url


# =============================================================================
# Common Types
# =============================================================================

CENT = Decimal("0.01")


def quantize_money(value: Decimal | int | float | str) -> Decimal:
    """Round a money amount to two decimal places."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _format_money(value: Decimal) -> str:
    return f"{quantize_money(value):.2f}"


Money = Annotated[Decimal, PlainSerializer(_format_money, return_type=str, when_used="json")]

# Ids sent by clients; out-of-range values are rejected before reaching the database
EntityId = Annotated[int, Field(gt=0, le=Limits.MAX_ENTITY_ID)]


class CamelModel(BaseModel):
    """Base model: camelCase aliases, ORM attribute loading."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-safe dict with camelCase keys, as sent to clients."""
        return self.model_dump(mode="json", by_alias=True)


class ErrorResponse(BaseModel):
    """Standard error body."""

    message: str


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(CamelModel):
    """Login request body."""

    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=200)


class RegisterRequest(CamelModel):
    """Registration request body. New accounts are tenant admins."""

    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=200)
    full_name: str = Field(min_length=1, max_length=200)
    tenant_id: EntityId
    role: str = Roles.ADMIN

    @field_validator("role")
    @classmethod
    def _known_role(cls, v: str) -> str:
        if v not in Roles.ALL:
            raise ValueError(f"role must be one of {', '.join(Roles.ALL)}")
        return v


class UserOutput(CamelModel):
    """User as exposed over the API. Never carries the password hash."""

    id: int
    tenant_id: int
    username: str
    full_name: str
    role: str
    is_active: bool = True


class CurrentUser(CamelModel):
    """Body of GET /api/user."""

    id: int
    username: str
    full_name: str
    role: str
    tenant_id: int


# =============================================================================
# Tenant / Floor Schemas
# =============================================================================


class TenantOutput(CamelModel):
    id: int
    name: str
    logo: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    theme_color: str | None = None
    created_at: datetime | None = None


class AreaCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    is_active: bool = True


class AreaOutput(CamelModel):
    id: int
    tenant_id: int
    name: str
    is_active: bool


class TableCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    area_id: EntityId
    capacity: int = Field(default=Limits.DEFAULT_TABLE_CAPACITY, ge=1, le=Limits.MAX_CUSTOMER_COUNT)
    pos_x: int | None = 0
    pos_y: int | None = 0
    status: TableStatus = TableStatus.EMPTY
    is_active: bool = True


class TableUpdate(CamelModel):
    """Partial update; only fields present in the request are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    area_id: EntityId | None = None
    capacity: int | None = Field(default=None, ge=1, le=Limits.MAX_CUSTOMER_COUNT)
    pos_x: int | None = None
    pos_y: int | None = None
    status: TableStatus | None = None
    is_active: bool | None = None


class TableOutput(CamelModel):
    id: int
    tenant_id: int
    area_id: int
    name: str
    capacity: int
    pos_x: int | None = None
    pos_y: int | None = None
    status: TableStatus
    is_active: bool


# =============================================================================
# Menu Schemas
# =============================================================================


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    image: str | None = None
    sort_order: int = 0
    is_active: bool = True

    check_image = field_validator("image")(validate_image_url)


class CategoryOutput(CamelModel):
    id: int
    tenant_id: int
    name: str
    image: str | None = None
    sort_order: int
    is_active: bool


class MenuItemCreate(CamelModel):
    category_id: EntityId
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    image: str | None = None
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    preparation_time: int | None = Field(default=None, ge=0)
    is_available: bool = True
    is_active: bool = True

    check_image = field_validator("image")(validate_image_url)


class MenuItemUpdate(CamelModel):
    category_id: EntityId | None = None
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    image: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    preparation_time: int | None = Field(default=None, ge=0)
    is_available: bool | None = None
    is_active: bool | None = None

    check_image = field_validator("image")(validate_image_url)


class MenuItemOutput(CamelModel):
    id: int
    tenant_id: int
    category_id: int
    name: str
    description: str | None = None
    image: str | None = None
    price: Money
    preparation_time: int | None = None
    is_available: bool
    is_active: bool


class MenuItemBrief(CamelModel):
    """Menu item summary embedded in order lines."""

    id: int
    name: str
    price: Money


# =============================================================================
# Order Schemas
# =============================================================================


class OrderCreate(CamelModel):
    table_id: EntityId
    user_id: EntityId | None = None  # defaults to the session user
    customer_count: int = Field(default=1, ge=1, le=Limits.MAX_CUSTOMER_COUNT)


class OrderUpdate(CamelModel):
    """Partial update; only fields present in the request are applied."""

    status: OrderStatus | None = None
    end_time: datetime | None = None
    total_amount: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    is_paid: bool | None = None
    payment_method: PaymentMethod | None = None
    customer_count: int | None = Field(default=None, ge=1, le=Limits.MAX_CUSTOMER_COUNT)


class OrderOutput(CamelModel):
    id: int
    tenant_id: int
    table_id: int | None = None
    user_id: int
    status: OrderStatus
    start_time: datetime | None = None
    end_time: datetime | None = None
    total_amount: Money
    is_paid: bool
    payment_method: str | None = None
    customer_count: int


class OrderItemCreate(CamelModel):
    menu_item_id: EntityId
    quantity: int = Field(default=1, ge=1, le=Limits.MAX_ORDER_ITEM_QUANTITY)
    # Defaults to the menu item's current price
    unit_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    notes: str | None = Field(default=None, max_length=500)

    clean_notes = field_validator("notes")(sanitize_text)


class OrderItemUpdate(CamelModel):
    quantity: int | None = Field(default=None, ge=1, le=Limits.MAX_ORDER_ITEM_QUANTITY)
    status: OrderItemStatus | None = None
    notes: str | None = Field(default=None, max_length=500)

    clean_notes = field_validator("notes")(sanitize_text)


class OrderItemOutput(CamelModel):
    id: int
    order_id: int
    menu_item_id: int
    quantity: int
    unit_price: Money
    status: OrderItemStatus
    notes: str | None = None
    created_at: datetime | None = None


class OrderItemDetail(OrderItemOutput):
    """Order line with its menu item embedded."""

    menu_item: MenuItemBrief | None = None


# =============================================================================
# Dashboard / Stats Schemas
# =============================================================================


class StatOutput(CamelModel):
    id: int
    tenant_id: int
    date: calendar_date
    daily_revenue: Money
    customer_count: int
    average_check: Money
    occupancy_rate: Decimal


class TableBrief(CamelModel):
    id: int
    name: str


class ActiveOrderSummary(OrderOutput):
    """Active order on the dashboard with its table, lines and elapsed minutes."""

    table: TableBrief | None = None
    items: list[OrderItemDetail]
    duration: int  # minutes since start_time


class PopularItem(CamelModel):
    id: int
    name: str
    count: int


class DashboardOutput(CamelModel):
    """Today's figures plus the live floor state."""

    daily_revenue: Money
    customer_count: int
    average_check: Money
    occupancy_rate: Decimal
    tables: list[TableOutput]
    active_orders: list[ActiveOrderSummary]
    popular_items: list[PopularItem]
