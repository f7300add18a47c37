"""
Centralized constants for the backend application.

Status values are closed enums; anything outside them is rejected at the
API and realtime boundaries instead of being persisted verbatim.

Usage:
    from shared.config.constants import TableStatus, OrderStatus

    if order.status in OrderStatus.CLOSED:
        ...
"""

from enum import Enum
from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants."""

    ADMIN: Final[str] = "admin"
    MANAGER: Final[str] = "manager"
    WAITER: Final[str] = "waiter"
    CHEF: Final[str] = "chef"

    ALL: Final[list[str]] = [ADMIN, MANAGER, WAITER, CHEF]


MANAGEMENT_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.MANAGER})


# =============================================================================
# Entity Status Enums
# =============================================================================


class TableStatus(str, Enum):
    """Lifecycle status of a physical table."""

    EMPTY = "empty"
    OCCUPIED = "occupied"
    BILL_REQUESTED = "bill_requested"


class OrderStatus(str, Enum):
    """Lifecycle status of an order (tab)."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Terminal order states; reaching one frees the table
CLOSED_ORDER_STATUSES: Final[frozenset[OrderStatus]] = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
)


class OrderItemStatus(str, Enum):
    """Kitchen status of a single order line."""

    NEW = "new"
    PREPARING = "preparing"
    SERVED = "served"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """Accepted payment methods."""

    CASH = "cash"
    CARD = "card"
    OTHER = "other"


# =============================================================================
# Realtime Message Types
# =============================================================================


class InboundMessageType:
    """Message types a client may send over the realtime channel."""

    AUTH: Final[str] = "auth"
    TABLE_UPDATE: Final[str] = "table_update"
    ORDER_UPDATE: Final[str] = "order_update"
    ORDER_ITEM_UPDATE: Final[str] = "order_item_update"
    PING: Final[str] = "ping"


class OutboundMessageType:
    """Message types the server broadcasts."""

    TABLE_UPDATED: Final[str] = "table_updated"
    ORDER_UPDATED: Final[str] = "order_updated"
    ORDER_ITEM_UPDATED: Final[str] = "order_item_updated"
    PONG: Final[str] = "pong"
    ERROR: Final[str] = "error"


# =============================================================================
# Limits
# =============================================================================


class Limits:
    """Input limits shared by schemas and services."""

    MAX_ORDER_ITEM_QUANTITY: Final[int] = 999
    MAX_CUSTOMER_COUNT: Final[int] = 100
    DEFAULT_TABLE_CAPACITY: Final[int] = 4
    DEFAULT_STATS_DAYS: Final[int] = 7
    MAX_STATS_DAYS: Final[int] = 365
    POPULAR_ITEMS_LIMIT: Final[int] = 5
    # Largest id a BIGINT column (and the SQLite driver) accepts
    MAX_ENTITY_ID: Final[int] = 2**63 - 1
