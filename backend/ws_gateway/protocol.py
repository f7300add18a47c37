"""
Realtime message protocol.

Frames are JSON text objects `{"type": ..., ...fields}` with camelCase
field names. Inbound messages are validated against closed status enums
before anything is persisted; outbound builders wrap the canonical
entity under a single key.

Inbound:
    auth{tenantId}
    table_update{tableId, status}
    order_update{orderId, status}
    order_item_update{orderItemId, status}
    ping

Outbound:
    table_updated{table}
    order_updated{order}
    order_item_updated{orderItem}
    pong
    error{message}
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter, ValidationError as PydanticValidationError

from shared.config.constants import (
    InboundMessageType,
    OrderItemStatus,
    OrderStatus,
    OutboundMessageType,
    TableStatus,
)
from shared.utils.schemas import CamelModel, EntityId, OrderItemOutput, OrderOutput, TableOutput


class ProtocolError(ValueError):
    """An inbound frame that cannot be understood. The frame is dropped."""


# =============================================================================
# Inbound
# =============================================================================


class AuthMessage(CamelModel):
    type: Literal["auth"]
    tenant_id: EntityId


class TableUpdateMessage(CamelModel):
    type: Literal["table_update"]
    table_id: EntityId
    status: TableStatus


class OrderUpdateMessage(CamelModel):
    type: Literal["order_update"]
    order_id: EntityId
    status: OrderStatus


class OrderItemUpdateMessage(CamelModel):
    type: Literal["order_item_update"]
    order_item_id: EntityId
    status: OrderItemStatus


class PingMessage(CamelModel):
    type: Literal["ping"]


InboundMessage = Annotated[
    Union[
        AuthMessage,
        TableUpdateMessage,
        OrderUpdateMessage,
        OrderItemUpdateMessage,
        PingMessage,
    ],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[Any] = TypeAdapter(InboundMessage)

KNOWN_INBOUND_TYPES = frozenset(
    {
        InboundMessageType.AUTH,
        InboundMessageType.TABLE_UPDATE,
        InboundMessageType.ORDER_UPDATE,
        InboundMessageType.ORDER_ITEM_UPDATE,
        InboundMessageType.PING,
    }
)


def parse_inbound(raw: str) -> InboundMessage:
    """
    Parse one inbound text frame.

    The bare string "ping" is accepted as a heartbeat.

    Raises:
        ProtocolError: Invalid JSON, unknown type, missing fields or an
            unrecognized status value.
    """
    if raw.strip() == InboundMessageType.PING:
        return PingMessage(type="ping")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"invalid JSON: {e.msg}")

    if not isinstance(data, dict):
        raise ProtocolError("message must be a JSON object")

    message_type = data.get("type")
    if message_type not in KNOWN_INBOUND_TYPES:
        raise ProtocolError(f"unknown message type: {message_type!r}")

    try:
        return _inbound_adapter.validate_python(data)
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) or "?" for err in e.errors())
        raise ProtocolError(f"invalid {message_type} message ({fields})")


# =============================================================================
# Outbound
# =============================================================================


def table_updated_message(table: TableOutput) -> dict[str, Any]:
    return {"type": OutboundMessageType.TABLE_UPDATED, "table": table.to_wire()}


def order_updated_message(order: OrderOutput) -> dict[str, Any]:
    return {"type": OutboundMessageType.ORDER_UPDATED, "order": order.to_wire()}


def order_item_updated_message(item: OrderItemOutput) -> dict[str, Any]:
    return {"type": OutboundMessageType.ORDER_ITEM_UPDATED, "orderItem": item.to_wire()}


def pong_message() -> dict[str, Any]:
    return {"type": OutboundMessageType.PONG}


def error_message(message: str) -> dict[str, Any]:
    return {"type": OutboundMessageType.ERROR, "message": message}
