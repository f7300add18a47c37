"""
Realtime message handling.

Turns validated inbound frames into lifecycle mutations. Every failure is
contained to the offending frame: the connection and the hub keep running.
"""

from __future__ import annotations

from fastapi import WebSocket
from sqlalchemy.exc import SQLAlchemyError

from rest_api.services.domain.lifecycle import OrderLifecycleService
from shared.config.logging import ws_gateway_logger as logger
from shared.infrastructure.db import SessionFactory, get_db_context
from shared.utils.exceptions import AppException
from ws_gateway.connection_manager import FanoutHub
from ws_gateway.protocol import (
    AuthMessage,
    OrderItemUpdateMessage,
    OrderUpdateMessage,
    PingMessage,
    ProtocolError,
    TableUpdateMessage,
    error_message,
    parse_inbound,
    pong_message,
)


class RealtimeMessageHandler:
    """
    Dispatches inbound frames for one application.

    A fresh database session is opened per mutation through
    `session_factory`, never held for the life of the connection.
    """

    def __init__(self, hub: FanoutHub, session_factory: SessionFactory = get_db_context):
        self._hub = hub
        self._session_factory = session_factory

    async def handle(self, websocket: WebSocket, raw: str) -> None:
        """Handle one text frame from `websocket`."""
        try:
            message = parse_inbound(raw)
        except ProtocolError as e:
            logger.warning(
                "Dropping realtime message",
                reason=str(e),
                tenant_id=self._hub.tenant_of(websocket),
                message=raw[:100],
            )
            return

        if isinstance(message, PingMessage):
            await self._hub.send_to(websocket, pong_message())
            return

        if isinstance(message, AuthMessage):
            await self._hub.authenticate(websocket, message.tenant_id)
            return

        tenant_id = self._hub.tenant_of(websocket)
        if tenant_id is None:
            logger.warning(
                "Mutation from unauthenticated connection dropped",
                message_type=message.type,
            )
            return

        try:
            await self._apply(message, tenant_id)
        except AppException as e:
            # Already logged on construction
            await self._hub.send_to(websocket, error_message(str(e.detail)))
        except SQLAlchemyError as e:
            logger.error(
                "Realtime mutation failed",
                message_type=message.type,
                tenant_id=tenant_id,
                error=str(e),
            )
            await self._hub.send_to(websocket, error_message("Update could not be saved"))
        except Exception as e:
            # The frame fails, the connection stays
            logger.error(
                "Unexpected error handling realtime message",
                message_type=message.type,
                tenant_id=tenant_id,
                error=str(e),
                exc_info=True,
            )
            await self._hub.send_to(websocket, error_message("Update failed"))

    async def _apply(
        self,
        message: TableUpdateMessage | OrderUpdateMessage | OrderItemUpdateMessage,
        tenant_id: int,
    ) -> None:
        with self._session_factory() as db:
            service = OrderLifecycleService(db, self._hub)

            if isinstance(message, TableUpdateMessage):
                await service.set_table_status(message.table_id, message.status, tenant_id)
            elif isinstance(message, OrderUpdateMessage):
                await service.set_order_status(message.order_id, message.status, tenant_id)
            elif isinstance(message, OrderItemUpdateMessage):
                await service.set_order_item_status(message.order_item_id, message.status, tenant_id)
