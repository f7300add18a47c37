"""
Realtime WebSocket endpoint and background maintenance.

Staff clients connect to /ws with their session cookie, then send
`auth{tenantId}` to start receiving their restaurant's table and order
updates.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from shared.config.logging import ws_gateway_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import SessionFactory, get_session_factory
from shared.security.auth import websocket_session_context
from ws_gateway.connection_manager import FanoutHub, get_hub, get_ws_hub
from ws_gateway.handlers import RealtimeMessageHandler

router = APIRouter(tags=["realtime"])


async def run_heartbeat_cleanup(hub: FanoutHub, interval: float | None = None) -> None:
    """
    Periodically close connections that stopped sending frames.
    Runs until cancelled.
    """
    interval = interval if interval is not None else settings.ws_heartbeat_sweep_interval
    while True:
        try:
            await asyncio.sleep(interval)
            cleaned = await hub.cleanup_stale_connections()
            if cleaned > 0:
                logger.info("Cleaned up stale connections", count=cleaned)
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error("Error in heartbeat cleanup", error=str(e))


@router.get("/ws/health")
def realtime_health(hub: FanoutHub = Depends(get_hub)):
    """Connection statistics for the realtime channel."""
    return {
        "status": "healthy",
        "service": "realtime",
        **hub.get_stats(),
    }


@router.websocket("/ws")
async def realtime_websocket(
    websocket: WebSocket,
    hub: FanoutHub = Depends(get_ws_hub),
    session_factory: SessionFactory = Depends(get_session_factory),
):
    """
    Realtime channel for floor and kitchen staff.

    Clients receive:
    - table_updated when a table changes status or layout
    - order_updated when an order is opened, paid or closed
    - order_item_updated when a line is added or changes kitchen status
    """
    claims = websocket_session_context(websocket)
    if claims is None and settings.ws_require_session:
        await websocket.close(code=4001, reason="Not authenticated")
        return

    session_tenant_id = claims["tenant_id"] if claims else None
    user_id = claims.get("sub") if claims else None

    try:
        await hub.connect(websocket, session_tenant_id=session_tenant_id)
    except ConnectionError as e:
        logger.warning("Realtime connection rejected", reason=str(e), user_id=user_id)
        return

    logger.info("Realtime client connected", user_id=user_id, session_tenant_id=session_tenant_id)
    handler = RealtimeMessageHandler(hub, session_factory)

    try:
        while True:
            data = await websocket.receive_text()

            if len(data) > settings.ws_max_message_size:
                logger.warning(
                    "Message size exceeded limit",
                    user_id=user_id,
                    size=len(data),
                    max_size=settings.ws_max_message_size,
                )
                await websocket.close(code=1009, reason="Message too large")
                break

            hub.record_heartbeat(websocket)
            await handler.handle(websocket, data)

    except WebSocketDisconnect:
        logger.info(
            "Realtime client disconnected",
            user_id=user_id,
            tenant_id=hub.tenant_of(websocket),
        )
    finally:
        await hub.disconnect(websocket)
