"""
Realtime fanout hub.

Tracks every open WebSocket connection together with the tenant it has
authenticated to, and fans canonical entity updates out to all
connections of one tenant.

One hub instance is created per application (see rest_api.main lifespan)
and reached through `get_hub`; nothing imports a module-level manager.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from fastapi import Request, WebSocket
from starlette.websockets import WebSocketState

from shared.config.logging import ws_gateway_logger as logger
from shared.config.settings import settings


def _is_ws_connected(ws: WebSocket) -> bool:
    """
    Check if WebSocket is in connected state before sending.
    Returns True if the connection is ready to send/receive messages.
    """
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


@dataclass
class Connection:
    """Registry entry for one socket."""

    tenant_id: int | None = None
    # Tenant of the session cookie presented on upgrade, if any
    session_tenant_id: int | None = None
    connected_at: float = field(default_factory=time.time)
    last_heartbeat: float = field(default_factory=time.time)


class FanoutHub:
    """
    Connection registry with tenant-scoped broadcast.

    Registry mutations run under an asyncio.Lock; broadcasts iterate over
    a snapshot so a connect/disconnect during a send never breaks the scan.
    """

    def __init__(self, heartbeat_timeout: float | None = None):
        self.heartbeat_timeout = (
            heartbeat_timeout if heartbeat_timeout is not None else settings.ws_heartbeat_timeout
        )
        self._connections: dict[WebSocket, Connection] = {}
        self._lock = asyncio.Lock()
        self._shutdown = False

    # =========================================================================
    # Registration
    # =========================================================================

    async def connect(
        self,
        websocket: WebSocket,
        session_tenant_id: int | None = None,
        timeout: float = 5.0,
    ) -> None:
        """
        Accept a WebSocket connection and register it with no tenant.

        Args:
            websocket: The WebSocket connection.
            session_tenant_id: Tenant of the session cookie, when one was presented.
            timeout: Timeout for the accept handshake.

        Raises:
            ConnectionError: During shutdown or when the handshake times out.
        """
        if self._shutdown:
            raise ConnectionError("Server is shutting down")

        try:
            await asyncio.wait_for(websocket.accept(), timeout=timeout)
        except asyncio.TimeoutError:
            raise ConnectionError("WebSocket accept timed out")

        async with self._lock:
            self._connections[websocket] = Connection(session_tenant_id=session_tenant_id)

    async def authenticate(self, websocket: WebSocket, tenant_id: int) -> bool:
        """
        Bind a connection to a tenant.

        When the socket was opened with a session cookie the requested
        tenant must match the session's tenant; a mismatch is logged and
        ignored (the connection stays unauthenticated).

        Returns:
            True if the connection is now bound to `tenant_id`.
        """
        async with self._lock:
            conn = self._connections.get(websocket)
            if conn is None:
                logger.warning("Auth from unregistered connection", tenant_id=tenant_id)
                return False

            if conn.session_tenant_id is not None and conn.session_tenant_id != tenant_id:
                logger.warning(
                    "Realtime auth tenant does not match session",
                    requested_tenant_id=tenant_id,
                    session_tenant_id=conn.session_tenant_id,
                )
                return False

            conn.tenant_id = tenant_id

        logger.info("Realtime connection authenticated", tenant_id=tenant_id)
        return True

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a connection from the registry. Never broadcasts."""
        async with self._lock:
            self._connections.pop(websocket, None)

    def tenant_of(self, websocket: WebSocket) -> int | None:
        """Tenant a connection has authenticated to, or None."""
        conn = self._connections.get(websocket)
        return conn.tenant_id if conn is not None else None

    # =========================================================================
    # Sending
    # =========================================================================

    async def broadcast_to_tenant(self, tenant_id: int, payload: dict[str, Any]) -> int:
        """
        Send a message to every open connection authenticated to a tenant.

        Send failures are logged and skipped.

        Returns:
            Number of connections that received the message.
        """
        async with self._lock:
            targets = [
                ws for ws, conn in self._connections.items() if conn.tenant_id == tenant_id
            ]

        sent = 0
        for ws in targets:
            if not _is_ws_connected(ws):
                logger.debug("Skipping send to disconnected socket", tenant_id=tenant_id)
                continue
            try:
                await ws.send_json(payload)
                sent += 1
            except Exception as e:
                logger.warning(
                    "Failed to send message to tenant connection",
                    tenant_id=tenant_id,
                    message_type=payload.get("type"),
                    error=str(e),
                )

        logger.debug(
            "Broadcast to tenant",
            tenant_id=tenant_id,
            message_type=payload.get("type"),
            clients=sent,
        )
        return sent

    async def send_to(self, websocket: WebSocket, payload: dict[str, Any]) -> bool:
        """Send a message to a single connection (pong, error frames)."""
        if not _is_ws_connected(websocket):
            return False
        try:
            await websocket.send_json(payload)
            return True
        except Exception as e:
            logger.warning("Failed to send message to connection", error=str(e))
            return False

    # =========================================================================
    # Stats
    # =========================================================================

    @property
    def total_connections(self) -> int:
        """Get total number of registered connections."""
        return len(self._connections)

    def get_stats(self) -> dict[str, Any]:
        """Get connection statistics."""
        tenants = {c.tenant_id for c in self._connections.values() if c.tenant_id is not None}
        authenticated = sum(1 for c in self._connections.values() if c.tenant_id is not None)
        return {
            "total_connections": self.total_connections,
            "authenticated_connections": authenticated,
            "tenants_with_connections": len(tenants),
        }

    # =========================================================================
    # Heartbeat tracking
    # =========================================================================

    def record_heartbeat(self, websocket: WebSocket) -> None:
        """Record activity from a connection."""
        conn = self._connections.get(websocket)
        if conn is not None:
            conn.last_heartbeat = time.time()

    def get_stale_connections(self) -> list[WebSocket]:
        """Connections with no frame within the heartbeat timeout."""
        now = time.time()
        return [
            ws
            for ws, conn in list(self._connections.items())
            if now - conn.last_heartbeat > self.heartbeat_timeout
        ]

    async def cleanup_stale_connections(self) -> int:
        """
        Close and remove stale connections.

        Returns:
            Number of connections cleaned up.
        """
        stale = self.get_stale_connections()
        for ws in stale:
            try:
                await ws.close(code=1001, reason="Heartbeat timeout")
            except Exception as e:
                logger.warning("Failed to close stale connection", error=str(e))
            await self.disconnect(ws)
        return len(stale)

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self) -> int:
        """
        Close all connections and reject new ones.

        Returns:
            Number of connections closed.
        """
        self._shutdown = True
        logger.info("Realtime hub shutting down")

        async with self._lock:
            all_connections = list(self._connections)

        closed = 0
        for ws in all_connections:
            try:
                await ws.close(code=1001, reason="Server shutdown")
                closed += 1
            except Exception as e:
                logger.warning("Failed to close connection during shutdown", error=str(e))
            await self.disconnect(ws)

        logger.info("Realtime hub shutdown complete", closed=closed)
        return closed

    def is_shutting_down(self) -> bool:
        """Check if the hub is in shutdown mode."""
        return self._shutdown


# =============================================================================
# FastAPI dependencies
# =============================================================================


def get_hub(request: Request) -> FanoutHub:
    """FastAPI dependency returning the application's hub (HTTP routes)."""
    return request.app.state.hub


def get_ws_hub(websocket: WebSocket) -> FanoutHub:
    """FastAPI dependency returning the application's hub (WebSocket routes)."""
    return websocket.app.state.hub
