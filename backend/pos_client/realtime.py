"""
Realtime client.

Connects to /ws with the session cookie of an ApiClient, joins the
tenant's broadcast group with `auth`, and feeds received broadcasts into
a QueryCache.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import websockets

from pos_client.api import ApiClient
from pos_client.query_cache import BROADCAST_RESOURCES, QueryCache
from shared.config.logging import get_logger

logger = get_logger(__name__)

MessageCallback = Callable[[dict[str, Any]], Awaitable[None]]


def websocket_url(base_url: str) -> str:
    """http(s)://host -> ws(s)://host/ws"""
    if base_url.startswith("https://"):
        base_url = "wss://" + base_url[len("https://"):]
    elif base_url.startswith("http://"):
        base_url = "ws://" + base_url[len("http://"):]
    return base_url.rstrip("/") + "/ws"


class RealtimeClient:
    """
    Usage:
        async with RealtimeClient(api, tenant_id=1, cache=cache) as rt:
            await rt.update_table_status(5, "occupied")
            await rt.listen()
    """

    def __init__(
        self,
        api: ApiClient,
        tenant_id: int,
        *,
        cache: QueryCache | None = None,
        on_message: MessageCallback | None = None,
        url: str | None = None,
    ):
        self._api = api
        self.tenant_id = tenant_id
        self._cache = cache
        self._on_message = on_message
        self._url = url or websocket_url(str(api.base_url))
        self._ws = None
        self.last_message: dict[str, Any] | None = None

    @property
    def is_connected(self) -> bool:
        return self._ws is not None

    def _cookie_header(self) -> str:
        return "; ".join(f"{name}={value}" for name, value in self._api.cookies.items())

    async def connect(self) -> None:
        """Open the socket and authenticate for the tenant."""
        headers = {"Cookie": self._cookie_header()} if self._api.cookies else None
        self._ws = await websockets.connect(self._url, additional_headers=headers)
        logger.info("Realtime connected", url=self._url, tenant_id=self.tenant_id)
        await self.send({"type": "auth", "tenantId": self.tenant_id})

    async def send(self, message: dict[str, Any]) -> None:
        if self._ws is None:
            raise ConnectionError("Realtime client is not connected")
        await self._ws.send(json.dumps(message))

    async def update_table_status(self, table_id: int, status: str) -> None:
        await self.send({"type": "table_update", "tableId": table_id, "status": status})

    async def update_order_status(self, order_id: int, status: str) -> None:
        await self.send({"type": "order_update", "orderId": order_id, "status": status})

    async def update_order_item_status(self, order_item_id: int, status: str) -> None:
        await self.send({"type": "order_item_update", "orderItemId": order_item_id, "status": status})

    async def ping(self) -> None:
        await self.send({"type": "ping"})

    async def handle_message(self, raw: str | bytes) -> dict[str, Any] | None:
        """Decode one frame and apply it to the cache. Undecodable frames are dropped."""
        try:
            message = json.loads(raw)
        except ValueError:
            logger.warning("Dropping undecodable realtime frame")
            return None
        if not isinstance(message, dict):
            return None

        self.last_message = message
        if message.get("type") == "error":
            logger.warning("Realtime error", message=message.get("message"))
        elif self._cache is not None and message.get("type") in BROADCAST_RESOURCES:
            await self._cache.apply_broadcast(message)

        if self._on_message is not None:
            await self._on_message(message)
        return message

    async def recv(self, timeout: float | None = None) -> dict[str, Any] | None:
        """Receive and handle a single frame."""
        if self._ws is None:
            raise ConnectionError("Realtime client is not connected")
        raw = await asyncio.wait_for(self._ws.recv(), timeout=timeout)
        return await self.handle_message(raw)

    async def listen(self) -> None:
        """Handle frames until the server closes the connection."""
        if self._ws is None:
            raise ConnectionError("Realtime client is not connected")
        try:
            async for raw in self._ws:
                await self.handle_message(raw)
        except websockets.ConnectionClosed as e:
            logger.info("Realtime connection closed", code=e.rcvd.code if e.rcvd else None)

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def __aenter__(self) -> "RealtimeClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
