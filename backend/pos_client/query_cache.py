"""
Client-side query cache.

Entries are keyed like the web app's queries: a tuple whose first element
is an API path, followed by extra path segments and optionally a mapping
of query parameters, e.g. ("/api/tenants", 1, "orders", {"active": True}).
Different parameters are different entries.

Writes follow two strategies:
- optimistic: patch cached data in place (`patch_entity`), no round-trip;
- pessimistic: send the write (`mutate`), then invalidate and refetch.
A refetch always replaces optimistic data: the server wins.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import urlencode

from pos_client.api import ApiClient, ApiError, UnauthorizedError
from shared.config.logging import get_logger

logger = get_logger(__name__)

QueryKey = tuple[Any, ...]


class UnauthorizedBehavior(str, Enum):
    """What a read does on 401."""

    THROW = "throw"
    RETURN_NULL = "returnNull"


# Broadcast type -> (payload field, collection path segment)
BROADCAST_RESOURCES: dict[str, tuple[str, str]] = {
    "table_updated": ("table", "tables"),
    "order_updated": ("order", "orders"),
    "order_item_updated": ("orderItem", "items"),
}

# Collections that embed every resource and are refetched on any broadcast
AGGREGATE_SEGMENTS = frozenset({"dashboard"})


def _is_params(part: Any) -> bool:
    return isinstance(part, Mapping) or (
        isinstance(part, tuple) and all(isinstance(p, tuple) and len(p) == 2 for p in part)
    )


def normalize_key(key: str | Iterable[Any]) -> QueryKey:
    """Hashable form of a key; a trailing params mapping becomes sorted pairs."""
    if isinstance(key, str):
        return (key,)
    parts = list(key)
    if parts and isinstance(parts[-1], Mapping):
        parts[-1] = tuple(sorted(parts[-1].items()))
    return tuple(parts)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def key_path(key: str | Iterable[Any]) -> str:
    """The URL path of a key, without query string."""
    parts = normalize_key(key)
    path = parts[0] if parts and isinstance(parts[0], str) else ""
    for segment in parts[1:]:
        # Only strings and numbers are path segments
        if isinstance(segment, (str, int)) and not isinstance(segment, bool):
            path += f"/{segment}"
    return path


def build_url(key: str | Iterable[Any]) -> str:
    """
    URL of a query key.

    ("/api/tenants", 1, "tables") -> "/api/tenants/1/tables"
    ("/api/tenants/1/orders", {"active": True}) -> "/api/tenants/1/orders?active=true"
    """
    parts = normalize_key(key)
    url = key_path(parts)
    if len(parts) > 1 and _is_params(parts[-1]) and parts[-1]:
        params = [(k, _query_value(v)) for k, v in parts[-1] if v is not None]
        if params:
            url += "?" + urlencode(params)
    return url


def _resource_segment(key: QueryKey) -> str:
    return key_path(key).rstrip("/").rsplit("/", 1)[-1]


@dataclass
class CacheEntry:
    key: QueryKey
    data: Any = None
    stale: bool = False
    optimistic: bool = False
    on401: UnauthorizedBehavior = UnauthorizedBehavior.THROW
    updated_at: float = field(default_factory=time.time)


class QueryCache:
    """
    Cache of API reads keyed by query key.

    Usage:
        cache = QueryCache(api)
        tables = await cache.fetch(("/api/tenants", 1, "tables"))
        cache.patch_entity(("/api/tenants", 1, "tables"), 5, {"status": "occupied"})
        await cache.invalidate(("/api/tenants", 1, "tables"))
    """

    def __init__(self, api: ApiClient, *, on401: UnauthorizedBehavior = UnauthorizedBehavior.THROW):
        self._api = api
        self._default_on401 = on401
        self._entries: dict[QueryKey, CacheEntry] = {}

    @property
    def api(self) -> ApiClient:
        return self._api

    # =========================================================================
    # Reads
    # =========================================================================

    async def fetch(
        self,
        key: str | Iterable[Any],
        *,
        on401: UnauthorizedBehavior | None = None,
    ) -> Any:
        """
        GET the key's URL, store the result and return it.

        With RETURN_NULL a 401 resolves to None (stored as the entry's data);
        with THROW it raises UnauthorizedError.
        """
        norm = normalize_key(key)
        behavior = on401 or self._default_on401
        try:
            data = await self._api.get_json(build_url(norm))
        except UnauthorizedError:
            if behavior is not UnauthorizedBehavior.RETURN_NULL:
                raise
            data = None

        self._entries[norm] = CacheEntry(key=norm, data=data, on401=behavior)
        return data

    def get_entry(self, key: str | Iterable[Any]) -> CacheEntry | None:
        return self._entries.get(normalize_key(key))

    def get(self, key: str | Iterable[Any]) -> Any:
        entry = self.get_entry(key)
        return entry.data if entry is not None else None

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def keys_matching(self, prefix: str | Iterable[Any]) -> list[QueryKey]:
        norm = normalize_key(prefix)
        return [k for k in self._entries if k[: len(norm)] == norm]

    # =========================================================================
    # Local writes
    # =========================================================================

    def set_query_data(self, key: str | Iterable[Any], value: Any | Callable[[Any], Any]) -> Any:
        """Write an entry directly. A callable receives the current data."""
        norm = normalize_key(key)
        entry = self._entries.get(norm)
        current = entry.data if entry is not None else None
        data = value(current) if callable(value) else value
        if entry is None:
            self._entries[norm] = CacheEntry(key=norm, data=data, on401=self._default_on401)
        else:
            entry.data = data
            entry.updated_at = time.time()
        return data

    def patch_entity(self, key: str | Iterable[Any], entity_id: int, changes: Mapping[str, Any]) -> bool:
        """
        Optimistically merge `changes` into the entity with `entity_id`.

        Works on a cached list (the matching element is replaced) or a
        single cached entity. Returns True when something was patched.
        """
        entry = self.get_entry(key)
        if entry is None:
            return False

        patched = False
        if isinstance(entry.data, list):
            new_list = []
            for item in entry.data:
                if isinstance(item, dict) and item.get("id") == entity_id:
                    item = {**item, **changes}
                    patched = True
                new_list.append(item)
            entry.data = new_list
        elif isinstance(entry.data, dict) and entry.data.get("id") == entity_id:
            entry.data = {**entry.data, **changes}
            patched = True

        if patched:
            entry.optimistic = True
            entry.updated_at = time.time()
        return patched

    def remove(self, key: str | Iterable[Any]) -> None:
        self._entries.pop(normalize_key(key), None)

    def clear(self) -> None:
        self._entries.clear()

    # =========================================================================
    # Invalidation
    # =========================================================================

    async def invalidate(self, prefix: str | Iterable[Any], *, refetch: bool = True) -> list[QueryKey]:
        """
        Mark every entry under `prefix` stale and refetch it.

        A failed refetch leaves the entry stale with its previous data.
        Returns the keys that were invalidated.
        """
        keys = self.keys_matching(prefix)
        for key in keys:
            self._entries[key].stale = True
        if refetch:
            for key in keys:
                await self._refetch(key)
        return keys

    async def _refetch(self, key: QueryKey) -> None:
        entry = self._entries.get(key)
        on401 = entry.on401 if entry is not None else self._default_on401
        try:
            await self.fetch(key, on401=on401)
        except ApiError as e:
            logger.warning("Refetch failed", url=build_url(key), status=e.status, error=e.message)

    # =========================================================================
    # Server writes
    # =========================================================================

    async def mutate(
        self,
        method: str,
        url: str,
        json: Any = None,
        *,
        invalidate: Iterable[str | Iterable[Any]] = (),
    ) -> Any:
        """Send a write, then invalidate and refetch the affected queries."""
        result = await self._api.send_json(method, url, json)
        for prefix in invalidate:
            await self.invalidate(prefix)
        return result

    # =========================================================================
    # Realtime
    # =========================================================================

    async def apply_broadcast(self, message: Mapping[str, Any], *, refetch: bool = True) -> list[QueryKey]:
        """
        Fold a realtime broadcast into the cache.

        The entity is patched into every cached collection of its resource,
        then those collections (and aggregates like the dashboard) are
        refetched so the server state replaces the patch.
        Returns the affected keys.
        """
        resource = BROADCAST_RESOURCES.get(message.get("type", ""))
        if resource is None:
            return []
        payload_field, segment = resource
        entity = message.get(payload_field)
        if not isinstance(entity, dict) or "id" not in entity:
            return []

        affected = []
        for key in self.keys():
            last = _resource_segment(key)
            if last == segment:
                self.patch_entity(key, entity["id"], entity)
                affected.append(key)
            elif last in AGGREGATE_SEGMENTS:
                affected.append(key)

        if refetch:
            for key in affected:
                self._entries[key].stale = True
                await self._refetch(key)
        return affected
