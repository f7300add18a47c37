"""
Tests for the client side: query keys, the query cache, login state and
realtime frame handling. The API is simulated with httpx.MockTransport.
"""

import json

import httpx
import pytest_asyncio
import pytest

from pos_client import (
    ApiClient,
    ApiError,
    AuthSession,
    AuthStatus,
    QueryCache,
    RealtimeClient,
    UnauthorizedBehavior,
    UnauthorizedError,
)
from pos_client.query_cache import build_url, normalize_key
from pos_client.realtime import websocket_url


USER = {"id": 1, "username": "admin", "fullName": "Admin", "role": "admin", "tenantId": 1}
TABLES_KEY = ("/api/tenants", 1, "tables")
DASHBOARD_KEY = ("/api/tenants", 1, "dashboard")
ORDERS_KEY = ("/api/tenants/1/orders", {"active": True})


class FakeServer:
    """Just enough of the API to drive the client."""

    def __init__(self):
        self.tables = [
            {"id": 1, "name": "Masa 1", "status": "empty"},
            {"id": 2, "name": "Masa 2", "status": "empty"},
        ]
        self.session_valid = True
        self.fail_tables = False
        self.requests: list[str] = []

    def _logged_in(self, request: httpx.Request) -> bool:
        return self.session_valid and "pos_session=abc" in request.headers.get("cookie", "")

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(f"{request.method} {path}?{request.url.query.decode()}")

        if path == "/api/login":
            body = json.loads(request.content)
            if body == {"username": "admin", "password": "password"}:
                return httpx.Response(200, json=USER, headers={"set-cookie": "pos_session=abc; Path=/"})
            return httpx.Response(401, json={"message": "Invalid username or password"})
        if path == "/api/logout":
            return httpx.Response(200, json={"message": "Logged out"})
        if not self._logged_in(request):
            return httpx.Response(401, json={"message": "Not authenticated"})

        if path == "/api/user":
            return httpx.Response(200, json=USER)
        if path == "/api/tenants/1/tables":
            if self.fail_tables:
                return httpx.Response(500, json={"message": "boom"})
            return httpx.Response(200, json=self.tables)
        if path == "/api/tenants/1/dashboard":
            return httpx.Response(200, json={"tables": self.tables})
        if path == "/api/tenants/1/orders":
            return httpx.Response(200, json=[{"id": 7, "status": "active"}])
        if path.startswith("/api/tables/") and request.method == "PATCH":
            table_id = int(path.rsplit("/", 1)[-1])
            changes = json.loads(request.content)
            for table in self.tables:
                if table["id"] == table_id:
                    table.update(changes)
                    return httpx.Response(200, json=table)
        return httpx.Response(404, json={"message": "Not found"})


@pytest.fixture
def server():
    return FakeServer()


@pytest_asyncio.fixture
async def api(server):
    client = ApiClient("http://testserver", transport=httpx.MockTransport(server.handle))
    client.cookies.set("pos_session", "abc")
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def anonymous_api(server):
    client = ApiClient("http://testserver", transport=httpx.MockTransport(server.handle))
    yield client
    await client.aclose()


class TestQueryKeys:

    @pytest.mark.parametrize("key,url", [
        ("/api/user", "/api/user"),
        (("/api/tenants", 1, "tables"), "/api/tenants/1/tables"),
        (("/api/tenants/1/orders", {"active": True}), "/api/tenants/1/orders?active=true"),
        (("/api/tenants/1/orders", {"active": False}), "/api/tenants/1/orders?active=false"),
        (("/api/tenants/1/stats", {"days": 7, "from": None}), "/api/tenants/1/stats?days=7"),
        (("/api/tenants/1/orders", {}), "/api/tenants/1/orders"),
    ])
    def test_build_url(self, key, url):
        assert build_url(key) == url

    def test_param_order_does_not_matter(self):
        assert normalize_key(("/x", {"a": 1, "b": 2})) == normalize_key(("/x", {"b": 2, "a": 1}))

    def test_different_params_are_different_keys(self):
        assert normalize_key(("/x", {"active": True})) != normalize_key(("/x", {"active": False}))


class TestQueryCache:

    @pytest.mark.asyncio
    async def test_fetch_stores_entry(self, api, server):
        cache = QueryCache(api)

        tables = await cache.fetch(TABLES_KEY)

        assert [t["id"] for t in tables] == [1, 2]
        assert cache.get(TABLES_KEY) == tables
        assert cache.get_entry(TABLES_KEY).stale is False

    @pytest.mark.asyncio
    async def test_query_params_sent(self, api, server):
        cache = QueryCache(api)

        await cache.fetch(ORDERS_KEY)

        assert server.requests[-1] == "GET /api/tenants/1/orders?active=true"

    @pytest.mark.asyncio
    async def test_refetch_replaces_optimistic_data(self, api, server):
        cache = QueryCache(api)
        await cache.fetch(TABLES_KEY)

        assert cache.patch_entity(TABLES_KEY, 1, {"status": "occupied"}) is True
        assert cache.get(TABLES_KEY)[0]["status"] == "occupied"
        assert cache.get_entry(TABLES_KEY).optimistic is True

        # Server never accepted the change
        await cache.invalidate(("/api/tenants", 1))

        assert cache.get(TABLES_KEY)[0]["status"] == "empty"
        assert cache.get_entry(TABLES_KEY).optimistic is False

    @pytest.mark.asyncio
    async def test_patch_unknown_entity(self, api):
        cache = QueryCache(api)
        await cache.fetch(TABLES_KEY)

        assert cache.patch_entity(TABLES_KEY, 99, {"status": "occupied"}) is False
        assert cache.patch_entity(("/api/nothing",), 1, {}) is False

    @pytest.mark.asyncio
    async def test_mutate_invalidates(self, api, server):
        cache = QueryCache(api)
        await cache.fetch(TABLES_KEY)

        result = await cache.mutate(
            "PATCH", "/api/tables/2", {"status": "bill_requested"}, invalidate=[TABLES_KEY]
        )

        assert result["status"] == "bill_requested"
        assert cache.get(TABLES_KEY)[1]["status"] == "bill_requested"

    @pytest.mark.asyncio
    async def test_failed_refetch_keeps_stale_data(self, api, server):
        cache = QueryCache(api)
        before = await cache.fetch(TABLES_KEY)
        server.fail_tables = True

        keys = await cache.invalidate(TABLES_KEY)

        assert keys == [normalize_key(TABLES_KEY)]
        entry = cache.get_entry(TABLES_KEY)
        assert entry.stale is True
        assert entry.data == before

    @pytest.mark.asyncio
    async def test_unauthorized_throws_by_default(self, anonymous_api):
        cache = QueryCache(anonymous_api)

        with pytest.raises(UnauthorizedError):
            await cache.fetch(TABLES_KEY)

    @pytest.mark.asyncio
    async def test_unauthorized_return_null(self, anonymous_api):
        cache = QueryCache(anonymous_api, on401=UnauthorizedBehavior.RETURN_NULL)

        assert await cache.fetch(TABLES_KEY) is None

    @pytest.mark.asyncio
    async def test_api_error_carries_server_message(self, api):
        with pytest.raises(ApiError) as exc_info:
            await api.get_json("/api/unknown")

        assert exc_info.value.status == 404
        assert exc_info.value.message == "Not found"

    @pytest.mark.asyncio
    async def test_set_query_data_with_updater(self, api):
        cache = QueryCache(api)
        cache.set_query_data(TABLES_KEY, [{"id": 1}])

        cache.set_query_data(TABLES_KEY, lambda current: current + [{"id": 2}])

        assert cache.get(TABLES_KEY) == [{"id": 1}, {"id": 2}]


class TestApplyBroadcast:

    @pytest.mark.asyncio
    async def test_patches_collection_and_marks_aggregates(self, api, server):
        cache = QueryCache(api)
        await cache.fetch(TABLES_KEY)
        await cache.fetch(DASHBOARD_KEY)
        await cache.fetch(ORDERS_KEY)

        affected = await cache.apply_broadcast(
            {"type": "table_updated", "table": {"id": 1, "name": "Masa 1", "status": "occupied"}},
            refetch=False,
        )

        assert set(affected) == {normalize_key(TABLES_KEY), normalize_key(DASHBOARD_KEY)}
        assert cache.get(TABLES_KEY)[0]["status"] == "occupied"
        assert cache.get(ORDERS_KEY) == [{"id": 7, "status": "active"}]

    @pytest.mark.asyncio
    async def test_refetch_brings_server_state(self, api, server):
        cache = QueryCache(api)
        await cache.fetch(DASHBOARD_KEY)
        server.tables[0]["status"] = "occupied"

        await cache.apply_broadcast({"type": "table_updated", "table": dict(server.tables[0])})

        assert cache.get(DASHBOARD_KEY)["tables"][0]["status"] == "occupied"
        assert cache.get_entry(DASHBOARD_KEY).stale is False

    @pytest.mark.asyncio
    async def test_unknown_type_ignored(self, api):
        cache = QueryCache(api)
        await cache.fetch(TABLES_KEY)

        assert await cache.apply_broadcast({"type": "pong"}) == []
        assert await cache.apply_broadcast({"type": "table_updated", "table": None}) == []


class TestAuthSession:

    @pytest.mark.asyncio
    async def test_login(self, anonymous_api):
        session = AuthSession(QueryCache(anonymous_api))
        assert session.status is AuthStatus.UNAUTHENTICATED

        user = await session.login("admin", "password")

        assert user == USER
        assert session.is_authenticated
        assert session.tenant_id == 1

    @pytest.mark.asyncio
    async def test_rejected_login(self, anonymous_api):
        session = AuthSession(QueryCache(anonymous_api))

        with pytest.raises(ApiError):
            await session.login("admin", "wrong")

        assert session.status is AuthStatus.UNAUTHENTICATED
        assert session.error == "Invalid username or password"
        assert session.user is None

    @pytest.mark.asyncio
    async def test_expired_session_noticed_on_refresh(self, api, server):
        session = AuthSession(QueryCache(api))
        await session.refresh()
        assert session.is_authenticated

        server.session_valid = False

        assert await session.refresh() is None
        assert session.status is AuthStatus.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_logout_clears_cache(self, api):
        cache = QueryCache(api)
        session = AuthSession(cache)
        await session.refresh()
        await cache.fetch(TABLES_KEY)

        await session.logout()

        assert session.user is None
        assert cache.get(TABLES_KEY) is None
        assert session.status is AuthStatus.UNAUTHENTICATED


class TestRealtimeClient:

    @pytest.mark.parametrize("base,url", [
        ("http://localhost:5000", "ws://localhost:5000/ws"),
        ("https://pos.example.com/", "wss://pos.example.com/ws"),
    ])
    def test_websocket_url(self, base, url):
        assert websocket_url(base) == url

    @pytest.mark.asyncio
    async def test_broadcast_updates_cache(self, api, server):
        cache = QueryCache(api)
        await cache.fetch(TABLES_KEY)
        rt = RealtimeClient(api, 1, cache=cache)
        server.tables[1]["status"] = "occupied"

        message = await rt.handle_message(
            json.dumps({"type": "table_updated", "table": dict(server.tables[1])})
        )

        assert message["type"] == "table_updated"
        assert cache.get(TABLES_KEY)[1]["status"] == "occupied"

    @pytest.mark.asyncio
    async def test_callback_and_error_frames(self, api):
        received = []

        async def on_message(message):
            received.append(message)

        cache = QueryCache(api)
        cache.set_query_data(TABLES_KEY, [{"id": 1, "status": "empty"}])
        rt = RealtimeClient(api, 1, cache=cache, on_message=on_message)

        await rt.handle_message('{"type": "error", "message": "Table 9 not found"}')

        assert received == [{"type": "error", "message": "Table 9 not found"}]
        assert cache.get(TABLES_KEY) == [{"id": 1, "status": "empty"}]

    @pytest.mark.asyncio
    async def test_garbage_dropped(self, api):
        rt = RealtimeClient(api, 1)

        assert await rt.handle_message("not json") is None
        assert await rt.handle_message("[1, 2]") is None
        assert rt.last_message is None

    @pytest.mark.asyncio
    async def test_send_requires_connection(self, api):
        rt = RealtimeClient(api, 1)

        assert rt.is_connected is False
        with pytest.raises(ConnectionError):
            await rt.ping()
