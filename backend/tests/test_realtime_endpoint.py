"""
End-to-end tests for the /ws realtime channel through the FastAPI app.

After each mutation the test waits for the resulting broadcast (or a
pong) before touching the database, so the handler has committed.
"""

from decimal import Decimal

import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import reload


def auth(ws, tenant_id):
    ws.send_json({"type": "auth", "tenantId": tenant_id})
    # Frames on one socket are handled in order: the pong proves auth was applied
    ws.send_json({"type": "ping"})
    assert ws.receive_json() == {"type": "pong"}


class TestConnection:

    def test_upgrade_without_session_is_refused(self, client):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/ws") as ws:
                ws.receive_json()
        assert exc.value.code == 4001

    def test_ping_pong(self, client, admin_headers):
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_bare_ping_string(self, client, admin_headers):
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            ws.send_text("ping")
            assert ws.receive_json() == {"type": "pong"}

    def test_garbage_frames_are_dropped(self, client, admin_headers):
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            ws.send_text("{not json")
            ws.send_json(["not", "an", "object"])
            ws.send_json({"type": "teleport"})
            ws.send_json({"type": "table_update", "tableId": 1, "status": "on_fire"})
            ws.send_json({"type": "ping"})
            # Nothing was sent for the bad frames; the connection is still alive
            assert ws.receive_json() == {"type": "pong"}

    def test_health_reports_connections(self, client, admin_headers, tenant):
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            auth(ws, tenant.id)
            body = client.get("/ws/health").json()
        assert body["total_connections"] == 1
        assert body["authenticated_connections"] == 1


class TestMutations:

    def test_unauthenticated_connection_triggers_nothing(self, client, admin_headers, table5, db_session):
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            ws.send_json({"type": "table_update", "tableId": table5.id, "status": "occupied"})
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

        assert reload(db_session, table5).status == "empty"

    def test_auth_for_foreign_tenant_is_ignored(self, client, admin_headers, other_tenant, other_table, db_session):
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            ws.send_json({"type": "auth", "tenantId": other_tenant.id})
            ws.send_json({"type": "table_update", "tableId": other_table.id, "status": "occupied"})
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

        assert reload(db_session, other_table).status == "empty"

    def test_table_update_is_broadcast_to_tenant(self, client, admin_headers, waiter_headers, tenant, table5, db_session):
        with client.websocket_connect("/ws", headers=admin_headers) as sender, \
                client.websocket_connect("/ws", headers=waiter_headers) as peer:
            auth(sender, tenant.id)
            auth(peer, tenant.id)

            sender.send_json({"type": "table_update", "tableId": table5.id, "status": "occupied"})

            for ws in (sender, peer):
                message = ws.receive_json()
                assert message["type"] == "table_updated"
                assert message["table"]["id"] == table5.id
                assert message["table"]["status"] == "occupied"

        assert reload(db_session, table5).status == "occupied"

    def test_duplicate_table_update_broadcasts_twice(self, client, admin_headers, tenant, table5, db_session):
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            auth(ws, tenant.id)
            frame = {"type": "table_update", "tableId": table5.id, "status": "occupied"}
            ws.send_json(frame)
            ws.send_json(frame)

            first = ws.receive_json()
            second = ws.receive_json()

        assert first["type"] == second["type"] == "table_updated"
        assert reload(db_session, table5).status == "occupied"

    def test_broadcasts_stay_within_tenant(
        self, client, admin_headers, other_headers, tenant, other_tenant, table5, db_session
    ):
        with client.websocket_connect("/ws", headers=admin_headers) as mine, \
                client.websocket_connect("/ws", headers=other_headers) as theirs:
            auth(mine, tenant.id)
            auth(theirs, other_tenant.id)

            mine.send_json({"type": "table_update", "tableId": table5.id, "status": "occupied"})
            assert mine.receive_json()["type"] == "table_updated"

            # The other tenant's first frame is its own pong, not our broadcast
            theirs.send_json({"type": "ping"})
            assert theirs.receive_json() == {"type": "pong"}

    def test_order_completion_frees_table(self, client, admin_headers, tenant, table5, active_order, db_session):
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            auth(ws, tenant.id)
            ws.send_json({"type": "order_update", "orderId": active_order.id, "status": "completed"})

            order_msg = ws.receive_json()
            table_msg = ws.receive_json()

        assert order_msg["type"] == "order_updated"
        assert order_msg["order"]["status"] == "completed"
        assert order_msg["order"]["endTime"] is not None
        assert table_msg["type"] == "table_updated"
        assert table_msg["table"]["status"] == "empty"
        assert reload(db_session, table5).status == "empty"

    def test_order_item_status(self, client, admin_headers, tenant, active_order, kebab, db_session):
        line = active_order_line(db_session, active_order, kebab)

        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            auth(ws, tenant.id)
            ws.send_json({"type": "order_item_update", "orderItemId": line.id, "status": "preparing"})
            message = ws.receive_json()

        assert message["type"] == "order_item_updated"
        assert message["orderItem"]["status"] == "preparing"
        assert message["orderItem"]["unitPrice"] == "50.00"

    def test_missing_entity_sends_error_to_sender_only(self, client, admin_headers, waiter_headers, tenant):
        with client.websocket_connect("/ws", headers=admin_headers) as sender, \
                client.websocket_connect("/ws", headers=waiter_headers) as peer:
            auth(sender, tenant.id)
            auth(peer, tenant.id)

            sender.send_json({"type": "order_update", "orderId": 424242, "status": "completed"})
            error = sender.receive_json()

            peer.send_json({"type": "ping"})
            assert peer.receive_json() == {"type": "pong"}

        assert error["type"] == "error"
        assert "not found" in error["message"]

    def test_out_of_range_id_is_dropped(self, client, admin_headers, tenant):
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            auth(ws, tenant.id)
            ws.send_json({"type": "table_update", "tableId": 2**70, "status": "occupied"})
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_unexpected_error_keeps_connection(self, client, admin_headers, tenant, table5, monkeypatch):
        from rest_api.services.domain import OrderLifecycleService

        async def explode(self, *args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(OrderLifecycleService, "set_table_status", explode)
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            auth(ws, tenant.id)
            ws.send_json({"type": "table_update", "tableId": table5.id, "status": "occupied"})
            assert ws.receive_json() == {"type": "error", "message": "Update failed"}

            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_failed_commit_is_not_broadcast(
        self, client, admin_headers, waiter_headers, tenant, table5, db_session, monkeypatch
    ):
        from sqlalchemy.exc import OperationalError

        def failing_commit(db):
            db.rollback()
            raise OperationalError("COMMIT", {}, Exception("disk full"))

        monkeypatch.setattr("rest_api.services.domain.lifecycle.safe_commit", failing_commit)
        with client.websocket_connect("/ws", headers=admin_headers) as sender, \
                client.websocket_connect("/ws", headers=waiter_headers) as peer:
            auth(sender, tenant.id)
            auth(peer, tenant.id)

            sender.send_json({"type": "table_update", "tableId": table5.id, "status": "occupied"})
            error = sender.receive_json()

            # The peer's next frame is its own pong: no table_updated was sent
            peer.send_json({"type": "ping"})
            assert peer.receive_json() == {"type": "pong"}

        assert error["type"] == "error"
        assert "Database error" in error["message"]
        assert reload(db_session, table5).status == "empty"

    def test_oversized_frame_closes_connection(self, client, admin_headers, monkeypatch):
        from shared.config.settings import settings

        monkeypatch.setattr(settings, "ws_max_message_size", 32)
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            ws.send_text("x" * 64)
            with pytest.raises(WebSocketDisconnect) as exc:
                ws.receive_json()
        assert exc.value.code == 1009


def active_order_line(db_session, order, menu_item):
    from rest_api.models import OrderItem

    line = OrderItem(
        order_id=order.id,
        menu_item_id=menu_item.id,
        quantity=1,
        unit_price=Decimal("50.00"),
        status="new",
    )
    db_session.add(line)
    db_session.commit()
    return line


class TestRestMutationsReachRealtime:

    def test_rest_patch_is_broadcast(self, client, admin_headers, tenant, table5):
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            auth(ws, tenant.id)

            response = client.patch(
                f"/api/tables/{table5.id}", json={"status": "bill_requested"}, headers=admin_headers
            )
            assert response.status_code == 200

            message = ws.receive_json()

        assert message["type"] == "table_updated"
        assert message["table"]["status"] == "bill_requested"

    def test_rest_order_item_post_is_broadcast(self, client, admin_headers, tenant, active_order, kebab):
        with client.websocket_connect("/ws", headers=admin_headers) as ws:
            auth(ws, tenant.id)

            response = client.post(
                f"/api/orders/{active_order.id}/items",
                json={"menuItemId": kebab.id, "quantity": 2},
                headers=admin_headers,
            )
            assert response.status_code == 201

            item_msg = ws.receive_json()
            order_msg = ws.receive_json()

        assert item_msg["type"] == "order_item_updated"
        assert order_msg["order"]["totalAmount"] == "100.00"
