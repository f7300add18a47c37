"""
Tests for the floor plan endpoints: areas and tables.
"""

from conftest import reload


class TestAreas:

    def test_list_areas(self, client, tenant, area, admin_headers):
        response = client.get(f"/api/tenants/{tenant.id}/areas", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == [
            {"id": area.id, "tenantId": tenant.id, "name": "İç Alan", "isActive": True}
        ]

    def test_create_area(self, client, tenant, admin_headers):
        response = client.post(
            f"/api/tenants/{tenant.id}/areas",
            json={"name": "Teras"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Teras"
        assert response.json()["tenantId"] == tenant.id

    def test_waiter_cannot_create_area(self, client, tenant, waiter_headers):
        response = client.post(
            f"/api/tenants/{tenant.id}/areas",
            json={"name": "Teras"},
            headers=waiter_headers,
        )
        assert response.status_code == 403
        assert "message" in response.json()

    def test_other_tenant_is_forbidden(self, client, tenant, area, other_headers):
        response = client.get(f"/api/tenants/{tenant.id}/areas", headers=other_headers)
        assert response.status_code == 403

    def test_requires_session(self, client, tenant):
        assert client.get(f"/api/tenants/{tenant.id}/areas").status_code == 401


class TestTables:

    def test_list_tables(self, client, tenant, tables, admin_headers):
        response = client.get(f"/api/tenants/{tenant.id}/tables", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert [t["name"] for t in body] == [f"Masa {i}" for i in range(1, 6)]
        assert body[0]["status"] == "empty"
        assert {"posX", "posY", "areaId", "isActive"} <= set(body[0])

    def test_list_tables_of_area(self, client, area, tables, waiter_headers):
        response = client.get(f"/api/areas/{area.id}/tables", headers=waiter_headers)

        assert response.status_code == 200
        assert len(response.json()) == 5

    def test_area_of_other_tenant_is_not_found(self, client, area, other_headers):
        response = client.get(f"/api/areas/{area.id}/tables", headers=other_headers)

        assert response.status_code == 404
        assert response.json()["message"] == f"Area {area.id} not found"

    def test_create_table(self, client, tenant, area, admin_headers):
        response = client.post(
            f"/api/tenants/{tenant.id}/tables",
            json={"name": "Masa 11", "areaId": area.id, "capacity": 6, "posX": 300, "posY": 240},
            headers=admin_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "empty"
        assert body["capacity"] == 6
        assert (body["posX"], body["posY"]) == (300, 240)

    def test_create_table_in_foreign_area(self, client, tenant, other_table, admin_headers):
        response = client.post(
            f"/api/tenants/{tenant.id}/tables",
            json={"name": "Masa X", "areaId": other_table.area_id},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_invalid_status_is_400(self, client, tenant, area, admin_headers):
        response = client.post(
            f"/api/tenants/{tenant.id}/tables",
            json={"name": "Masa X", "areaId": area.id, "status": "dirty"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "status" in response.json()["message"]


class TestTableUpdate:

    def test_patch_status(self, client, table5, waiter_headers, db_session):
        response = client.patch(
            f"/api/tables/{table5.id}",
            json={"status": "bill_requested"},
            headers=waiter_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "bill_requested"
        assert reload(db_session, table5).status == "bill_requested"

    def test_patch_layout_keeps_status(self, client, table5, admin_headers, db_session):
        response = client.patch(
            f"/api/tables/{table5.id}",
            json={"posX": 450, "posY": 120},
            headers=admin_headers,
        )

        assert response.status_code == 200
        table = reload(db_session, table5)
        assert (table.pos_x, table.pos_y) == (450, 120)
        assert table.status == "empty"

    def test_patch_other_tenant_table(self, client, other_table, admin_headers):
        response = client.patch(
            f"/api/tables/{other_table.id}",
            json={"status": "occupied"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_patch_requires_session(self, client, table5):
        assert client.patch(f"/api/tables/{table5.id}", json={"status": "occupied"}).status_code == 401

    def test_non_json_body_is_415(self, client, table5, admin_headers):
        response = client.patch(
            f"/api/tables/{table5.id}",
            content="status=occupied",
            headers={**admin_headers, "content-type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 415


class TestTenants:

    def test_get_tenant(self, client, tenant, waiter_headers):
        response = client.get(f"/api/tenants/{tenant.id}", headers=waiter_headers)

        assert response.status_code == 200
        assert response.json()["name"] == "Test Restaurant"
        assert response.json()["themeColor"] == "#4F46E5"

    def test_list_users_hides_passwords(self, client, tenant, admin_user, waiter_user, admin_headers):
        response = client.get(f"/api/tenants/{tenant.id}/users", headers=admin_headers)

        assert response.status_code == 200
        users = response.json()
        assert [u["username"] for u in users] == ["admin", "waiter"]
        assert all("password" not in u for u in users)

    def test_waiter_cannot_list_users(self, client, tenant, waiter_headers):
        assert client.get(f"/api/tenants/{tenant.id}/users", headers=waiter_headers).status_code == 403

    def test_other_tenant_forbidden(self, client, tenant, other_headers):
        assert client.get(f"/api/tenants/{tenant.id}", headers=other_headers).status_code == 403
