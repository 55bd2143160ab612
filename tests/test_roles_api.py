import pytest

from partner_crm.db.seeds.seed_roles import seed_roles
from partner_crm.models.role import RoleRecord


@pytest.fixture
def system_roles(db):
    seed_roles(db)
    return {r.name: r.id for r in db.query(RoleRecord).all()}


class TestReadRoles:
    def test_requires_authentication(self, client):
        resp = client.get("/api/roles")
        assert resp.status_code == 401
        assert resp.json()["success"] is False

    def test_lists_system_roles(self, client, system_roles, partner, auth_headers):
        resp = client.get("/api/roles", headers=auth_headers(partner))
        assert resp.status_code == 200
        names = {r["name"] for r in resp.json()["data"]}
        assert names == {"superadmin", "administrator", "admin", "manager", "partner", "client"}
        assert all(r["is_system"] for r in resp.json()["data"])

    def test_permission_registry(self, client, partner, auth_headers):
        data = client.get("/api/roles/permissions", headers=auth_headers(partner)).json()["data"]
        keys = {p["key"] for p in data["permissions"]}
        assert "admin.roles" in keys
        assert "clients" in data["grouped"]

    def test_hierarchy_for_manager(self, client, manager, auth_headers):
        data = client.get("/api/roles/hierarchy", headers=auth_headers(manager)).json()["data"]
        assert data["level"] == 3
        assert data["creatable_roles"] == ["manager", "partner", "client"]
        assert set(data["viewable_roles"]) == {"manager", "partner", "client"}

    def test_get_role(self, client, system_roles, partner, auth_headers):
        resp = client.get(f"/api/roles/{system_roles['manager']}", headers=auth_headers(partner))
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "manager"

    def test_get_missing_role(self, client, admin, auth_headers):
        resp = client.get("/api/roles/999", headers=auth_headers(admin))
        assert resp.status_code == 404
        assert resp.json()["code"] == "NOT_FOUND"


class TestRoleMutations:
    def test_round_trip_permissions(self, client, admin, auth_headers):
        headers = auth_headers(admin)
        perms = ["support.view", "clients.view", "reports.export"]
        resp = client.post(
            "/api/roles",
            json={"name": "Analista", "description": "Somente leitura", "permissions": perms},
            headers=headers,
        )
        assert resp.status_code == 201
        assert resp.json()["success"] is True

        listed = client.get("/api/roles", headers=headers).json()["data"]
        created = next(r for r in listed if r["name"] == "Analista")
        assert set(created["permissions"]) == set(perms)
        assert created["is_system"] is False

    def test_partner_cannot_create(self, client, partner, auth_headers):
        resp = client.post("/api/roles", json={"name": "X"}, headers=auth_headers(partner))
        assert resp.status_code == 403

    def test_name_required(self, client, admin, auth_headers):
        resp = client.post("/api/roles", json={"name": "   "}, headers=auth_headers(admin))
        assert resp.status_code == 400

    def test_duplicate_name_is_case_insensitive(self, client, system_roles, admin, auth_headers):
        resp = client.post("/api/roles", json={"name": "Manager"}, headers=auth_headers(admin))
        assert resp.status_code == 409

    def test_unknown_permission_rejected(self, client, admin, auth_headers):
        resp = client.post(
            "/api/roles",
            json={"name": "Hacker", "permissions": ["clients.view", "nuke.everything"]},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "UNKNOWN_PERMISSION"

    def test_update_custom_role(self, client, admin, auth_headers):
        headers = auth_headers(admin)
        role_id = client.post(
            "/api/roles", json={"name": "Suporte", "permissions": ["support.view"]}, headers=headers,
        ).json()["data"]["id"]

        resp = client.put(
            f"/api/roles/{role_id}",
            json={"name": "Suporte N2", "permissions": ["support.view", "support.manage"]},
            headers=headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["name"] == "Suporte N2"
        assert set(data["permissions"]) == {"support.view", "support.manage"}

    def test_system_role_cannot_be_renamed(self, client, system_roles, admin, auth_headers):
        resp = client.put(
            f"/api/roles/{system_roles['partner']}",
            json={"name": "parceiro"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == "SYSTEM_ROLE"

    def test_system_role_permissions_can_change(self, client, system_roles, admin, make_user, auth_headers):
        partner_user = make_user("partner")
        resp = client.put(
            f"/api/roles/{system_roles['partner']}",
            json={"permissions": ["dashboard.view"]},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200

        perms = client.get("/api/auth/permissions", headers=auth_headers(partner_user)).json()["data"]
        assert perms["permissions"] == ["dashboard.view"]

    def test_system_role_cannot_be_deleted(self, client, system_roles, admin, auth_headers):
        resp = client.delete(f"/api/roles/{system_roles['client']}", headers=auth_headers(admin))
        assert resp.status_code == 403

    def test_role_in_use_cannot_be_deleted(self, client, admin, auth_headers):
        headers = auth_headers(admin)
        role_id = client.post("/api/roles", json={"name": "Vendedor"}, headers=headers).json()["data"]["id"]
        assigned = client.post(
            "/api/users",
            json={"email": "v@test.local", "name": "Vera", "password": "secret123", "role_id": role_id},
            headers=headers,
        )
        assert assigned.status_code == 201

        resp = client.delete(f"/api/roles/{role_id}", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "ROLE_IN_USE"

    def test_delete_custom_role(self, client, admin, auth_headers):
        headers = auth_headers(admin)
        role_id = client.post("/api/roles", json={"name": "Temporaria"}, headers=headers).json()["data"]["id"]
        assert client.delete(f"/api/roles/{role_id}", headers=headers).status_code == 200
        assert client.get(f"/api/roles/{role_id}", headers=headers).status_code == 404

    def test_base_role_defaults_to_partner(self, client, admin, auth_headers):
        data = client.post("/api/roles", json={"name": "Indicador"}, headers=auth_headers(admin)).json()["data"]
        assert data["base_role"] == "partner"

    def test_unknown_base_role(self, client, admin, auth_headers):
        resp = client.post("/api/roles", json={"name": "X", "base_role": "owner"}, headers=auth_headers(admin))
        assert resp.status_code == 400

    def test_base_role_above_own_level(self, client, admin, auth_headers):
        resp = client.post(
            "/api/roles", json={"name": "Raiz", "base_role": "superadmin"}, headers=auth_headers(admin),
        )
        assert resp.status_code == 403
