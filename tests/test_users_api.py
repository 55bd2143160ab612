import pytest

from partner_crm.models.role import RoleRecord
from partner_crm.models.user import User


def _new_user(role, email):
    return {"email": email, "name": "Novo Usuário", "password": "secret123", "role": role}


class TestListUsers:
    def test_manager_does_not_see_admins(self, client, superadmin, admin, manager, partner, make_user, auth_headers):
        make_user("client")
        resp = client.get("/api/users", headers=auth_headers(manager))
        assert resp.status_code == 200
        roles = {u["role"] for u in resp.json()["data"]["users"]}
        assert roles == {"manager", "partner", "client"}

    def test_partner_sees_only_partners(self, client, admin, manager, partner, make_user, auth_headers):
        make_user("partner")
        users = client.get("/api/users", headers=auth_headers(partner)).json()["data"]["users"]
        assert len(users) == 2
        assert {u["role"] for u in users} == {"partner"}

    def test_administrator_sees_all_but_superadmin(self, client, superadmin, admin, manager, partner, auth_headers):
        data = client.get("/api/users", headers=auth_headers(admin)).json()["data"]
        assert data["total"] == 3
        assert "superadmin" not in {u["role"] for u in data["users"]}

    def test_hidden_user_looks_missing(self, client, admin, manager, auth_headers):
        resp = client.get(f"/api/users/{admin.id}", headers=auth_headers(manager))
        assert resp.status_code == 404


class TestCreateUser:
    def test_manager_creates_partner_under_themselves(self, client, db, manager, auth_headers):
        resp = client.post(
            "/api/users", json=_new_user("partner", "novo@test.local"), headers=auth_headers(manager),
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["role"] == "partner"
        assert data["manager_id"] == manager.id

    def test_manager_cannot_create_administrator(self, client, manager, auth_headers):
        resp = client.post(
            "/api/users", json=_new_user("administrator", "boss@test.local"), headers=auth_headers(manager),
        )
        assert resp.status_code == 403

    def test_equal_level_is_allowed(self, client, admin, auth_headers):
        resp = client.post(
            "/api/users", json=_new_user("ADMIN", "peer@test.local"), headers=auth_headers(admin),
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["role"] == "admin"

    def test_manager_cannot_create_peer_manager(self, client, manager, auth_headers):
        resp = client.post(
            "/api/users", json=_new_user("manager", "peer@test.local"), headers=auth_headers(manager),
        )
        assert resp.status_code == 403

    def test_manager_partners_always_join_their_portfolio(self, client, manager, make_user, auth_headers):
        other_manager = make_user("manager")
        body = dict(_new_user("partner", "novo@test.local"), manager_id=other_manager.id)
        resp = client.post("/api/users", json=body, headers=auth_headers(manager))
        assert resp.status_code == 201
        assert resp.json()["data"]["manager_id"] == manager.id

    def test_partner_cannot_create_partner(self, client, partner, auth_headers):
        resp = client.post(
            "/api/users", json=_new_user("partner", "peer@test.local"), headers=auth_headers(partner),
        )
        assert resp.status_code == 403

    def test_role_is_required(self, client, admin, auth_headers):
        body = _new_user("partner", "x@test.local")
        del body["role"]
        assert client.post("/api/users", json=body, headers=auth_headers(admin)).status_code == 400

    def test_unknown_role(self, client, admin, auth_headers):
        resp = client.post(
            "/api/users", json=_new_user("owner", "own@test.local"), headers=auth_headers(admin),
        )
        assert resp.status_code == 400

    def test_duplicate_email(self, client, admin, partner, auth_headers):
        resp = client.post(
            "/api/users", json=_new_user("partner", partner.email), headers=auth_headers(admin),
        )
        assert resp.status_code == 409

    def test_short_password(self, client, admin, auth_headers):
        body = _new_user("partner", "short@test.local")
        body["password"] = "123"
        resp = client.post("/api/users", json=body, headers=auth_headers(admin))
        assert resp.status_code == 400


class TestUpdateUser:
    def test_admin_promotes_partner(self, client, admin, partner, auth_headers):
        resp = client.put(f"/api/users/{partner.id}", json={"role": "manager"}, headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["data"]["role"] == "manager"

    def test_manager_cannot_promote_to_administrator(self, client, manager, partner, auth_headers):
        resp = client.put(
            f"/api/users/{partner.id}", json={"role": "administrator"}, headers=auth_headers(manager),
        )
        assert resp.status_code == 403

    def test_cannot_change_own_role(self, client, admin, auth_headers):
        resp = client.put(f"/api/users/{admin.id}", json={"role": "manager"}, headers=auth_headers(admin))
        assert resp.status_code == 403

    def test_profile_fields(self, client, manager, partner, auth_headers):
        resp = client.put(
            f"/api/users/{partner.id}",
            json={"name": "Paulo Silva", "phone": "+55 11 99999-0000"},
            headers=auth_headers(manager),
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["name"] == "Paulo Silva"
        assert data["phone"] == "+55 11 99999-0000"


class TestPasswordAndDelete:
    def test_change_own_password(self, client, partner, auth_headers):
        resp = client.put(
            f"/api/users/{partner.id}/password",
            json={"current_password": "secret123", "new_password": "nova-senha"},
            headers=auth_headers(partner),
        )
        assert resp.status_code == 200
        login = client.post("/api/auth/login", json={"email": partner.email, "password": "nova-senha"})
        assert login.status_code == 200

    def test_wrong_current_password(self, client, partner, auth_headers):
        resp = client.put(
            f"/api/users/{partner.id}/password",
            json={"current_password": "nope", "new_password": "nova-senha"},
            headers=auth_headers(partner),
        )
        assert resp.status_code == 401

    def test_cannot_change_someone_elses_password(self, client, admin, partner, auth_headers):
        resp = client.put(
            f"/api/users/{partner.id}/password",
            json={"current_password": "secret123", "new_password": "nova-senha"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 403

    def test_delete_user(self, client, db, admin, partner, auth_headers):
        partner_id = partner.id
        resp = client.delete(f"/api/users/{partner_id}", headers=auth_headers(admin))
        assert resp.status_code == 200
        db.expire_all()
        assert db.query(User).filter(User.id == partner_id).first() is None

    def test_cannot_delete_self(self, client, admin, auth_headers):
        resp = client.delete(f"/api/users/{admin.id}", headers=auth_headers(admin))
        assert resp.status_code == 400

    def test_partner_cannot_delete_manager(self, client, manager, partner, auth_headers):
        # managers are invisible to partners
        resp = client.delete(f"/api/users/{manager.id}", headers=auth_headers(partner))
        assert resp.status_code == 404


class TestUserAuthority:
    def test_partner_cannot_delete_peer(self, client, db, partner, make_user, auth_headers):
        peer = make_user("partner")
        resp = client.delete(f"/api/users/{peer.id}", headers=auth_headers(partner))
        assert resp.status_code == 403
        assert resp.json()["success"] is False
        db.expire_all()
        assert db.query(User).filter(User.id == peer.id).first() is not None

    def test_partner_cannot_deactivate_peer(self, client, db, partner, make_user, auth_headers):
        peer = make_user("partner")
        resp = client.put(f"/api/users/{peer.id}", json={"status": "inactive"}, headers=auth_headers(partner))
        assert resp.status_code == 403
        db.expire_all()
        assert db.query(User).filter(User.id == peer.id).first().status == "active"

    def test_client_cannot_rename_peer(self, client, make_user, auth_headers):
        viewer, peer = make_user("client"), make_user("client")
        resp = client.put(f"/api/users/{peer.id}", json={"name": "Hacked"}, headers=auth_headers(viewer))
        assert resp.status_code == 403

    def test_partner_edits_own_profile(self, client, partner, auth_headers):
        resp = client.put(f"/api/users/{partner.id}", json={"company": "Paulo ME"}, headers=auth_headers(partner))
        assert resp.status_code == 200
        assert resp.json()["data"]["company"] == "Paulo ME"

    def test_cannot_change_own_status(self, client, partner, auth_headers):
        resp = client.put(f"/api/users/{partner.id}", json={"status": "inactive"}, headers=auth_headers(partner))
        assert resp.status_code == 403

    def test_manager_deactivates_own_partner(self, client, manager, partner, auth_headers):
        resp = client.put(f"/api/users/{partner.id}", json={"status": "inactive"}, headers=auth_headers(manager))
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "inactive"

    def test_manager_cannot_touch_unmanaged_partner(self, client, manager, make_user, auth_headers):
        stranger = make_user("partner")
        headers = auth_headers(manager)
        assert client.put(f"/api/users/{stranger.id}", json={"name": "X"}, headers=headers).status_code == 403
        assert client.delete(f"/api/users/{stranger.id}", headers=headers).status_code == 403

    def test_manager_cannot_reassign_manager(self, client, manager, partner, make_user, auth_headers):
        other_manager = make_user("manager")
        resp = client.put(
            f"/api/users/{partner.id}", json={"manager_id": other_manager.id}, headers=auth_headers(manager),
        )
        assert resp.status_code == 403

    def test_manager_deletes_own_partner(self, client, manager, partner, auth_headers):
        assert client.delete(f"/api/users/{partner.id}", headers=auth_headers(manager)).status_code == 200

    def test_user_admin_permission_from_role_record(self, client, db, manager, make_user, auth_headers):
        record = RoleRecord(name="manager", base_role="manager", is_system=True, is_active=True)
        record.permissions = ["admin.users"]
        db.add(record)
        db.commit()

        stranger = make_user("partner")
        resp = client.put(f"/api/users/{stranger.id}", json={"name": "Renomeado"}, headers=auth_headers(manager))
        assert resp.status_code == 200


@pytest.fixture
def seller_role(client, admin, auth_headers):
    resp = client.post(
        "/api/roles",
        json={"name": "Vendedor", "base_role": "partner", "permissions": ["clients.view", "clients.delete"]},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 201
    return resp.json()["data"]


class TestCustomRoleAssignment:
    def test_assign_by_name(self, client, admin, seller_role, auth_headers):
        resp = client.post(
            "/api/users", json=_new_user("Vendedor", "vendedor@test.local"), headers=auth_headers(admin),
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["role"] == "partner"
        assert data["role_id"] == seller_role["id"]

    def test_assigned_user_gets_record_permissions(self, client, db, admin, seller_role, auth_headers):
        body = dict(_new_user("partner", "vendedor@test.local"), role_id=seller_role["id"])
        created = client.post("/api/users", json=body, headers=auth_headers(admin)).json()["data"]

        seller = db.query(User).filter(User.id == created["id"]).first()
        perms = client.get("/api/auth/permissions", headers=auth_headers(seller)).json()["data"]
        assert perms["level"] == 2
        assert perms["permissions"] == ["clients.view", "clients.delete"]

    def test_reassign_existing_user(self, client, admin, partner, seller_role, auth_headers):
        resp = client.put(
            f"/api/users/{partner.id}", json={"role_id": seller_role["id"]}, headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["role_id"] == seller_role["id"]

        back = client.put(f"/api/users/{partner.id}", json={"role": "partner"}, headers=auth_headers(admin))
        assert back.json()["data"]["role_id"] is None

    def test_manager_cannot_assign_custom_role(self, client, manager, seller_role, auth_headers):
        resp = client.post(
            "/api/users", json=_new_user("Vendedor", "vendedor@test.local"), headers=auth_headers(manager),
        )
        assert resp.status_code == 403

    def test_inactive_custom_role(self, client, admin, seller_role, auth_headers):
        headers = auth_headers(admin)
        client.put(f"/api/roles/{seller_role['id']}", json={"is_active": False}, headers=headers)
        resp = client.post("/api/users", json=_new_user("Vendedor", "vendedor@test.local"), headers=headers)
        assert resp.status_code == 400

    def test_missing_role_id(self, client, admin, auth_headers):
        body = dict(_new_user("partner", "x@test.local"), role_id=999)
        assert client.post("/api/users", json=body, headers=auth_headers(admin)).status_code == 400
