class TestPartners:
    def test_manager_lists_managed_partners(self, client, manager, partner, make_user, auth_headers):
        make_user("partner", name="Sem Gerente")
        data = client.get("/api/partners", headers=auth_headers(manager)).json()["data"]
        assert [p["id"] for p in data] == [partner.id]
        assert data[0]["manager_name"] == manager.name
        assert data[0]["clients_count"] == 0

    def test_partner_sees_only_themselves(self, client, partner, make_user, auth_headers):
        other = make_user("partner")
        data = client.get("/api/partners", headers=auth_headers(partner)).json()["data"]
        assert [p["id"] for p in data] == [partner.id]
        resp = client.get(f"/api/partners/{other.id}", headers=auth_headers(partner))
        assert resp.status_code == 404

    def test_admin_lists_all(self, client, admin, partner, make_user, auth_headers):
        make_user("partner")
        data = client.get("/api/partners", headers=auth_headers(admin)).json()["data"]
        assert len(data) == 2

    def test_partner_updates_bank_data(self, client, partner, auth_headers):
        resp = client.put(
            f"/api/partners/{partner.id}",
            json={"bank_name": "Banco Teste", "bank_agency": "0001", "pix_key": "paulo@pix"},
            headers=auth_headers(partner),
        )
        assert resp.status_code == 200
        bank = resp.json()["data"]["bank_data"]
        assert bank["bank_name"] == "Banco Teste"
        assert bank["agency"] == "0001"
        assert bank["pix_key"] == "paulo@pix"

    def test_partner_cannot_change_manager(self, client, partner, make_user, auth_headers):
        other_manager = make_user("manager")
        resp = client.put(
            f"/api/partners/{partner.id}", json={"manager_id": other_manager.id}, headers=auth_headers(partner),
        )
        assert resp.status_code == 403

    def test_admin_reassigns_manager(self, client, admin, partner, make_user, auth_headers):
        other_manager = make_user("manager", name="Novo Gerente")
        resp = client.put(
            f"/api/partners/{partner.id}", json={"manager_id": other_manager.id}, headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["manager_name"] == "Novo Gerente"

    def test_non_partner_id_is_not_found(self, client, admin, manager, auth_headers):
        assert client.get(f"/api/partners/{manager.id}", headers=auth_headers(admin)).status_code == 404
