from conftest import auth_header


class TestFamilies:
    def test_creator_becomes_admin(self, client, register):
        alice = register("alice")
        resp = client.post("/api/families", json={"name": "Smiths"}, headers=alice["headers"])
        assert resp.status_code == 201
        family_id = resp.json()["id"]

        resp = client.get("/api/families", headers=alice["headers"])
        assert [(f["id"], f["role"]) for f in resp.json()] == [(family_id, "admin")]

    def test_get_family_with_members(self, client, family):
        resp = client.get(f"/api/families/{family['id']}", headers=family["member"]["headers"])
        assert resp.status_code == 200
        body = resp.json()
        assert body["name"] == "Smiths"
        assert body["role"] == "member"
        roles = {m["email"]: m["role"] for m in body["members"]}
        assert roles == {"alice@example.com": "admin", "bob@example.com": "member"}

    def test_outsider_is_denied(self, client, family, register):
        eve = register("eve")
        resp = client.get(f"/api/families/{family['id']}", headers=eve["headers"])
        assert resp.status_code == 403
        assert resp.json() == {"error": "Access denied. You are not a member of this family."}

    def test_list_members(self, client, family):
        resp = client.get(f"/api/families/{family['id']}/members", headers=family["member"]["headers"])
        assert resp.status_code == 200
        assert len(resp.json()) == 2


class TestMembers:
    def test_add_unknown_email_creates_account(self, client, family):
        resp = client.post(
            f"/api/families/{family['id']}/members",
            json={"email": "carol@example.com", "name": "Carol"},
            headers=family["admin"]["headers"],
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["isNewUser"] is True
        assert body["role"] == "member"
        temporary = body["temporaryPassword"]
        assert temporary

        login = client.post("/api/auth/login", json={"login": "carol@example.com", "password": temporary})
        assert login.status_code == 200
        assert login.json()["user"]["username"] == "carol"

    def test_unknown_email_requires_name(self, client, family):
        resp = client.post(
            f"/api/families/{family['id']}/members",
            json={"email": "carol@example.com"},
            headers=family["admin"]["headers"],
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Name is required for new users"}

    def test_generated_username_avoids_clash(self, client, family, register):
        register("carol", email="carol@other.org")
        resp = client.post(
            f"/api/families/{family['id']}/members",
            json={"email": "carol@example.com", "name": "Carol Two"},
            headers=family["admin"]["headers"],
        )
        assert resp.status_code == 201
        login = client.post(
            "/api/auth/login",
            json={"login": "carol@example.com", "password": resp.json()["temporaryPassword"]},
        )
        username = login.json()["user"]["username"]
        assert username.startswith("carol_")

    def test_existing_member_is_re_roled(self, client, family):
        resp = client.post(
            f"/api/families/{family['id']}/members",
            json={"email": "bob@example.com", "role": "admin"},
            headers=family["admin"]["headers"],
        )
        assert resp.status_code == 201
        assert resp.json()["isNewUser"] is False
        assert resp.json()["temporaryPassword"] is None

        members = client.get(f"/api/families/{family['id']}/members", headers=family["admin"]["headers"])
        roles = {m["email"]: m["role"] for m in members.json()}
        assert roles["bob@example.com"] == "admin"

    def test_last_admin_cannot_be_demoted(self, client, family):
        resp = client.post(
            f"/api/families/{family['id']}/members",
            json={"email": "alice@example.com", "role": "member"},
            headers=family["admin"]["headers"],
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "A family must keep at least one admin"}

    def test_member_cannot_add_members(self, client, family):
        resp = client.post(
            f"/api/families/{family['id']}/members",
            json={"email": "carol@example.com", "name": "Carol"},
            headers=family["member"]["headers"],
        )
        assert resp.status_code == 403
        assert resp.json() == {"error": "Only family admins can perform this action"}

    def test_remove_member(self, client, family):
        bob_id = family["member"]["user"]["id"]
        resp = client.delete(
            f"/api/families/{family['id']}/members/{bob_id}", headers=family["admin"]["headers"]
        )
        assert resp.status_code == 200
        resp = client.get(f"/api/families/{family['id']}", headers=family["member"]["headers"])
        assert resp.status_code == 403

    def test_admin_cannot_remove_self(self, client, family):
        alice_id = family["admin"]["user"]["id"]
        resp = client.delete(
            f"/api/families/{family['id']}/members/{alice_id}", headers=family["admin"]["headers"]
        )
        assert resp.status_code == 400

    def test_remove_non_member(self, client, family):
        resp = client.delete(f"/api/families/{family['id']}/members/9999", headers=family["admin"]["headers"])
        assert resp.status_code == 404


class TestDeleteFamily:
    def test_creator_deletes_family_and_its_data(self, client, family, default_category_id):
        headers = family["admin"]["headers"]
        client.post(
            "/api/expenses",
            json={"family_id": family["id"], "category_id": default_category_id, "amount": "10.00", "date": "2024-05-01"},
            headers=headers,
        )
        client.post(f"/api/categories/{family['id']}", json={"name": "Pets", "color": "#112233"}, headers=headers)

        resp = client.delete(f"/api/families/{family['id']}", headers=headers)
        assert resp.status_code == 200
        assert client.get("/api/families", headers=headers).json() == []

        # A fresh family sees only the defaults again.
        other = client.post("/api/families", json={"name": "Fresh"}, headers=headers).json()
        names = [c["name"] for c in client.get(f"/api/categories/{other['id']}", headers=headers).json()]
        assert "Pets" not in names

    def test_promoted_admin_who_is_not_creator_cannot_delete(self, client, family):
        client.post(
            f"/api/families/{family['id']}/members",
            json={"email": "bob@example.com", "role": "admin"},
            headers=family["admin"]["headers"],
        )
        resp = client.delete(f"/api/families/{family['id']}", headers=family["member"]["headers"])
        assert resp.status_code == 403

    def test_member_cannot_delete(self, client, family):
        resp = client.delete(f"/api/families/{family['id']}", headers=family["member"]["headers"])
        assert resp.status_code == 403


def test_families_require_auth(client):
    assert client.get("/api/families").status_code == 401
    assert client.get("/api/families", headers=auth_header("x")).status_code == 401
