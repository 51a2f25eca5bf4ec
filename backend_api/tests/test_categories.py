from family_ledger.stores.categories import DEFAULT_CATEGORIES, CategoryStore


class TestCategories:
    def test_defaults_are_visible_to_every_family(self, client, family):
        rows = client.get(f"/api/categories/{family['id']}", headers=family["member"]["headers"]).json()
        names = [c["name"] for c in rows]
        assert names == sorted(name for name, _ in DEFAULT_CATEGORIES)
        assert all(c["is_default"] and c["family_id"] is None for c in rows)

    def test_admin_creates_custom_category(self, client, family):
        headers = family["admin"]["headers"]
        resp = client.post(f"/api/categories/{family['id']}", json={"name": "Pets", "color": "#AABBCC"}, headers=headers)
        assert resp.status_code == 201
        assert resp.json()["family_id"] == family["id"]
        assert resp.json()["is_default"] is False

        names = [c["name"] for c in client.get(f"/api/categories/{family['id']}", headers=headers).json()]
        assert "Pets" in names

    def test_custom_category_is_private_to_its_family(self, client, family, register):
        client.post(
            f"/api/categories/{family['id']}",
            json={"name": "Pets", "color": "#AABBCC"},
            headers=family["admin"]["headers"],
        )
        eve = register("eve")
        other = client.post("/api/families", json={"name": "Others"}, headers=eve["headers"]).json()
        names = [c["name"] for c in client.get(f"/api/categories/{other['id']}", headers=eve["headers"]).json()]
        assert "Pets" not in names

    def test_member_cannot_manage_categories(self, client, family):
        resp = client.post(
            f"/api/categories/{family['id']}",
            json={"name": "Pets", "color": "#AABBCC"},
            headers=family["member"]["headers"],
        )
        assert resp.status_code == 403

    def test_bad_color_rejected(self, client, family):
        resp = client.post(
            f"/api/categories/{family['id']}",
            json={"name": "Pets", "color": "blue"},
            headers=family["admin"]["headers"],
        )
        assert resp.status_code == 400

    def test_update_custom_category(self, client, family):
        headers = family["admin"]["headers"]
        created = client.post(
            f"/api/categories/{family['id']}", json={"name": "Pets", "color": "#AABBCC"}, headers=headers
        ).json()
        resp = client.put(f"/api/categories/{family['id']}/{created['id']}", json={"color": "#000000"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["name"] == "Pets"
        assert resp.json()["color"] == "#000000"

    def test_defaults_cannot_be_changed(self, client, family, default_category_id):
        headers = family["admin"]["headers"]
        url = f"/api/categories/{family['id']}/{default_category_id}"
        resp = client.put(url, json={"name": "Misc"}, headers=headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Category not found or cannot be updated"}
        resp = client.delete(url, headers=headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Category not found or cannot be deleted"}

    def test_empty_update_rejected(self, client, family):
        headers = family["admin"]["headers"]
        created = client.post(
            f"/api/categories/{family['id']}", json={"name": "Pets", "color": "#AABBCC"}, headers=headers
        ).json()
        resp = client.put(f"/api/categories/{family['id']}/{created['id']}", json={}, headers=headers)
        assert resp.status_code == 400

    def test_delete_uncategorizes_expenses(self, client, family):
        headers = family["admin"]["headers"]
        created = client.post(
            f"/api/categories/{family['id']}", json={"name": "Pets", "color": "#AABBCC"}, headers=headers
        ).json()
        expense = client.post(
            "/api/expenses",
            json={"family_id": family["id"], "category_id": created["id"], "amount": "12", "date": "2024-05-02"},
            headers=headers,
        ).json()

        resp = client.delete(f"/api/categories/{family['id']}/{created['id']}", headers=headers)
        assert resp.status_code == 200

        fetched = client.get(f"/api/expenses/{family['id']}/{expense['id']}", headers=headers).json()
        assert fetched["category_id"] is None
        row = client.get(f"/api/expenses/{family['id']}", headers=headers).json()[0]
        assert row["category_name"] is None


def test_ensure_defaults_is_idempotent(session):
    store = CategoryStore(session)
    # Startup already seeded them.
    assert store.ensure_defaults() == 0
    assert len([c for c in store.list(family_id=0) if c.is_default]) == len(DEFAULT_CATEGORIES)
