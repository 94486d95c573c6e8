"""Downloadable form endpoint tests."""

import pytest


@pytest.fixture
async def make_form(client):
    async def create(**fields):
        payload = {"title": "Leave form", "category": "hr", "fileUrl": "/forms/leave.pdf", **fields}
        response = await client.post("/api/forms", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return create


class TestForms:
    async def test_create_defaults(self, client, make_form):
        form = await make_form()
        assert form["downloadCount"] == 0
        assert form["isActive"] is True
        assert form["category"] == "hr"

    async def test_download_increments(self, client, make_form):
        form = await make_form(fileName="leave.pdf")
        for expected in (1, 2):
            response = await client.post(f"/api/forms/{form['id']}/download")
            data = response.json()["data"]
            assert data["downloadCount"] == expected
            assert data["fileUrl"] == "/forms/leave.pdf"

    async def test_list_ordering_and_filters(self, client, make_form):
        await make_form(title="Salary certificate", category="finance")
        await make_form(title="Vacation request")
        await make_form(title="Archive me", category="general", isActive=False)

        titles = [f["title"] for f in (await client.get("/api/forms")).json()["data"]]
        assert titles == ["Salary certificate", "Archive me", "Vacation request"]

        active = await client.get("/api/forms", params={"is_active": "true"})
        assert active.json()["count"] == 2
        found = await client.get("/api/forms", params={"search": "salary"})
        assert [f["title"] for f in found.json()["data"]] == ["Salary certificate"]

    async def test_stats(self, client, make_form):
        first = await make_form()
        await make_form(title="Expense claim", category="finance")
        await make_form(title="Old", isActive=False)
        await client.post(f"/api/forms/{first['id']}/download")

        stats = (await client.get("/api/forms/stats")).json()["data"]
        assert stats["totalForms"] == 3
        assert stats["activeFormsCount"] == 2
        assert stats["totalDownloads"] == 1
        assert stats["categoryCounts"] == {"hr": 1, "finance": 1}

    async def test_update_and_delete(self, client, make_form):
        form = await make_form()
        response = await client.put(f"/api/forms/{form['id']}", json={"isActive": False})
        assert response.json()["data"]["isActive"] is False
        assert (await client.delete(f"/api/forms/{form['id']}")).status_code == 200
        assert (await client.get(f"/api/forms/{form['id']}")).status_code == 404

    async def test_any_user_reads_but_only_settings_manage(self, client, make_form, as_user):
        form = await make_form()
        as_user()

        assert (await client.get("/api/forms")).status_code == 200
        assert (await client.post(f"/api/forms/{form['id']}/download")).status_code == 200
        response = await client.post("/api/forms", json={"title": "Nope"})
        assert response.status_code == 403
        assert response.json()["error"] == "Missing permission: system_settings"
