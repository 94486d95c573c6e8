"""User administration and permission catalogue tests."""

ADMIN_ID = "00000000-0000-0000-0000-000000000001"


class TestUsers:
    async def test_create_user_with_default_permissions(self, client):
        response = await client.post(
            "/api/users",
            json={"name": "Layla", "email": "Layla@Example.com", "password": "long-enough"},
        )
        assert response.status_code == 201
        user = response.json()["data"]
        assert user["email"] == "layla@example.com"
        assert user["role"] == "employee"
        assert "leaves_request" in user["permissions"]
        assert "passwordHash" not in user

    async def test_employee_cannot_receive_system_permissions(self, client):
        response = await client.post(
            "/api/users",
            json={
                "name": "Omar",
                "email": "omar@example.com",
                "password": "long-enough",
                "permissions": ["users_delete", "payroll_view", "not_a_permission"],
            },
        )
        assert response.json()["data"]["permissions"] == ["payroll_view"]

    async def test_admin_defaults_to_empty_permissions(self, client):
        response = await client.post(
            "/api/users",
            json={
                "name": "Root",
                "email": "root@example.com",
                "password": "long-enough",
                "role": "admin",
            },
        )
        assert response.json()["data"]["permissions"] == []

    async def test_duplicate_email_conflicts(self, client):
        payload = {"name": "A", "email": "dup@example.com", "password": "long-enough"}
        assert (await client.post("/api/users", json=payload)).status_code == 201
        payload["email"] = "DUP@example.com"
        response = await client.post("/api/users", json=payload)
        assert response.status_code == 409

    async def test_short_password_is_invalid(self, client):
        response = await client.post(
            "/api/users", json={"name": "A", "email": "a@example.com", "password": "short"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid input data"

    async def test_update_list_and_stats(self, client):
        created = (
            await client.post(
                "/api/users",
                json={"name": "Huda", "email": "huda@example.com", "password": "long-enough"},
            )
        ).json()["data"]

        response = await client.put(f"/api/users/{created['id']}", json={"status": "suspended"})
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "suspended"

        listed = await client.get("/api/users", params={"status": "suspended"})
        assert [u["id"] for u in listed.json()["data"]] == [created["id"]]

        stats = (await client.get("/api/users/stats")).json()["data"]
        assert stats["total"] == 1
        assert stats["suspended"] == 1
        assert stats["byRole"] == {"employee": 1}

    async def test_cannot_delete_yourself(self, client):
        response = await client.delete(f"/api/users/{ADMIN_ID}")
        assert response.status_code == 400

    async def test_delete_user(self, client):
        created = (
            await client.post(
                "/api/users",
                json={"name": "Temp", "email": "temp@example.com", "password": "long-enough"},
            )
        ).json()["data"]
        assert (await client.delete(f"/api/users/{created['id']}")).status_code == 200
        assert (await client.get(f"/api/users/{created['id']}")).status_code == 404


class TestPermissionCatalogue:
    async def test_catalogue(self, client):
        data = (await client.get("/api/permissions")).json()["data"]
        ids = {p["id"] for p in data["permissions"]}
        assert "payroll_approve" in ids
        assert data["categories"]["system"] == "User management"

    async def test_validate(self, client):
        response = await client.post(
            "/api/permissions/validate",
            json={"permissions": ["employees_view", "users_add", "bogus"], "role": "employee"},
        )
        data = response.json()["data"]
        assert data["valid"] == ["employees_view", "users_add"]
        assert data["invalid"] == ["bogus"]
        assert data["highRisk"] == ["users_add"]
        assert data["allowed"] == ["employees_view"]
