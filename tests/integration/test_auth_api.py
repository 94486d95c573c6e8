"""Login, lockout, token and permission enforcement tests."""

import pytest

from hr_system.services import UserService

PASSWORD = "s3cret-pass"


@pytest.fixture
def make_user(session_factory):
    async def make(email: str = "staff@example.com", **fields):
        async with session_factory() as session:
            user = await UserService(session).create_user(
                {"name": "Staff Member", "email": email, "password": PASSWORD, **fields}
            )
            await session.commit()
            return user

    return make


async def _login(client, email="staff@example.com", password=PASSWORD, **extra):
    return await client.post(
        "/api/auth/login", json={"email": email, "password": password, **extra}
    )


class TestLogin:
    async def test_success_returns_token_and_cookie(self, anon_client, make_user):
        await make_user()
        response = await _login(anon_client, email="Staff@Example.com")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["token"]
        assert body["data"]["expiresIn"] == 24 * 3600
        assert body["data"]["user"]["email"] == "staff@example.com"
        assert "passwordHash" not in body["data"]["user"]
        assert "auth-token=" in response.headers["set-cookie"]

    async def test_remember_me_extends_token(self, anon_client, make_user):
        await make_user()
        response = await _login(anon_client, rememberMe=True)
        assert response.json()["data"]["expiresIn"] == 30 * 24 * 3600

    async def test_unknown_email(self, anon_client):
        response = await _login(anon_client, email="nobody@example.com")
        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_inactive_account(self, anon_client, make_user):
        await make_user(status="suspended")
        response = await _login(anon_client)
        assert response.status_code == 401

    async def test_wrong_password_counts_attempts(self, anon_client, make_user):
        await make_user()
        response = await _login(anon_client, password="wrong-password")

        assert response.status_code == 401
        assert "Attempts remaining: 4" in response.json()["error"]

        response = await _login(anon_client, password="wrong-password")
        assert "Attempts remaining: 3" in response.json()["error"]

    async def test_lockout_after_max_attempts(self, anon_client, make_user):
        await make_user()
        for _ in range(4):
            response = await _login(anon_client, password="wrong-password")
            assert response.status_code == 401

        response = await _login(anon_client, password="wrong-password")
        assert response.status_code == 423

        # Even the right password is refused while locked
        response = await _login(anon_client)
        assert response.status_code == 423

    async def test_success_resets_attempts(self, anon_client, make_user, session_factory):
        user = await make_user()
        await _login(anon_client, password="wrong-password")
        assert (await _login(anon_client)).status_code == 200

        async with session_factory() as session:
            refreshed = await UserService(session).get_user(user.id)
            assert refreshed.login_attempts == 0
            assert refreshed.last_login is not None


class TestTokenUse:
    async def test_missing_token(self, anon_client):
        response = await anon_client.get("/api/employees")
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Not authenticated"}

    async def test_invalid_token(self, anon_client):
        response = await anon_client.get(
            "/api/employees", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    async def test_profile_and_verify(self, anon_client, make_user):
        await make_user()
        token = (await _login(anon_client)).json()["data"]["token"]
        headers = {"Authorization": f"Bearer {token}"}

        profile = await anon_client.get("/api/auth/profile", headers=headers)
        assert profile.status_code == 200
        assert profile.json()["data"]["name"] == "Staff Member"

        verify = await anon_client.get("/api/auth/verify", headers=headers)
        assert verify.json()["data"]["role"] == "employee"
        assert verify.json()["data"]["isAdmin"] is False

    async def test_default_permissions_apply(self, anon_client, make_user):
        await make_user()
        token = (await _login(anon_client)).json()["data"]["token"]
        headers = {"Authorization": f"Bearer {token}"}

        assert (await anon_client.get("/api/employees", headers=headers)).status_code == 200
        assert (await anon_client.get("/api/payroll", headers=headers)).status_code == 403
        assert (await anon_client.get("/api/users", headers=headers)).status_code == 403

    async def test_change_password(self, anon_client, make_user):
        await make_user()
        token = (await _login(anon_client)).json()["data"]["token"]
        headers = {"Authorization": f"Bearer {token}"}

        response = await anon_client.post(
            "/api/auth/change-password",
            headers=headers,
            json={"currentPassword": "wrong-password", "newPassword": "another-pass"},
        )
        assert response.status_code == 400

        response = await anon_client.post(
            "/api/auth/change-password",
            headers=headers,
            json={"currentPassword": PASSWORD, "newPassword": "short"},
        )
        assert response.status_code == 400

        response = await anon_client.post(
            "/api/auth/change-password",
            headers=headers,
            json={"currentPassword": PASSWORD, "newPassword": "another-pass"},
        )
        assert response.status_code == 200
        assert (await _login(anon_client, password="another-pass")).status_code == 200

    async def test_logout_clears_cookie(self, anon_client):
        response = await anon_client.post("/api/auth/logout")
        assert response.status_code == 200
        assert 'auth-token=""' in response.headers["set-cookie"]


class TestPermissionChecks:
    async def test_missing_permission_is_forbidden(self, client, as_user):
        as_user("employees_view")
        assert (await client.get("/api/employees")).status_code == 200

        response = await client.post("/api/employees", json={"name": "New Hire"})
        assert response.status_code == 403
        assert response.json()["error"] == "Missing permission: employees_add"
