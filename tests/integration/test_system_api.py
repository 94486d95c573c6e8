"""System dashboard tests."""

from datetime import date, timedelta


def _in(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


async def _user(client, email: str, **fields) -> None:
    response = await client.post(
        "/api/users",
        json={"name": "Staff", "email": email, "password": "long-enough", **fields},
    )
    assert response.status_code == 201, response.text


class TestSystemStats:
    async def test_counts(self, client, factory):
        await _user(client, "staff@example.com")
        await _user(client, "idle@example.com", status="inactive")
        await client.post(
            "/api/auth/login", json={"email": "staff@example.com", "password": "wrong-password"}
        )

        institution = await factory.institution()
        await factory.institution(name="Closed Co", status="inactive")
        await factory.branch(institutionId=institution["id"])

        sponsored = await factory.employee(
            institutionId=institution["id"], iqamaExpiry=_in(-1)
        )
        await factory.employee(name="Free", salary="3000.00", workPermitExpiry=_in(5))
        gone = await factory.employee(name="Gone", iqamaExpiry=_in(-10))
        await client.delete(f"/api/employees/{gone['id']}")
        await factory.advance(sponsored["id"])

        response = await client.get("/api/system/stats")
        assert response.status_code == 200, response.text
        stats = response.json()["data"]

        assert stats["totalUsers"] == 2
        assert stats["activeUsers"] == 1
        assert stats["inactiveUsers"] == 1
        assert stats["lockedUsers"] == 0
        assert stats["failedLoginAttempts"] == 1
        assert stats["lastLoginActivity"] is None

        assert stats["totalEmployees"] == 3
        assert stats["activeEmployees"] == 2
        assert stats["archivedEmployees"] == 1
        assert stats["unsponsoredEmployees"] == 1
        assert stats["totalSalaries"] == 8000.0
        assert stats["averageSalary"] == 4000.0
        assert stats["employeesWithExpiredDocuments"] == 1
        assert stats["employeesWithExpiringDocuments"] == 1

        assert stats["totalInstitutions"] == 2
        assert stats["activeInstitutions"] == 1
        assert stats["totalBranches"] == 1
        assert stats["pendingAdvances"] == 1
        assert stats["pendingLeaves"] == 0
        assert stats["completedPayrollRuns"] == 0
        assert stats["activeForms"] == 0

    async def test_empty_database(self, client):
        stats = (await client.get("/api/system/stats")).json()["data"]
        assert stats["totalEmployees"] == 0
        assert stats["averageSalary"] == 0.0

    async def test_requires_system_settings(self, client, as_user):
        as_user("reports_view")
        response = await client.get("/api/system/stats")
        assert response.status_code == 403
