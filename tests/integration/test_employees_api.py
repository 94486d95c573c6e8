"""Employee endpoint tests."""

from datetime import date, timedelta


def _in(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


class TestEmployeeCrud:
    async def test_create_returns_joined_names(self, client, factory):
        institution = await factory.institution()
        branch = await factory.branch(institutionId=institution["id"])
        employee = await factory.employee(
            institutionId=institution["id"], branchId=branch["id"], fileNumber="F-1"
        )
        assert employee["status"] == "active"
        assert employee["salary"] == 5000.0
        assert employee["institutionName"] == "Al Noor Trading"
        assert employee["branchName"] == "Riyadh Branch"

    async def test_duplicate_file_number(self, client, factory):
        await factory.employee(fileNumber="F-7")
        response = await client.post(
            "/api/employees", json={"name": "Other", "fileNumber": "F-7"}
        )
        assert response.status_code == 409
        assert response.json()["success"] is False

    async def test_validation_envelope(self, client):
        response = await client.post("/api/employees", json={"name": "", "salary": "-1"})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Invalid input data"
        fields = {d["field"] for d in body["details"]}
        assert any("name" in f for f in fields)
        assert any("salary" in f for f in fields)

    async def test_invalid_id(self, client):
        response = await client.get("/api/employees/not-a-uuid")
        assert response.status_code == 400

    async def test_missing_employee(self, client):
        response = await client.get("/api/employees/00000000-0000-0000-0000-0000000000dd")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Employee not found"}

    async def test_update(self, client, factory):
        employee = await factory.employee()
        response = await client.put(
            f"/api/employees/{employee['id']}", json={"salary": "6500.50", "position": "Driver"}
        )
        data = response.json()["data"]
        assert data["salary"] == 6500.5
        assert data["position"] == "Driver"

    async def test_null_required_fields_rejected(self, client, factory):
        employee = await factory.employee()
        for body in ({"salary": None}, {"name": None}, {"status": None}):
            response = await client.put(f"/api/employees/{employee['id']}", json=body)
            assert response.status_code == 400, body
            assert response.json()["error"] == "Invalid input data"

        # optional columns may still be cleared
        response = await client.put(f"/api/employees/{employee['id']}", json={"position": None})
        assert response.status_code == 200
        assert response.json()["data"]["salary"] == 5000.0


class TestArchiving:
    async def test_archive_and_reactivate(self, client, factory):
        employee = await factory.employee()

        response = await client.delete(
            f"/api/employees/{employee['id']}", params={"reason": "final_exit"}
        )
        assert response.status_code == 200
        archived = response.json()["data"]
        assert archived["status"] == "archived"
        assert archived["archiveReason"] == "final_exit"
        assert archived["archiveDate"] == date.today().isoformat()

        assert (await client.get("/api/employees")).json()["count"] == 0
        everyone = await client.get("/api/employees", params={"status": "all"})
        assert everyone.json()["count"] == 1

        response = await client.put(f"/api/employees/{employee['id']}", json={"status": "active"})
        data = response.json()["data"]
        assert data["status"] == "active"
        assert data["archiveReason"] is None
        assert data["archiveDate"] is None

    async def test_default_reason_is_terminated(self, client, factory):
        employee = await factory.employee()
        response = await client.delete(f"/api/employees/{employee['id']}")
        assert response.json()["data"]["archiveReason"] == "terminated"


class TestFilters:
    async def test_search_and_scopes(self, client, factory):
        institution = await factory.institution()
        await factory.employee(name="Ahmed Ali", institutionId=institution["id"])
        loose = await factory.employee(name="Khalid Saad", iqamaNumber="2345678901")

        found = await client.get("/api/employees", params={"search": "2345"})
        assert [e["id"] for e in found.json()["data"]] == [loose["id"]]

        unsponsored = await client.get("/api/employees", params={"institution_id": "none"})
        assert [e["id"] for e in unsponsored.json()["data"]] == [loose["id"]]

        listed = await client.get("/api/employees/unsponsored")
        assert [e["id"] for e in listed.json()["data"]] == [loose["id"]]

        scoped = await client.get("/api/employees", params={"institution_id": institution["id"]})
        assert [e["name"] for e in scoped.json()["data"]] == ["Ahmed Ali"]

    async def test_expiring_documents(self, client, factory):
        expired = await factory.employee(name="A Expired", iqamaExpiry=_in(-2))
        soon = await factory.employee(name="B Soon", insuranceExpiry=_in(20))
        await factory.employee(name="C Fine", contractExpiry=_in(120))
        await factory.employee(name="D None")

        response = await client.get("/api/employees/expiring-documents", params={"days": 30})
        assert [e["id"] for e in response.json()["data"]] == [expired["id"], soon["id"]]


class TestTransfer:
    async def test_transfer_to_institution(self, client, factory):
        institution = await factory.institution()
        employee = await factory.employee(unsponsoredReason="new")

        response = await client.post(
            f"/api/employees/{employee['id']}/transfer", json={"institutionId": institution["id"]}
        )
        data = response.json()["data"]
        assert data["institutionId"] == institution["id"]
        assert data["unsponsoredReason"] is None

    async def test_transfer_out_keeps_reason(self, client, factory):
        institution = await factory.institution()
        employee = await factory.employee(institutionId=institution["id"])

        response = await client.post(
            f"/api/employees/{employee['id']}/transfer",
            json={"institutionId": None, "unsponsoredReason": "transferred"},
        )
        data = response.json()["data"]
        assert data["institutionId"] is None
        assert data["unsponsoredReason"] == "transferred"


class TestPermissions:
    async def test_view_only_user(self, client, factory, as_user):
        employee = await factory.employee()
        as_user("employees_view")

        assert (await client.get(f"/api/employees/{employee['id']}")).status_code == 200
        response = await client.delete(f"/api/employees/{employee['id']}")
        assert response.status_code == 403
        assert response.json()["error"] == "Missing permission: employees_delete"
