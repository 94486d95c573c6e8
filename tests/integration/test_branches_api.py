"""Branch endpoint tests."""


class TestBranches:
    async def test_create_with_institution(self, client, factory):
        institution = await factory.institution()
        branch = await factory.branch(institutionId=institution["id"], code="RUH-1")
        assert branch["institutionName"] == "Al Noor Trading"
        assert branch["employeeCount"] == 0
        assert branch["status"] == "active"

    async def test_unknown_institution(self, client):
        response = await client.post(
            "/api/branches",
            json={"name": "Ghost", "institutionId": "00000000-0000-0000-0000-0000000000bb"},
        )
        assert response.status_code == 404

    async def test_independent_filter(self, client, factory):
        institution = await factory.institution()
        await factory.branch(name="Owned", institutionId=institution["id"])
        independent = await factory.branch(name="Standalone")

        response = await client.get("/api/branches", params={"institution_id": "independent"})
        assert [b["id"] for b in response.json()["data"]] == [independent["id"]]

        response = await client.get("/api/branches", params={"institution_id": institution["id"]})
        assert [b["name"] for b in response.json()["data"]] == ["Owned"]

    async def test_inactive_branches_are_hidden_by_default(self, client, factory):
        branch = await factory.branch()
        await client.put(f"/api/branches/{branch['id']}", json={"status": "inactive"})

        assert (await client.get("/api/branches")).json()["count"] == 0
        inactive = await client.get("/api/branches", params={"status": "inactive"})
        assert inactive.json()["count"] == 1

    async def test_invalid_scope_id(self, client):
        response = await client.get("/api/branches", params={"institution_id": "not-a-uuid"})
        assert response.status_code == 400

    async def test_transfer_and_branch_employees(self, client, factory):
        branch = await factory.branch()
        employee = await factory.employee()

        response = await client.post(
            "/api/branches/transfer", json={"employeeId": employee["id"], "branchId": branch["id"]}
        )
        assert response.status_code == 200
        assert response.json()["data"]["branchId"] == branch["id"]

        members = await client.get(f"/api/branches/{branch['id']}/employees")
        assert [e["id"] for e in members.json()["data"]] == [employee["id"]]
        detail = await client.get(f"/api/branches/{branch['id']}")
        assert detail.json()["data"]["employeeCount"] == 1

        response = await client.post(
            "/api/branches/transfer", json={"employeeId": employee["id"], "branchId": None}
        )
        assert response.json()["data"]["branchId"] is None

    async def test_delete_unassigns_employees(self, client, factory):
        branch = await factory.branch()
        first = await factory.employee(branchId=branch["id"])
        second = await factory.employee(name="Sara", branchId=branch["id"])

        response = await client.delete(f"/api/branches/{branch['id']}")
        assert response.status_code == 200
        assert response.json()["message"] == "Branch deleted; 2 employee(s) unassigned"

        for employee in (first, second):
            data = (await client.get(f"/api/employees/{employee['id']}")).json()["data"]
            assert data["branchId"] is None
            assert data["status"] == "active"
        assert (await client.get(f"/api/branches/{branch['id']}")).status_code == 404

    async def test_employees_of_missing_branch(self, client):
        response = await client.get("/api/branches/00000000-0000-0000-0000-0000000000cc/employees")
        assert response.status_code == 404
