"""Reward and deduction endpoint tests."""

from datetime import date


class TestCompensations:
    async def test_create_defaults_creator(self, client, factory):
        employee = await factory.employee()
        compensation = await factory.compensation(employee["id"])
        assert compensation["type"] == "reward"
        assert compensation["amount"] == 300.0
        assert compensation["createdBy"] == "Admin"
        assert compensation["employeeName"] == "Ahmed Ali"

    async def test_unknown_type_rejected(self, client, factory):
        employee = await factory.employee()
        response = await client.post(
            "/api/compensations",
            json={
                "employeeId": employee["id"],
                "type": "bonus",
                "amount": "10.00",
                "reason": "x",
                "date": date.today().isoformat(),
            },
        )
        assert response.status_code == 400

    async def test_update_and_delete(self, client, factory):
        employee = await factory.employee()
        compensation = await factory.compensation(employee["id"])

        response = await client.put(
            f"/api/compensations/{compensation['id']}",
            json={"type": "deduction", "amount": "75.25"},
        )
        data = response.json()["data"]
        assert data["type"] == "deduction"
        assert data["amount"] == 75.25

        assert (await client.delete(f"/api/compensations/{compensation['id']}")).status_code == 200
        assert (await client.get(f"/api/compensations/{compensation['id']}")).status_code == 404

    async def test_null_amount_rejected(self, client, factory):
        employee = await factory.employee()
        compensation = await factory.compensation(employee["id"])

        for body in ({"amount": None}, {"reason": None}, {"date": None}):
            response = await client.put(f"/api/compensations/{compensation['id']}", json=body)
            assert response.status_code == 400, body
            assert response.json()["error"] == "Invalid input data"

    async def test_list_by_type(self, client, factory):
        employee = await factory.employee()
        await factory.compensation(employee["id"])
        await factory.compensation(employee["id"], type="deduction", amount="50.00")

        response = await client.get("/api/compensations", params={"type": "deduction"})
        assert [c["amount"] for c in response.json()["data"]] == [50.0]

    async def test_stats(self, client, factory):
        employee = await factory.employee()
        await factory.compensation(employee["id"], amount="500.00")
        await factory.compensation(employee["id"], amount="300.00")
        await factory.compensation(employee["id"], type="deduction", amount="150.00")

        stats = (await client.get("/api/compensations/stats")).json()["data"]
        assert stats["totalRewards"] == 800.0
        assert stats["totalDeductions"] == 150.0
        assert stats["rewardCount"] == 2
        assert stats["deductionCount"] == 1
        assert stats["netAmount"] == 650.0

    async def test_monthly_summary(self, client, factory):
        employee = await factory.employee()
        await factory.compensation(employee["id"], amount="100.00", date="2030-01-05")
        await factory.compensation(employee["id"], amount="40.00", date="2030-01-20", type="deduction")
        await factory.compensation(employee["id"], amount="70.00", date="2030-03-01")
        await factory.compensation(employee["id"], amount="999.00", date="2029-12-31")

        response = await client.get("/api/compensations/monthly-summary", params={"year": 2030})
        assert response.json()["data"] == [
            {"month": "2030-01", "totalRewards": 100.0, "totalDeductions": 40.0, "netAmount": 60.0},
            {"month": "2030-03", "totalRewards": 70.0, "totalDeductions": 0.0, "netAmount": 70.0},
        ]
