"""Advance lifecycle and installment deduction tests."""


class TestAdvanceLifecycle:
    async def test_create_computes_monthly_deduction(self, client, factory):
        employee = await factory.employee()
        advance = await factory.advance(employee["id"])

        assert advance["status"] == "pending"
        assert advance["amount"] == 500.0
        assert advance["paidAmount"] == 0.0
        assert advance["remainingAmount"] == 500.0
        assert advance["monthlyDeduction"] == 250.0
        assert advance["employeeName"] == "Ahmed Ali"

    async def test_unknown_employee(self, client):
        response = await client.post(
            "/api/advances",
            json={"employeeId": "00000000-0000-0000-0000-0000000000ee", "amount": "100.00"},
        )
        assert response.status_code == 404

    async def test_non_positive_amount_rejected(self, client, factory):
        employee = await factory.employee()
        response = await client.post(
            "/api/advances", json={"employeeId": employee["id"], "amount": "0"}
        )
        assert response.status_code == 400

    async def test_approve_records_approver(self, client, factory):
        employee = await factory.employee()
        advance = await factory.approved_advance(employee["id"])
        assert advance["status"] == "approved"
        assert advance["approvedBy"] == "Admin"
        assert advance["approvedDate"] is not None

    async def test_reject_then_approve_is_invalid(self, client, factory):
        employee = await factory.employee()
        advance = await factory.advance(employee["id"])

        response = await client.post(
            f"/api/advances/{advance['id']}/reject", json={"reason": "Budget"}
        )
        assert response.json()["data"]["status"] == "rejected"
        assert response.json()["data"]["rejectionReason"] == "Budget"

        response = await client.post(f"/api/advances/{advance['id']}/approve", json={})
        assert response.status_code == 400
        assert response.json()["error"] == (
            "Invalid transition from 'rejected' to 'approved': 'rejected' is final"
        )

    async def test_pay_requires_approval(self, client, factory):
        employee = await factory.employee()
        advance = await factory.advance(employee["id"])

        assert (await client.post(f"/api/advances/{advance['id']}/pay")).status_code == 400

        await client.post(f"/api/advances/{advance['id']}/approve", json={})
        paid = (await client.post(f"/api/advances/{advance['id']}/pay")).json()["data"]
        assert paid["status"] == "paid"
        assert paid["paidAmount"] == 500.0
        assert paid["remainingAmount"] == 0.0

    async def test_amount_update_recomputes_remaining(self, client, factory):
        employee = await factory.employee()
        advance = await factory.advance(employee["id"])

        response = await client.put(f"/api/advances/{advance['id']}", json={"amount": "800.00"})
        data = response.json()["data"]
        assert data["remainingAmount"] == 800.0
        assert data["monthlyDeduction"] == 400.0

    async def test_null_amount_rejected(self, client, factory):
        employee = await factory.employee()
        advance = await factory.advance(employee["id"])

        response = await client.put(f"/api/advances/{advance['id']}", json={"amount": None})
        assert response.status_code == 400
        assert [d["field"] for d in response.json()["details"]] == ["amount"]

        unchanged = (await client.get(f"/api/advances/{advance['id']}")).json()["data"]
        assert unchanged["amount"] == 500.0

    async def test_notes_can_be_cleared(self, client, factory):
        employee = await factory.employee()
        advance = await factory.advance(employee["id"])
        await client.put(f"/api/advances/{advance['id']}", json={"notes": "urgent"})

        response = await client.put(f"/api/advances/{advance['id']}", json={"notes": None})
        assert response.status_code == 200
        assert response.json()["data"]["notes"] is None

    async def test_delete(self, client, factory):
        employee = await factory.employee()
        advance = await factory.advance(employee["id"])
        assert (await client.delete(f"/api/advances/{advance['id']}")).status_code == 200
        assert (await client.get(f"/api/advances/{advance['id']}")).status_code == 404

    async def test_list_filters_and_stats(self, client, factory):
        employee = await factory.employee()
        await factory.advance(employee["id"])
        await factory.approved_advance(employee["id"], amount="1000.00", installments=4)
        rejected = await factory.advance(employee["id"], amount="200.00")
        await client.post(f"/api/advances/{rejected['id']}/reject", json={"reason": "No"})

        approved = await client.get("/api/advances", params={"status": "approved"})
        assert [a["amount"] for a in approved.json()["data"]] == [1000.0]

        stats = (await client.get("/api/advances/stats")).json()["data"]
        assert stats["totalAdvances"] == 3
        assert stats["totalAmount"] == 1700.0
        assert stats["totalRemaining"] == 1700.0
        assert stats["pendingCount"] == 1
        assert stats["approvedCount"] == 1
        assert stats["rejectedCount"] == 1
        assert stats["paidCount"] == 0


class TestInstallments:
    async def test_only_approved_advances_are_due(self, client, factory):
        employee = await factory.employee()
        await factory.advance(employee["id"])
        await factory.approved_advance(employee["id"])
        await factory.approved_advance(employee["id"], amount="300.00", installments=3)

        response = await client.get("/api/advances/auto-deduct", params={"employee_id": employee["id"]})
        data = response.json()["data"]
        assert data["monthlyDeduction"] == 350.0
        assert len(data["activeAdvances"]) == 2

    async def test_preview(self, client, factory):
        first = await factory.employee(name="Ahmed Ali")
        second = await factory.employee(name="Basel Omar")
        await factory.employee(name="Nothing Owed")
        await factory.approved_advance(first["id"])
        await factory.approved_advance(second["id"], amount="150.00", installments=1)

        data = (await client.get("/api/advances/preview-deductions")).json()["data"]
        assert [d["employeeName"] for d in data["deductions"]] == ["Ahmed Ali", "Basel Omar"]
        assert data["summary"]["totalEmployees"] == 2
        assert data["summary"]["totalDeductions"] == 400.0
        assert data["summary"]["averageDeduction"] == 200.0

    async def test_manual_deduction_against_run(self, client, factory):
        # No salary, so the payroll run itself leaves the advance alone.
        employee = await factory.employee(salary="0")
        advance = await factory.approved_advance(employee["id"])
        run = (await client.post("/api/payroll", json={"month": "2030-01"})).json()["data"]
        assert run["totalEmployees"] == 0

        response = await client.post(
            "/api/advances/auto-deduct",
            json={"employeeId": employee["id"], "payrollRunId": run["id"]},
        )
        data = response.json()["data"]
        assert data["totalDeduction"] == 250.0
        assert data["deductionsCount"] == 1

        history = (await client.get(f"/api/advances/{advance['id']}/deductions")).json()
        assert history["count"] == 1
        assert history["data"][0]["payrollMonth"] == "2030-01"
        assert history["data"][0]["remainingAmount"] == 250.0

    async def test_manual_deduction_skips_installments_the_run_took(self, client, factory):
        employee = await factory.employee()
        advance = await factory.approved_advance(employee["id"], amount="1000.00", installments=4)
        run = (await client.post("/api/payroll", json={"month": "2030-02"})).json()["data"]
        assert run["totalEmployees"] == 1

        for _ in range(2):
            response = await client.post(
                "/api/advances/auto-deduct",
                json={"employeeId": employee["id"], "payrollRunId": run["id"]},
            )
            assert response.status_code == 200
            assert response.json()["data"]["deductionsCount"] == 0
            assert response.json()["data"]["totalDeduction"] == 0.0

        data = (await client.get(f"/api/advances/{advance['id']}")).json()["data"]
        assert data["paidAmount"] == 250.0
        assert data["remainingAmount"] == 750.0
        history = (await client.get(f"/api/advances/{advance['id']}/deductions")).json()
        assert history["count"] == 1

    async def test_requester_cannot_approve(self, client, factory, as_user):
        employee = await factory.employee()
        advance = await factory.advance(employee["id"])
        as_user("advances_view", "advances_request")

        response = await client.post(f"/api/advances/{advance['id']}/approve", json={})
        assert response.status_code == 403
