"""Payroll calculation and payroll run tests."""

from datetime import date

import pytest

from hr_system.services.payroll_service import PayrollService

THIS_MONTH = date.today().strftime("%Y-%m")


async def _adv(client, advance_id):
    return (await client.get(f"/api/advances/{advance_id}")).json()["data"]


@pytest.fixture
async def paid_employee(client, factory):
    """5000 salary, a 500 reward, a 150 deduction and a 500/2 approved advance."""
    employee = await factory.employee()
    await factory.compensation(employee["id"], amount="500.00")
    await factory.compensation(employee["id"], type="deduction", amount="150.00", reason="Late")
    advance = await factory.approved_advance(employee["id"])
    return employee, advance


class TestCalculate:
    async def test_net_pay(self, client, paid_employee):
        response = await client.post("/api/payroll/calculate", json={"month": THIS_MONTH})
        assert response.status_code == 200
        data = response.json()["data"]

        pay = data["calculations"][0]
        assert pay["baseSalary"] == 5000.0
        assert pay["rewards"] == 500.0
        assert pay["deductions"] == 150.0
        assert pay["advanceDeduction"] == 250.0
        assert pay["grossPay"] == 5500.0
        assert pay["netPay"] == 5100.0

        assert data["summary"]["totalEmployees"] == 1
        assert data["summary"]["totalDeductions"] == 400.0
        assert data["summary"]["totalNet"] == 5100.0

    async def test_other_months_compensations_ignored(self, client, paid_employee):
        data = (await client.post("/api/payroll/calculate", json={"month": "2001-01"})).json()["data"]
        pay = data["calculations"][0]
        assert pay["rewards"] == 0.0
        assert pay["deductions"] == 0.0
        assert pay["netPay"] == 4750.0

    async def test_calculate_writes_nothing(self, client, paid_employee):
        _, advance = paid_employee
        await client.post("/api/payroll/calculate", json={"month": THIS_MONTH})
        assert (await _adv(client, advance["id"]))["remainingAmount"] == 500.0
        assert (await client.get("/api/payroll")).json()["count"] == 0

    async def test_skips_archived_and_unsalaried(self, client, factory):
        await factory.employee(name="Paid")
        await factory.employee(name="Volunteer", salary="0")
        gone = await factory.employee(name="Gone")
        await client.delete(f"/api/employees/{gone['id']}")

        data = (await client.post("/api/payroll/calculate", json={"month": THIS_MONTH})).json()["data"]
        assert [c["employeeName"] for c in data["calculations"]] == ["Paid"]

    @pytest.mark.parametrize("month", ["2024-13", "2024-1", "May 2024"])
    async def test_invalid_month(self, client, month):
        response = await client.post("/api/payroll/calculate", json={"month": month})
        assert response.status_code == 400


class TestPayrollRuns:
    async def test_run_deducts_installments(self, client, paid_employee):
        employee, advance = paid_employee

        response = await client.post("/api/payroll", json={"month": THIS_MONTH})
        assert response.status_code == 201
        run = response.json()["data"]
        assert run["status"] == "completed"
        assert run["totalEmployees"] == 1
        assert run["totalGross"] == 5500.0
        assert run["totalDeductions"] == 400.0
        assert run["totalNet"] == 5100.0

        after = await _adv(client, advance["id"])
        assert after["status"] == "approved"
        assert after["paidAmount"] == 250.0
        assert after["remainingAmount"] == 250.0

        taken = await client.get(
            f"/api/payroll/{run['id']}/deductions", params={"employee_id": employee["id"]}
        )
        assert [d["deductionAmount"] for d in taken.json()["data"]] == [250.0]

    async def test_final_installment_marks_paid_and_delete_restores(self, client, paid_employee):
        _, advance = paid_employee
        first = (await client.post("/api/payroll", json={"month": "2030-01"})).json()["data"]
        second = (await client.post("/api/payroll", json={"month": "2030-02"})).json()["data"]

        after = await _adv(client, advance["id"])
        assert after["status"] == "paid"
        assert after["remainingAmount"] == 0.0

        assert (await client.delete(f"/api/payroll/{second['id']}")).status_code == 200
        after = await _adv(client, advance["id"])
        assert after["status"] == "approved"
        assert after["remainingAmount"] == 250.0
        assert after["paidAmount"] == 250.0

        await client.delete(f"/api/payroll/{first['id']}")
        after = await _adv(client, advance["id"])
        assert after["remainingAmount"] == 500.0
        assert after["paidAmount"] == 0.0

    async def test_single_installment_advance_is_paid_off(self, client, factory):
        employee = await factory.employee()
        advance = await factory.approved_advance(employee["id"], installments=1)

        await client.post("/api/payroll", json={"month": THIS_MONTH})
        after = await _adv(client, advance["id"])
        assert after["status"] == "paid"
        assert after["paidAmount"] == 500.0

    async def test_duplicate_month(self, client, factory):
        institution = await factory.institution()
        await factory.employee(institutionId=institution["id"])

        assert (await client.post("/api/payroll", json={"month": "2030-03"})).status_code == 201
        response = await client.post("/api/payroll", json={"month": "2030-03"})
        assert response.status_code == 400
        assert "already exists" in response.json()["error"]

        # an all-institutions run covers each institution too
        response = await client.post(
            "/api/payroll", json={"month": "2030-03", "institutionId": institution["id"]}
        )
        assert response.status_code == 400

    async def test_detail_lists_entries(self, client, factory):
        await factory.employee(name="Zaid", fileNumber="F-2")
        await factory.employee(name="Adel", fileNumber="F-1")
        run = (await client.post("/api/payroll", json={"month": "2030-04"})).json()["data"]

        data = (await client.get(f"/api/payroll/{run['id']}")).json()["data"]
        assert [e["employeeName"] for e in data["entries"]] == ["Adel", "Zaid"]
        assert data["entries"][0]["netPay"] == 5000.0

    async def test_list_filters(self, client, factory):
        await factory.employee()
        for month in ("2030-01", "2030-05", "2030-09"):
            await client.post("/api/payroll", json={"month": month})

        response = await client.get(
            "/api/payroll", params={"month_from": "2030-02", "month_to": "2030-09"}
        )
        assert [r["month"] for r in response.json()["data"]] == ["2030-09", "2030-05"]

        response = await client.get("/api/payroll", params={"month_from": "2030"})
        assert response.status_code == 400

    async def test_export_csv(self, client, factory):
        await factory.employee(fileNumber="F-9")
        run = (await client.post("/api/payroll", json={"month": "2030-06"})).json()["data"]

        response = await client.get(f"/api/payroll/{run['id']}/export")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        lines = response.text.splitlines()
        assert lines[0].startswith("Employee,File Number,Base Salary")
        assert lines[1] == "Ahmed Ali,F-9,5000.00,0.00,0.00,0.00,5000.00,5000.00"
        assert "Total Net,5000.00" in lines

    async def test_stats(self, client, factory):
        await factory.employee()
        await factory.employee(name="Second", salary="3000.00")
        await client.post("/api/payroll", json={"month": "2030-01"})
        await client.post("/api/payroll", json={"month": "2031-01"})

        stats = (await client.get("/api/payroll/stats", params={"year": 2030})).json()["data"]
        assert stats["totalRuns"] == 1
        assert stats["totalEmployees"] == 2
        assert stats["totalNet"] == 8000.0
        assert stats["averageNetPay"] == 4000.0

    async def test_failed_run_is_kept_and_can_be_retried(self, client, factory, monkeypatch):
        await factory.employee()

        async def explode(self, run):
            raise RuntimeError("boom")

        with monkeypatch.context() as patch:
            patch.setattr(PayrollService, "_process", explode)
            response = await client.post("/api/payroll", json={"month": "2030-07"})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to process payroll run"
        failed = await client.get("/api/payroll", params={"status": "failed"})
        assert [r["month"] for r in failed.json()["data"]] == ["2030-07"]

        retry = await client.post("/api/payroll", json={"month": "2030-07"})
        assert retry.status_code == 201
        assert retry.json()["data"]["status"] == "completed"

    async def test_missing_run(self, client):
        response = await client.delete("/api/payroll/00000000-0000-0000-0000-0000000000ff")
        assert response.status_code == 404


class TestExportAll:
    @pytest.fixture
    async def two_runs(self, client, factory):
        await factory.employee(fileNumber="F-9")
        await factory.employee(name="Second", salary="3000.00")
        for month in ("2030-01", "2030-02"):
            response = await client.post("/api/payroll", json={"month": month})
            assert response.status_code == 201, response.text

    async def test_summary(self, client, two_runs):
        response = await client.get(
            "/api/payroll/export/all",
            params={"start_month": "2030-01", "end_month": "2030-02", "format": "summary"},
        )
        assert response.status_code == 200, response.text
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.splitlines()
        assert lines[0] == (
            "Month,Institution,Employees,Total Gross,Total Deductions,Total Net,Run Date,Status"
        )
        today = date.today().isoformat()
        assert lines[1] == f"2030-02,All institutions,2,8000.00,0.00,8000.00,{today},completed"
        assert lines[2] == f"2030-01,All institutions,2,8000.00,0.00,8000.00,{today},completed"
        assert "Runs,2" in lines
        assert "Total Net,16000.00" in lines

    async def test_detailed_lists_entries_per_run(self, client, two_runs):
        response = await client.get("/api/payroll/export/all", params={"start_month": "2030-02"})
        assert response.status_code == 200
        lines = response.text.splitlines()
        assert lines[0] == "Month,2030-02,Institution,All institutions"
        assert lines[1].startswith("Employee,File Number,Base Salary")
        assert "Ahmed Ali,F-9,5000.00,0.00,0.00,0.00,5000.00,5000.00" in lines
        assert not any(line.startswith("Month,2030-01") for line in lines)
        assert "Runs,1" in lines

    async def test_no_runs_in_range(self, client, two_runs):
        response = await client.get("/api/payroll/export/all", params={"start_month": "2031-01"})
        assert response.status_code == 404
        assert response.json()["error"] == "Payroll runs not found"

    async def test_unknown_format(self, client):
        response = await client.get("/api/payroll/export/all", params={"format": "xml"})
        assert response.status_code == 400
