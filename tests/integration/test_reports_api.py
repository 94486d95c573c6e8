"""Report preview and CSV download tests."""

from datetime import date, timedelta

import pytest


def _in(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


async def _preview(client, report_type: str, **filters):
    response = await client.post(
        "/api/reports/preview", json={"reportType": report_type, "filters": filters}
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


class TestPreview:
    async def test_employees_scoped_to_institution(self, client, factory):
        institution = await factory.institution()
        await factory.employee(institutionId=institution["id"], fileNumber="F-1")
        await factory.employee(name="Unsponsored Worker")

        data = await _preview(client, "employees", institutionId=institution["id"])
        assert data["reportType"] == "employees"
        assert data["columns"][0] == {"key": "name", "label": "Name"}
        assert data["count"] == 1
        row = data["rows"][0]
        assert row["name"] == "Ahmed Ali"
        assert row["salary"] == 5000.0
        assert row["institution_name"] == "Al Noor Trading"

    async def test_advances_by_status(self, client, factory):
        employee = await factory.employee()
        await factory.advance(employee["id"])
        await factory.approved_advance(employee["id"], amount="1200.00", installments=4)

        data = await _preview(client, "advances", status="approved")
        assert data["count"] == 1
        row = data["rows"][0]
        assert row["amount"] == 1200.0
        assert row["paid_amount"] == 0.0
        assert row["remaining_amount"] == 1200.0
        assert row["employee_name"] == "Ahmed Ali"

    async def test_documents_within_warning_window(self, client, factory):
        await factory.employee(name="Soon", iqamaExpiry=_in(10))
        await factory.employee(name="Later", iqamaExpiry=_in(400))
        await factory.employee(name="Lapsed", contractExpiry=_in(-3))

        data = await _preview(client, "documents")
        rows = {row["employee_name"]: row for row in data["rows"]}
        assert set(rows) == {"Soon", "Lapsed"}
        assert rows["Soon"]["iqama_expiry"] == _in(10)
        assert rows["Soon"]["iqama_status"] == "expiring_soon"
        assert rows["Lapsed"]["contract_status"] == "expired"
        assert rows["Lapsed"]["iqama_status"] is None

    async def test_institution_counts(self, client, factory):
        institution = await factory.institution()
        await factory.employee(institutionId=institution["id"])
        gone = await factory.employee(name="Gone", institutionId=institution["id"])
        await client.delete(f"/api/employees/{gone['id']}")
        await factory.branch(institutionId=institution["id"])

        row = (await _preview(client, "institutions"))["rows"][0]
        assert row["total_employees"] == 2
        assert row["active_employees"] == 1
        assert row["archived_employees"] == 1
        assert row["total_branches"] == 1
        assert row["total_salaries"] == 5000.0

    async def test_compensations_for_month(self, client, factory):
        employee = await factory.employee()
        await factory.compensation(employee["id"], date="2030-03-10")
        await factory.compensation(employee["id"], date="2030-04-10")

        data = await _preview(client, "compensations", month="2030-03")
        assert [row["date"] for row in data["rows"]] == ["2030-03-10"]


class TestGenerate:
    async def test_employees_csv(self, client, factory):
        await factory.employee(fileNumber="F-1")
        response = await client.post("/api/reports/generate", json={"reportType": "employees"})
        assert response.status_code == 200, response.text
        assert response.headers["content-type"].startswith("text/csv")
        assert "employees-report-" in response.headers["content-disposition"]

        header, row = response.text.splitlines()
        assert header.startswith("Name,File Number,Mobile,Email,Nationality")
        assert row.startswith("Ahmed Ali,F-1,")
        assert ",5000.00," in row
        assert ",active," in row

    async def test_export_permission_is_enough(self, client, as_user):
        as_user("reports_export")
        response = await client.post("/api/reports/generate", json={"reportType": "leaves"})
        assert response.status_code == 200
        assert response.text.splitlines() == [
            "Employee,File Number,Leave Type,Start Date,End Date,Days,Reason,Status,"
            "Request Date,Institution"
        ]

    async def test_view_permission_cannot_download(self, client, as_user):
        as_user("reports_view")
        response = await client.post("/api/reports/generate", json={"reportType": "employees"})
        assert response.status_code == 403


@pytest.mark.parametrize(
    "payload",
    [
        {"reportType": "salaries"},
        {"reportType": "payroll", "filters": {"month": "2030-3"}},
        {},
    ],
)
async def test_invalid_requests(client, payload):
    response = await client.post("/api/reports/preview", json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid input data"
