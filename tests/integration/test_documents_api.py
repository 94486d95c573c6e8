"""Document endpoint tests."""

from datetime import date, timedelta


def _in(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


async def _upload(client, entity_id, entity_type="employee", **fields):
    payload = {
        "entityType": entity_type,
        "entityId": entity_id,
        "documentType": "iqama",
        "fileName": "iqama.pdf",
        **fields,
    }
    return await client.post("/api/documents", json=payload)


class TestDocuments:
    async def test_status_from_expiry(self, client, factory):
        employee = await factory.employee()

        soon = (await _upload(client, employee["id"], expiryDate=_in(10))).json()["data"]
        assert soon["status"] == "expiring_soon"
        assert soon["entityName"] == "Ahmed Ali"

        expired = (await _upload(client, employee["id"], expiryDate=_in(0))).json()["data"]
        assert expired["status"] == "expired"

        open_ended = (await _upload(client, employee["id"], documentType="passport")).json()["data"]
        assert open_ended["status"] == "active"

    async def test_missing_entity(self, client):
        response = await _upload(client, "00000000-0000-0000-0000-0000000000ab")
        assert response.status_code == 404

    async def test_type_must_match_entity(self, client, factory):
        institution = await factory.institution()
        response = await _upload(client, institution["id"], entity_type="institution")
        assert response.status_code == 400

        response = await _upload(
            client, institution["id"], entity_type="institution", documentType="license"
        )
        assert response.status_code == 201
        assert response.json()["data"]["entityType"] == "institution"

    async def test_expiring_and_expired_filters(self, client, factory):
        employee = await factory.employee()
        soon = (await _upload(client, employee["id"], expiryDate=_in(10))).json()["data"]
        past = (await _upload(client, employee["id"], expiryDate=_in(-5))).json()["data"]
        await _upload(client, employee["id"], expiryDate=_in(90))

        expiring = await client.get("/api/documents", params={"expiring": "true", "days": 30})
        assert [d["id"] for d in expiring.json()["data"]] == [soon["id"]]

        expired = await client.get("/api/documents", params={"expired": "true"})
        assert [d["id"] for d in expired.json()["data"]] == [past["id"]]

    async def test_list_both_kinds(self, client, factory):
        employee = await factory.employee()
        institution = await factory.institution()
        await _upload(client, employee["id"])
        await _upload(client, institution["id"], entity_type="institution", documentType="license")

        assert (await client.get("/api/documents")).json()["count"] == 2
        only = await client.get("/api/documents", params={"entity_type": "institution"})
        assert [d["documentType"] for d in only.json()["data"]] == ["license"]

    async def test_renew(self, client, factory):
        employee = await factory.employee()
        doc = (await _upload(client, employee["id"], expiryDate=_in(-1))).json()["data"]

        response = await client.post(
            f"/api/documents/{doc['id']}/renew", json={"expiryDate": _in(365)}
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "active"

    async def test_delete(self, client, factory):
        employee = await factory.employee()
        doc = (await _upload(client, employee["id"])).json()["data"]
        assert (await client.delete(f"/api/documents/{doc['id']}")).status_code == 200
        assert (await client.get(f"/api/documents/{doc['id']}")).status_code == 404
