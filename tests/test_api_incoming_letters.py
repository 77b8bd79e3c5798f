import uuid
from unittest.mock import patch


def _payload(**kwargs):
    values = {
        "original_number": "045/DIKBUD/2025",
        "original_date": "2025-04-01",
        "received_date": "2025-04-02",
        "sender": "Education Office",
        "subject": "Staff training schedule",
    }
    values.update(kwargs)
    return values


class TestIncomingLetterEndpoints:
    def test_requires_authentication(self, client):
        resp = client.get("/incoming-letters")
        assert resp.status_code == 401
        assert resp.json()["message"] == "Not authenticated"

    def test_create_incoming_letter(self, client, auth_headers, org_unit):
        resp = client.post("/incoming-letters", json=_payload(), headers=auth_headers)
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "new"
        assert data["incoming_number"].startswith(f"SM/001/{org_unit.code}/")
        assert data["disposition_progress"]["total"] == 0

    def test_create_validation_error(self, client, auth_headers):
        resp = client.post(
            "/incoming-letters", json=_payload(subject=""), headers=auth_headers
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation_error"

    def test_get_not_found(self, client, auth_headers):
        resp = client.get(f"/incoming-letters/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Incoming letter not found"

    def test_list_and_search(self, client, auth_headers):
        marker = uuid.uuid4().hex[:8]
        client.post(
            "/incoming-letters",
            json=_payload(subject=f"Audit {marker}"),
            headers=auth_headers,
        )
        resp = client.get(
            "/incoming-letters", params={"search": marker}, headers=auth_headers
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 1
        assert data["items"][0]["subject"] == f"Audit {marker}"

    def test_list_invalid_order(self, client, auth_headers):
        resp = client.get(
            "/incoming-letters", params={"order_by": "sender"}, headers=auth_headers
        )
        assert resp.status_code == 400

    def test_update_and_delete(self, client, auth_headers):
        created = client.post(
            "/incoming-letters", json=_payload(), headers=auth_headers
        ).json()
        resp = client.patch(
            f"/incoming-letters/{created['id']}",
            json={"classification": "penting"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["classification"] == "penting"

        resp = client.delete(f"/incoming-letters/{created['id']}", headers=auth_headers)
        assert resp.status_code == 204
        resp = client.get(f"/incoming-letters/{created['id']}", headers=auth_headers)
        assert resp.status_code == 404

    def test_upload_url_without_storage(self, client, auth_headers):
        resp = client.post(
            "/incoming-letters/upload-url",
            json={"file_name": "scan.pdf"},
            headers=auth_headers,
        )
        assert resp.status_code == 503

    def test_upload_url(self, client, auth_headers):
        with patch("app.services.incoming_letter.storage") as mock_storage:
            mock_storage.is_configured.return_value = True
            mock_storage.generate_storage_key.return_value = "incoming-letters/p/abc/scan.pdf"
            mock_storage.generate_upload_url.return_value = "https://files/upload"
            resp = client.post(
                "/incoming-letters/upload-url",
                json={"file_name": "scan.pdf"},
                headers=auth_headers,
            )
        assert resp.status_code == 200
        assert resp.json() == {
            "storage_key": "incoming-letters/p/abc/scan.pdf",
            "upload_url": "https://files/upload",
        }

    def test_versioned_prefix(self, client, auth_headers):
        resp = client.get("/api/v1/incoming-letters", headers=auth_headers)
        assert resp.status_code == 200
