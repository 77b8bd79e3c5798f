import uuid
from datetime import date

import pytest


@pytest.fixture()
def letter_template_id(client, auth_headers, person, staff):
    resp = client.post(
        "/letter-templates",
        json={
            "name": "Memo",
            "code": f"MM{uuid.uuid4().hex[:4]}",
            "content": [{"type": "text", "content": "Dear {{recipient}}"}],
            "signatures": [
                {"user_id": str(person.id), "position": "Director"},
                {"user_id": str(staff.id), "label": "Clerk"},
            ],
        },
        headers=auth_headers,
    )
    assert resp.status_code == 201
    return resp.json()["id"]


class TestLetterEndpoints:
    def _create(self, client, headers, template_id):
        resp = client.post(
            "/letters",
            json={
                "template_id": template_id,
                "subject": "Holiday schedule",
                "letter_date": date.today().isoformat(),
                "recipient": "All staff",
            },
            headers=headers,
        )
        assert resp.status_code == 201
        return resp.json()

    def test_create_draft(self, client, auth_headers, letter_template_id):
        letter = self._create(client, auth_headers, letter_template_id)
        assert letter["status"] == "draft"
        assert "Dear All staff" in letter["rendered_html"]

    def test_update_rejects_null_letter_date(
        self, client, auth_headers, letter_template_id
    ):
        letter = self._create(client, auth_headers, letter_template_id)
        resp = client.patch(
            f"/letters/{letter['id']}", json={"letter_date": None}, headers=auth_headers
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation_error"

    def test_approval_flow_issues_certificates(
        self, client, auth_headers, letter_template_id, staff, headers_for
    ):
        letter = self._create(client, auth_headers, letter_template_id)
        resp = client.post(f"/letters/{letter['id']}/submit", headers=auth_headers)
        assert resp.json()["status"] == "pending"
        assert len(resp.json()["approvals"]) == 2

        staff_headers = headers_for(staff)
        resp = client.get("/letters/pending-approvals", headers=staff_headers)
        assert letter["id"] in [a["letter_id"] for a in resp.json()]

        resp = client.post(
            f"/letters/{letter['id']}/approve", json={"notes": "ok"}, headers=staff_headers
        )
        assert resp.json()["status"] == "partial"
        resp = client.post(f"/letters/{letter['id']}/approve", json={}, headers=auth_headers)
        assert resp.json()["status"] == "signed"

        resp = client.get(f"/letters/{letter['id']}/certificates", headers=auth_headers)
        assert resp.status_code == 200
        assert len(resp.json()) == 2
        certificate_id = resp.json()[0]["certificate_id"]

        resp = client.get(f"/certificates/{certificate_id}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "valid"

    def test_revoke_and_cancel(self, client, auth_headers, letter_template_id):
        letter = self._create(client, auth_headers, letter_template_id)
        client.post(f"/letters/{letter['id']}/submit", headers=auth_headers)
        client.post(f"/letters/{letter['id']}/approve", json={}, headers=auth_headers)

        resp = client.post(
            f"/letters/{letter['id']}/revoke-approval",
            json={"reason": "Wrong version"},
            headers=auth_headers,
        )
        assert resp.json()["status"] == "pending"

        resp = client.post(
            f"/letters/{letter['id']}/cancel-approval", headers=auth_headers
        )
        assert resp.json()["status"] == "draft"
        assert resp.json()["approvals"] == []

    def test_reject(self, client, auth_headers, letter_template_id, staff, headers_for):
        letter = self._create(client, auth_headers, letter_template_id)
        client.post(f"/letters/{letter['id']}/submit", headers=auth_headers)
        resp = client.post(
            f"/letters/{letter['id']}/reject",
            json={"rejection_reason": "Dates overlap"},
            headers=headers_for(staff),
        )
        assert resp.json()["status"] == "rejected"
        assert resp.json()["rejection_reason"] == "Dates overlap"

    def test_certificate_revoke(self, client, auth_headers, letter_template_id):
        letter = self._create(client, auth_headers, letter_template_id)
        client.post(f"/letters/{letter['id']}/submit", headers=auth_headers)
        client.post(f"/letters/{letter['id']}/approve", json={}, headers=auth_headers)
        certificate_id = client.get(
            f"/letters/{letter['id']}/certificates", headers=auth_headers
        ).json()[0]["certificate_id"]
        resp = client.post(
            f"/certificates/{certificate_id}/revoke",
            json={"reason": "Issued in error"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "revoked"
