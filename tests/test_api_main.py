import uuid

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError

from app.errors import register_error_handlers


class _Payload(BaseModel):
    count: int
    code: str

    @field_validator("code")
    @classmethod
    def validate_code(cls, value: str) -> str:
        if not value.isupper():
            raise ValueError("code must be upper case")
        return value


class TestPlatformEndpoints:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_metrics_exposes_request_counters(self, client):
        client.get("/health")
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "http_requests_total" in resp.text

    def test_invalid_token_rejected(self, client):
        resp = client.get(
            "/people", headers={"Authorization": "Bearer not-a-token"}
        )
        assert resp.status_code == 401


class TestRbacEndpoints:
    def test_staff_is_forbidden(self, client, staff, headers_for):
        resp = client.get("/rbac/roles", headers=headers_for(staff))
        assert resp.status_code == 403
        assert resp.json()["message"] == "Forbidden"

    def test_admin_creates_role(self, client, auth_headers):
        name = f"reviewer-{uuid.uuid4().hex[:6]}"
        resp = client.post("/rbac/roles", json={"name": name}, headers=auth_headers)
        assert resp.status_code == 201
        assert resp.json()["name"] == name


class TestPeopleEndpoints:
    def test_create_unit_and_person(self, client, auth_headers):
        code = f"U{uuid.uuid4().hex[:6]}"
        resp = client.post(
            "/organization-units",
            json={"code": code, "name": "Legal Bureau"},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        unit_id = resp.json()["id"]

        resp = client.post(
            "/people",
            json={
                "first_name": "Lin",
                "last_name": "Legal",
                "email": f"lin-{uuid.uuid4().hex[:6]}@example.com",
                "organization_unit_id": unit_id,
            },
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["organization_unit_id"] == unit_id

    def test_staff_cannot_change_people_or_units(
        self, client, staff, org_unit, headers_for
    ):
        staff_headers = headers_for(staff)
        resp = client.patch(
            f"/people/{staff.id}", json={"position": "Director"}, headers=staff_headers
        )
        assert resp.status_code == 403
        assert resp.json()["message"] == "Forbidden"

        resp = client.patch(
            f"/organization-units/{org_unit.id}",
            json={"name": "Renamed"},
            headers=staff_headers,
        )
        assert resp.status_code == 403
        resp = client.post(
            "/organization-units",
            json={"code": f"U{uuid.uuid4().hex[:6]}", "name": "Shadow Unit"},
            headers=staff_headers,
        )
        assert resp.status_code == 403

    def test_staff_can_read_people(self, client, staff, headers_for):
        resp = client.get(f"/people/{staff.id}", headers=headers_for(staff))
        assert resp.status_code == 200

    def test_admin_updates_person(self, client, auth_headers, staff):
        resp = client.patch(
            f"/people/{staff.id}", json={"position": "Clerk"}, headers=auth_headers
        )
        assert resp.status_code == 200
        assert resp.json()["position"] == "Clerk"


class TestErrorHandlers:
    def _app(self):
        app = FastAPI()
        register_error_handlers(app)

        @app.get("/conflict")
        def conflict():
            raise IntegrityError("INSERT", {}, Exception("duplicate key"))

        @app.post("/payload")
        def payload(body: _Payload):
            return {"count": body.count}

        @app.get("/structured")
        def structured():
            raise HTTPException(
                status_code=400,
                detail={"code": "bad_number", "message": "Bad number", "details": [1]},
            )

        return app

    def test_integrity_error_maps_to_conflict(self):
        resp = TestClient(self._app()).get("/conflict")
        assert resp.status_code == 409
        assert resp.json()["code"] == "conflict"

    def test_structured_http_detail(self):
        resp = TestClient(self._app()).get("/structured")
        assert resp.json() == {
            "code": "bad_number",
            "message": "Bad number",
            "details": [1],
        }

    def test_validation_error_is_structured(self):
        resp = TestClient(self._app()).post("/payload", json={"count": "many"})
        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == "validation_error"
        locs = [err["loc"] for err in body["details"]]
        assert ["body", "count"] in locs
        assert ["body", "code"] in locs
        assert all("url" not in err for err in body["details"])

    def test_validator_message_survives_serialization(self):
        resp = TestClient(self._app()).post(
            "/payload", json={"count": 1, "code": "lower"}
        )
        assert resp.status_code == 422
        (err,) = resp.json()["details"]
        assert err["loc"] == ["body", "code"]
        assert "code must be upper case" in err["msg"]
