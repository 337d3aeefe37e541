from __future__ import annotations

import io
from datetime import date, timedelta

import pytest

from fakes import ADMIN, ALICE
from hr_attendance.main import create_app


@pytest.fixture
def app(world, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=world)


def login(client, actor):
    with client.session_transaction() as s:
        s["user_id"] = actor.user_id
        s["role"] = actor.role.value


@pytest.fixture
def alice(app):
    client = app.test_client()
    login(client, ALICE)
    return client


@pytest.fixture
def admin(app):
    client = app.test_client()
    login(client, ADMIN)
    return client


def test_anonymous_requests_are_rejected(app):
    res = app.test_client().get("/api/attendance/today")
    assert res.status_code == 401
    assert res.get_json()["status"] is False


def test_clock_in_then_today(alice):
    res = alice.post("/api/attendance", json={"clock_type": "in", "method": "manual", "location": "HQ"})
    assert res.status_code == 201
    body = res.get_json()
    assert body["status"] is True
    assert body["data"]["clock_type"] == "in"
    assert body["data"]["method"] == "manual"

    today = alice.get("/api/attendance/today").get_json()["data"]
    assert today["clock_in"]["location"] == "HQ"
    assert today["work_duration"] is None


def test_domain_errors_use_the_envelope(alice):
    alice.post("/api/attendance", json={"clock_type": "in", "method": "manual"})
    res = alice.post("/api/attendance", json={"clock_type": "in", "method": "manual"})

    assert res.status_code == 422
    assert res.get_json() == {
        "status": False,
        "message": "You have already clocked in today",
        "kind": "duplicate_clock_in",
    }


def test_validation_error_status(alice):
    res = alice.post("/api/attendance", json={"clock_type": "sideways", "method": "manual"})
    assert res.status_code == 422
    assert res.get_json()["kind"] == "validation"


def test_not_found_status(alice):
    res = alice.get("/api/attendance/latest")
    assert res.status_code == 404


def test_employee_cannot_reach_admin_routes(alice):
    res = alice.post("/api/qr/generate", json={"clock_type": "in", "location": "Lobby"})
    assert res.status_code == 403


def test_leave_request_with_proof_upload(alice, world):
    start = date.today() + timedelta(days=1)
    res = alice.post(
        "/api/leave-requests",
        data={
            "type": "sakit",
            "reason": "flu",
            "start_date": start.isoformat(),
            "end_date": start.isoformat(),
            "proof_descriptions": "doctor's note",
            "proofs": (io.BytesIO(b"\xff\xd8\xff"), "note.jpg", "image/jpeg"),
        },
        content_type="multipart/form-data",
    )

    assert res.status_code == 201
    data = res.get_json()["data"]
    assert data["status"] == "approved"
    assert data["start_date"] == start.isoformat()
    assert data["proofs"][0]["description"] == "doctor's note"
    assert len(world.storage.objects) == 1


def test_leave_request_without_reason(alice):
    start = date.today() + timedelta(days=1)
    res = alice.post(
        "/api/leave-requests",
        json={"type": "sakit", "start_date": start.isoformat(), "end_date": start.isoformat()},
    )

    assert res.status_code == 201
    data = res.get_json()["data"]
    assert data["reason"] is None
    assert data["status"] == "approved"
    assert "updated_at" not in data


def test_malformed_user_id_is_a_validation_error(admin):
    res = admin.get(
        "/api/attendance/report",
        query_string={"start_date": "2025-01-01", "end_date": "2025-01-07", "user_id": "abc"},
    )

    assert res.status_code == 422
    assert res.get_json()["kind"] == "validation"


def test_admin_generates_qr_and_employee_scans(admin, alice):
    issued = admin.post("/api/qr/generate", json={"clock_type": "in", "location": "Lobby"}).get_json()["data"]

    res = alice.post(f"/api/qr/process/{issued['token']}")

    assert res.status_code == 201
    assert res.get_json()["data"]["method"] == "qr_code"


def test_report_requires_dates(alice):
    res = alice.get("/api/attendance/report")
    assert res.status_code == 422
