from __future__ import annotations

from datetime import timedelta

import pytest

from hrms_services.attendance.presenter import AttendanceActions
from hrms_services.container import build_container
from hrms_services.main import create_app


@pytest.fixture
def container(client, retry_policy):
    return build_container(client=client, retry_policy=retry_policy)


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container)


def _login(test_client, user_id="u1", company_id="c1", role="employee"):
    with test_client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["company_id"] = company_id
        sess["role"] = role


def test_endpoints_require_login(app):
    resp = app.test_client().get("/api/attendance/session")

    assert resp.status_code == 401
    assert resp.get_json()["message"] == "User not authenticated"


def test_sign_in_then_session_then_sign_out(app):
    c = app.test_client()
    _login(c)

    assert c.get("/api/attendance/session").get_json()["session"]["active"] is False

    resp = c.post("/api/attendance/sign-in")
    assert resp.status_code == 200
    assert resp.get_json()["level"] == "success"

    state = c.get("/api/attendance/session").get_json()["session"]
    assert state["active"] is True
    assert state["session"]["status"] == "present"

    again = c.post("/api/attendance/sign-in")
    assert again.status_code == 400
    assert again.get_json()["message"] == "You are already signed in today"

    out = c.post("/api/attendance/sign-out")
    assert out.status_code == 200
    assert out.get_json()["message"].startswith("Great work! You logged")

    history = c.get("/api/attendance/history").get_json()["data"]
    assert len(history) == 1
    assert history[0]["sign_out_time"] is not None


def test_sign_out_without_session(app):
    c = app.test_client()
    _login(c)

    resp = c.post("/api/attendance/sign-out")

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "No active session found"


def test_unexpected_error_is_500(app, container, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(container.attendance_actions, "sign_in", broken)
    c = app.test_client()
    _login(c)

    resp = c.post("/api/attendance/sign-in")

    assert resp.status_code == 500
    assert resp.get_json()["success"] is False


def test_payroll_requires_admin(app):
    c = app.test_client()
    _login(c)

    assert c.get("/api/payroll").status_code == 403


def test_payroll_process_list_and_status(app):
    c = app.test_client()
    _login(c, role="admin")

    resp = c.post(
        "/api/payroll/process",
        json={"month": 2, "year": 2026, "employee_ids": ["u1", "u2"], "base_salary": 5000, "deductions": 200},
    )
    assert resp.status_code == 200
    rows = resp.get_json()["data"]
    assert [r["net_salary"] for r in rows] == [4800, 4800]

    listing = c.get("/api/payroll?page=1&page_size=1").get_json()
    assert (listing["count"], listing["has_more"]) == (2, True)

    status = c.post(f"/api/payroll/{rows[0]['id']}/status", json={"status": "processed"})
    assert status.get_json()["data"]["status"] == "processed"

    assert c.post(f"/api/payroll/{rows[0]['id']}/status", json={"status": "void"}).status_code == 400
    assert c.post("/api/payroll/missing/status", json={"status": "paid"}).status_code == 404


def test_my_payroll(app):
    c = app.test_client()
    _login(c, role="admin")
    c.post("/api/payroll/process", json={"month": 2, "year": 2026, "employee_ids": ["u1"], "base_salary": 10})

    assert c.get("/api/payroll/me?month=2&year=2026").get_json()["data"]["base_salary"] == 10
    assert c.get("/api/payroll/me?month=3&year=2026").status_code == 404
    assert c.get("/api/payroll/me").status_code == 400


def test_session_view_elapsed_uses_clock(container, fixed_now):
    actions = AttendanceActions(container.attendance_service, clock=lambda: fixed_now + timedelta(seconds=61))
    session = container.attendance_service.sign_in("u1", "c1", now=fixed_now)

    assert actions.view(session).elapsed == "0h 1m 1s"


def test_bulk_mark_endpoint(app):
    c = app.test_client()
    _login(c, role="admin")

    resp = c.post(
        "/api/attendance/bulk",
        json={"items": [{"user_id": "u1", "status": "present", "date": "2026-01-30"}, {"user_id": "u2", "status": "absent"}]},
    )

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data[0]["sign_in_time"] == "2026-01-30T09:00:00+00:00"
    assert data[1]["status"] == "absent"

    assert c.post("/api/attendance/bulk", json={"items": [{"user_id": "u1", "status": "asleep"}]}).status_code == 400
    assert c.post("/api/attendance/bulk", json={"items": []}).get_json()["data"] == []


def test_my_payroll_unexpected_error_is_500(app, container, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(container.payroll_service, "get_payroll_by_user_and_month", broken)
    c = app.test_client()
    _login(c)

    resp = c.get("/api/payroll/me?month=1&year=2026")

    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "message": "System error while loading payroll"}
