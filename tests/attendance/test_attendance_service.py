from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from hrms_services.attendance.model import BulkAttendanceItem
from hrms_services.attendance.service import AttendanceService
from hrms_services.core.enums import AttendanceStatus
from hrms_services.core.exceptions import AlreadySignedInError, NotFoundError, RemoteError, ValidationError
from hrms_services.database.memory import InMemoryDataClient


def test_sign_in_creates_present_open_session(attendance, fixed_now):
    session = attendance.sign_in("u1", "c1", now=fixed_now)

    assert session.status == AttendanceStatus.PRESENT
    assert session.sign_out_time is None
    assert session.sign_in_time == fixed_now
    assert session.company_id == "c1"


def test_sign_in_resolves_company_from_profile(attendance, fixed_now):
    session = attendance.sign_in("u2", now=fixed_now)

    assert session.company_id == "c1"


def test_second_sign_in_same_day_fails_without_retrying(attendance, client, fixed_now):
    attendance.sign_in("u1", "c1", now=fixed_now)
    calls_before = len(client.history)

    with pytest.raises(AlreadySignedInError) as excinfo:
        attendance.sign_in("u1", "c1", now=fixed_now + timedelta(hours=2))

    assert "Already signed in" in str(excinfo.value)
    assert excinfo.value.operation == "Sign in u1"
    # one existence check, no insert, no second attempt
    assert client.history[calls_before:] == [("select", "attendance_sessions")]


def test_sign_in_allowed_after_sign_out(attendance, fixed_now):
    first = attendance.sign_in("u1", "c1", now=fixed_now)
    attendance.sign_out(first.id, "c1", now=fixed_now + timedelta(hours=1))

    second = attendance.sign_in("u1", "c1", now=fixed_now + timedelta(hours=2))

    assert second.id != first.id


def test_open_session_from_yesterday_does_not_block(attendance, fixed_now):
    attendance.sign_in("u1", "c1", now=fixed_now - timedelta(days=1))

    session = attendance.sign_in("u1", "c1", now=fixed_now)

    assert session.is_active


def test_sign_in_requires_user_id(attendance, client):
    with pytest.raises(ValidationError):
        attendance.sign_in("", "c1")
    assert client.history == []


def test_sign_in_user_without_company(attendance, fixed_now):
    with pytest.raises(ValidationError, match="not assigned to any company"):
        attendance.sign_in("u3", now=fixed_now)


def test_sign_in_unknown_profile(attendance, fixed_now):
    with pytest.raises(NotFoundError, match="User profile not found"):
        attendance.sign_in("nobody", now=fixed_now)


def test_sign_out_sets_sign_out_time(attendance, fixed_now):
    session = attendance.sign_in("u1", "c1", now=fixed_now)
    later = fixed_now + timedelta(hours=8)

    closed = attendance.sign_out(session.id, "c1", now=later)

    assert closed.id == session.id
    assert closed.sign_out_time == later
    assert not closed.is_active


def test_sign_out_wrong_company_is_not_found(attendance, fixed_now):
    session = attendance.sign_in("u1", "c1", now=fixed_now)

    with pytest.raises(NotFoundError):
        attendance.sign_out(session.id, "other-company", now=fixed_now)


def test_user_attendance_reflects_new_sign_in(attendance, fixed_now):
    assert attendance.get_user_attendance("u1") == []

    session = attendance.sign_in("u1", "c1", now=fixed_now)

    assert [s.id for s in attendance.get_user_attendance("u1")] == [session.id]


def test_user_attendance_is_cached_until_a_write(attendance, client, fixed_now):
    attendance.get_user_attendance("u1")
    attendance.get_user_attendance("u1")
    assert client.history.count(("select", "attendance_sessions")) == 1

    attendance.mark_absent("u1", date(2026, 1, 30), now=fixed_now)
    rows = attendance.get_user_attendance("u1")

    assert len(rows) == 1
    assert client.history.count(("select", "attendance_sessions")) == 2


def test_sign_in_leaves_other_users_cache_alone(attendance, fixed_now):
    attendance.get_user_attendance("u2")
    attendance.sign_in("u1", "c1", now=fixed_now)

    assert any(k.startswith("user_attendance:u2:") for k in attendance.cache)


def test_mark_absent_uses_nine_utc(attendance, fixed_now):
    session = attendance.mark_absent("u1", date(2026, 1, 30), now=fixed_now)

    assert session.status == AttendanceStatus.ABSENT
    assert session.sign_in_time == datetime(2026, 1, 30, 9, 0, tzinfo=timezone.utc)
    assert session.company_id == "c1"


def test_mark_absent_does_not_check_open_session(attendance, fixed_now):
    attendance.sign_in("u1", "c1", now=fixed_now)

    absent = attendance.mark_absent("u1", now=fixed_now)

    assert absent.sign_in_time == fixed_now


def test_get_attendance_filters_by_user_and_dates(attendance, fixed_now):
    attendance.mark_absent("u1", date(2026, 1, 28), now=fixed_now)
    attendance.mark_absent("u1", date(2026, 1, 30), now=fixed_now)
    attendance.mark_absent("u2", date(2026, 1, 30), now=fixed_now)

    rows = attendance.get_attendance(user_id="u1", start_date=date(2026, 1, 29), end_date=date(2026, 1, 31))

    assert [(r.user_id, r.sign_in_time.day) for r in rows] == [("u1", 30)]


def test_get_attendance_orders_newest_first(attendance, fixed_now):
    attendance.mark_absent("u1", date(2026, 1, 28), now=fixed_now)
    attendance.mark_absent("u1", date(2026, 1, 30), now=fixed_now)

    rows = attendance.get_attendance(user_id="u1")

    assert [r.sign_in_time.day for r in rows] == [30, 28]


def test_get_attendance_by_id(attendance, fixed_now):
    session = attendance.sign_in("u1", "c1", now=fixed_now)

    assert attendance.get_attendance_by_id(session.id) == session
    with pytest.raises(NotFoundError):
        attendance.get_attendance_by_id("missing")


def test_sign_out_invalidates_cached_row(attendance, fixed_now):
    session = attendance.sign_in("u1", "c1", now=fixed_now)
    attendance.get_attendance_by_id(session.id)

    attendance.sign_out(session.id, "c1", now=fixed_now + timedelta(hours=1))

    assert attendance.get_attendance_by_id(session.id).sign_out_time is not None


def test_today_and_report(attendance, fixed_now):
    attendance.sign_in("u1", "c1", now=fixed_now)
    attendance.mark_absent("u2", date(2026, 2, 1), now=fixed_now)

    today = attendance.get_today_attendance(today=fixed_now.date())
    report = attendance.get_attendance_report(date(2026, 2, 1), date(2026, 2, 2))

    assert [s.user_id for s in today] == ["u1"]
    assert [s.user_id for s in report] == ["u1", "u2"]


def test_today_cache_cleared_by_sign_in(attendance, fixed_now):
    assert attendance.get_today_attendance(today=fixed_now.date()) == []

    attendance.sign_in("u1", "c1", now=fixed_now)

    assert len(attendance.get_today_attendance(today=fixed_now.date())) == 1


def test_current_session(attendance, fixed_now):
    assert attendance.get_current_session("u1", "c1", now=fixed_now) is None

    session = attendance.sign_in("u1", "c1", now=fixed_now)

    assert attendance.get_current_session("u1", now=fixed_now) == session


def test_update_attendance_status(attendance, fixed_now):
    session = attendance.sign_in("u1", "c1", now=fixed_now)

    updated = attendance.update_attendance_status(session.id, AttendanceStatus.LATE)

    assert updated.status == AttendanceStatus.LATE


def test_bulk_mark_empty_issues_no_remote_call(attendance, client):
    assert attendance.bulk_mark_attendance([]) == []
    assert client.history == []


def test_bulk_mark_uses_first_users_company(attendance, client, fixed_now):
    items = [
        BulkAttendanceItem("u1", AttendanceStatus.PRESENT, date(2026, 1, 30)),
        BulkAttendanceItem("u3", AttendanceStatus.ABSENT),
    ]

    rows = attendance.bulk_mark_attendance(items, now=fixed_now)

    assert [(r.user_id, r.company_id, r.status) for r in rows] == [
        ("u1", "c1", AttendanceStatus.PRESENT),
        ("u3", "c1", AttendanceStatus.ABSENT),
    ]
    assert rows[1].sign_in_time == fixed_now
    assert client.writes() == [("insert", "attendance_sessions")]


def test_bulk_mark_invalidates_each_user(attendance, fixed_now):
    attendance.get_user_attendance("u1")
    attendance.get_user_attendance("u2")

    attendance.bulk_mark_attendance(
        [BulkAttendanceItem("u1", AttendanceStatus.PRESENT), BulkAttendanceItem("u2", AttendanceStatus.PRESENT)],
        now=fixed_now,
    )

    assert not any(k.startswith("user_attendance:") for k in attendance.cache)


def test_transient_failure_is_retried(flaky_client, retry_policy, fixed_now):
    svc = AttendanceService(flaky_client, retry_policy=retry_policy)

    session = svc.sign_in("u1", "c1", now=fixed_now)

    assert session.is_active
    assert flaky_client.history[0] == ("failed", "attendance_sessions")
    assert flaky_client.writes() == [("insert", "attendance_sessions")]


def test_current_session_skips_absence_marks(attendance, fixed_now):
    attendance.mark_absent("u1", date(2026, 1, 20), now=fixed_now)

    assert attendance.get_current_session("u1", "c1", now=fixed_now) is None

    session = attendance.sign_in("u2", "c1", now=fixed_now)
    attendance.mark_absent("u2", now=fixed_now)

    assert attendance.get_current_session("u2", "c1", now=fixed_now) == session


def test_cached_list_is_not_shared_with_callers(attendance, fixed_now):
    attendance.sign_in("u1", "c1", now=fixed_now)

    rows = attendance.get_user_attendance("u1")
    rows.clear()

    assert len(attendance.get_user_attendance("u1")) == 1
    attendance.get_user_attendance("u1").clear()
    assert len(attendance.get_user_attendance("u1")) == 1


def test_unknown_stored_status_is_a_remote_error(retry_policy, fixed_now):
    row = {
        "id": "a1",
        "user_id": "u1",
        "company_id": "c1",
        "sign_in_time": fixed_now,
        "sign_out_time": None,
        "status": "remote_work",
        "created_at": fixed_now,
    }
    client = InMemoryDataClient({"attendance_sessions": [row]})
    svc = AttendanceService(client, retry_policy=retry_policy)

    with pytest.raises(RemoteError, match="remote_work") as excinfo:
        svc.get_attendance_by_id("a1")

    assert excinfo.value.operation == "Get attendance a1"
    assert client.history == [("select", "attendance_sessions")]
