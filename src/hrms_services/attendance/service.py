from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from ..common.base_service import BaseService
from ..common.cache import cache_key
from ..common.datetime_utils import absence_mark_time, day_bounds, local_midnight, now_utc
from ..common.validators import require_non_empty, require_positive
from ..core.constants import ATTENDANCE_TABLE, DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadySignedInError
from ..profiles.lookup import ProfileLookup
from .model import AttendanceSession, BulkAttendanceItem

logger = logging.getLogger(__name__)

# Prefixes shared by every cached attendance list; cleared on any attendance write.
_SHARED_PREFIXES = ("attendance_list:", "attendance_today:", "attendance_report:")

# Statuses a running session can carry; absence marks are never "current".
_ACTIVE_STATUSES = tuple(s.value for s in AttendanceStatus if s is not AttendanceStatus.ABSENT)


class AttendanceService(BaseService):
    """Attendance sessions: sign-in/out, absences and cached reads.

    Per (user, company, day) a session goes no-session -> active -> closed.
    The "one open session per day" rule is a read-then-insert, so two
    concurrent sign-ins can both pass the check; only a unique constraint in
    the data store closes that gap.
    """

    def __init__(self, client, *, profiles: Optional[ProfileLookup] = None, **kwargs):
        super().__init__(client, **kwargs)
        self._profiles = profiles or ProfileLookup(client)

    # -- writes ---------------------------------------------------------

    def sign_in(self, user_id: str, company_id: Optional[str] = None, *, now: Optional[datetime] = None) -> AttendanceSession:
        user_id = require_non_empty(user_id, "User ID")
        now = now or now_utc()

        def op() -> AttendanceSession:
            company = company_id or self._profiles.company_for_user(user_id)
            if self._open_session_rows(user_id, company, since=local_midnight(now)):
                raise AlreadySignedInError()

            logger.info("signing in user=%s company=%s", user_id, company)
            row = (
                self._client.table(ATTENDANCE_TABLE)
                .insert(
                    [
                        {
                            "user_id": user_id,
                            "company_id": company,
                            "sign_in_time": now,
                            "created_at": now,
                            "status": AttendanceStatus.PRESENT.value,
                        }
                    ]
                )
                .single()
            )
            return AttendanceSession.from_row(row)

        session = self._with_retry(op, f"Sign in {user_id}")
        self._invalidate_users([user_id])
        return session

    def sign_out(self, attendance_id: str, company_id: str, *, now: Optional[datetime] = None) -> AttendanceSession:
        attendance_id = require_non_empty(attendance_id, "Attendance ID")
        company_id = require_non_empty(company_id, "Company ID")
        now = now or now_utc()

        def op() -> AttendanceSession:
            row = (
                self._client.table(ATTENDANCE_TABLE)
                .update({"sign_out_time": now})
                .eq("id", attendance_id)
                .eq("company_id", company_id)
                .single()
            )
            return AttendanceSession.from_row(row)

        session = self._with_retry(op, f"Sign out {attendance_id}")
        logger.info("signed out session=%s user=%s", session.id, session.user_id)
        self._clear_cache(cache_key("attendance", attendance_id))
        self._invalidate_users([session.user_id])
        return session

    def mark_absent(self, user_id: str, work_date: Optional[date] = None, *, now: Optional[datetime] = None) -> AttendanceSession:
        """Record an absence for `work_date` (09:00 UTC) or now.

        Independent of any open session for the same day.
        """
        user_id = require_non_empty(user_id, "User ID")
        now = now or now_utc()

        def op() -> AttendanceSession:
            company = self._profiles.company_for_user(user_id)
            row = (
                self._client.table(ATTENDANCE_TABLE)
                .insert(
                    [
                        {
                            "user_id": user_id,
                            "company_id": company,
                            "sign_in_time": absence_mark_time(work_date, now),
                            "created_at": now,
                            "status": AttendanceStatus.ABSENT.value,
                        }
                    ]
                )
                .single()
            )
            return AttendanceSession.from_row(row)

        session = self._with_retry(op, f"Mark absent {user_id}")
        self._invalidate_users([user_id])
        return session

    def update_attendance_status(self, attendance_id: str, status: AttendanceStatus) -> AttendanceSession:
        attendance_id = require_non_empty(attendance_id, "Attendance ID")
        status = AttendanceStatus(status)

        def op() -> AttendanceSession:
            row = (
                self._client.table(ATTENDANCE_TABLE)
                .update({"status": status.value})
                .eq("id", attendance_id)
                .single()
            )
            return AttendanceSession.from_row(row)

        session = self._with_retry(op, f"Update attendance status {attendance_id}")
        self._clear_cache(cache_key("attendance", attendance_id))
        self._invalidate_users([session.user_id])
        return session

    def bulk_mark_attendance(
        self, items: Sequence[BulkAttendanceItem], *, now: Optional[datetime] = None
    ) -> List[AttendanceSession]:
        """Insert one row per item as a single batch.

        The company is resolved from the first item's user and applied to
        every row.
        """
        if not items:
            return []
        now = now or now_utc()

        def op() -> List[AttendanceSession]:
            company = self._profiles.company_for_user(items[0].user_id)
            records = [
                {
                    "user_id": item.user_id,
                    "company_id": company,
                    "sign_in_time": absence_mark_time(item.date, now),
                    "created_at": now,
                    "status": AttendanceStatus(item.status).value,
                }
                for item in items
            ]
            rows = self._client.table(ATTENDANCE_TABLE).insert(records).execute().data
            return [AttendanceSession.from_row(r) for r in rows]

        sessions = self._with_retry(op, "Bulk mark attendance")
        logger.info("bulk marked %d attendance row(s)", len(sessions))
        self._invalidate_users(item.user_id for item in items)
        return sessions

    # -- reads ----------------------------------------------------------

    def get_attendance(
        self,
        *,
        user_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[AttendanceSession]:
        key = cache_key("attendance_list", user_id, start_date, end_date)

        def load() -> List[AttendanceSession]:
            query = self._client.table(ATTENDANCE_TABLE).select("*")
            if user_id:
                query = query.eq("user_id", user_id)
            if start_date:
                query = query.gte("sign_in_time", day_bounds(start_date)[0])
            if end_date:
                query = query.lte("sign_in_time", day_bounds(end_date)[1])
            rows = query.order("sign_in_time", ascending=False).execute().data
            return [AttendanceSession.from_row(r) for r in rows]

        return self._cached(key, load, "Get attendance")

    def get_attendance_by_id(self, attendance_id: str) -> AttendanceSession:
        attendance_id = require_non_empty(attendance_id, "Attendance ID")

        def load() -> AttendanceSession:
            row = self._client.table(ATTENDANCE_TABLE).select("*").eq("id", attendance_id).single()
            return AttendanceSession.from_row(row)

        return self._cached(cache_key("attendance", attendance_id), load, f"Get attendance {attendance_id}")

    def get_user_attendance(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[AttendanceSession]:
        user_id = require_non_empty(user_id, "User ID")
        limit = require_positive(limit, "limit")

        def load() -> List[AttendanceSession]:
            rows = (
                self._client.table(ATTENDANCE_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .order("sign_in_time", ascending=False)
                .limit(limit)
                .execute()
                .data
            )
            return [AttendanceSession.from_row(r) for r in rows]

        return self._cached(cache_key("user_attendance", user_id, limit), load, f"Get user attendance {user_id}")

    def get_today_attendance(self, *, today: Optional[date] = None) -> List[AttendanceSession]:
        today = today or now_utc().date()
        start, end = day_bounds(today)

        def load() -> List[AttendanceSession]:
            rows = (
                self._client.table(ATTENDANCE_TABLE)
                .select("*")
                .gte("sign_in_time", start)
                .lte("sign_in_time", end)
                .order("sign_in_time", ascending=False)
                .execute()
                .data
            )
            return [AttendanceSession.from_row(r) for r in rows]

        return self._cached(cache_key("attendance_today", today.isoformat()), load, "Get today attendance")

    def get_attendance_report(self, start_date: date, end_date: date) -> List[AttendanceSession]:
        start, end = day_bounds(start_date, end_date)

        def load() -> List[AttendanceSession]:
            rows = (
                self._client.table(ATTENDANCE_TABLE)
                .select("*")
                .gte("sign_in_time", start)
                .lte("sign_in_time", end)
                .order("sign_in_time", ascending=False)
                .execute()
                .data
            )
            return [AttendanceSession.from_row(r) for r in rows]

        label = f"Get attendance report {start_date} to {end_date}"
        return self._cached(cache_key("attendance_report", start_date, end_date), load, label)

    def get_current_session(
        self, user_id: str, company_id: Optional[str] = None, *, now: Optional[datetime] = None
    ) -> Optional[AttendanceSession]:
        """The open, non-absent session started since local midnight, if any. Never cached."""
        user_id = require_non_empty(user_id, "User ID")
        now = now or now_utc()

        def op() -> Optional[AttendanceSession]:
            company = company_id or self._profiles.company_for_user(user_id)
            rows = self._open_session_rows(
                user_id, company, since=local_midnight(now), columns="*", statuses=_ACTIVE_STATUSES
            )
            return AttendanceSession.from_row(rows[0]) if rows else None

        return self._with_retry(op, f"Get current session {user_id}")

    # -- helpers --------------------------------------------------------

    def _open_session_rows(
        self,
        user_id: str,
        company_id: str,
        *,
        since: datetime,
        columns: str = "id",
        statuses: Optional[Sequence[str]] = None,
    ):
        query = (
            self._client.table(ATTENDANCE_TABLE)
            .select(columns)
            .eq("user_id", user_id)
            .eq("company_id", company_id)
            .is_("sign_out_time", None)
            .gte("created_at", since)
        )
        if statuses:
            query = query.in_("status", list(statuses))
        return query.order("sign_in_time", ascending=False).execute().data

    def _invalidate_users(self, user_ids: Iterable[str]) -> None:
        for user_id in set(user_ids):
            self._clear_cache(f"user_attendance:{user_id}:")
        for prefix in _SHARED_PREFIXES:
            self._clear_cache(prefix)
