from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Mapping, Optional

from ..common.datetime_utils import parse_iso_date, parse_timestamp
from ..core.enums import AttendanceStatus, parse_stored


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one row of `attendance_sessions`."""

    id: str
    user_id: str
    company_id: str
    sign_in_time: datetime
    sign_out_time: Optional[datetime]
    status: AttendanceStatus
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.sign_out_time is None

    def elapsed(self, now: datetime) -> timedelta:
        end = self.sign_out_time or now
        return end - self.sign_in_time

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AttendanceSession":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            company_id=str(row["company_id"]),
            sign_in_time=parse_timestamp(row["sign_in_time"]),
            sign_out_time=parse_timestamp(row.get("sign_out_time")),
            status=parse_stored(AttendanceStatus, row["status"]),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "company_id": self.company_id,
            "sign_in_time": self.sign_in_time.isoformat(),
            "sign_out_time": self.sign_out_time.isoformat() if self.sign_out_time else None,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class BulkAttendanceItem:
    """One entry of a bulk attendance mark."""

    user_id: str
    status: AttendanceStatus
    date: Optional[date] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "BulkAttendanceItem":
        work_date = raw.get("date")
        if isinstance(work_date, str):
            work_date = parse_iso_date(work_date)
        return cls(user_id=str(raw["user_id"]), status=AttendanceStatus(raw["status"]), date=work_date)
