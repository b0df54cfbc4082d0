from __future__ import annotations

from enum import Enum

from .exceptions import RemoteError


class AttendanceStatus(str, Enum):
    """Attendance status values stored on `attendance_sessions.status`."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half_day"
    ON_LEAVE = "on_leave"


class PayrollStatus(str, Enum):
    """Payroll lifecycle. Any status may follow any other."""

    DRAFT = "draft"
    PROCESSED = "processed"
    PAID = "paid"


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Role(str, Enum):
    """User role carried in the web session."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


def parse_stored(enum_cls, value):
    """Read a status column; values outside the enum are a data-store fault."""
    try:
        return enum_cls(value)
    except ValueError:
        raise RemoteError(f"Unknown {enum_cls.__name__} value in store: {value!r}") from None
