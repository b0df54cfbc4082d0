from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, Optional

from ..common.datetime_utils import now_utc, split_duration
from ..core.enums import NotificationLevel
from ..core.exceptions import AlreadySignedInError, DomainError
from .model import AttendanceSession
from .service import AttendanceService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionType:
    label: str
    tone: str


MORNING = SessionType("Morning", "amber")
AFTERNOON = SessionType("Afternoon", "primary")
EVENING = SessionType("Evening", "purple")


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str

    @property
    def ok(self) -> bool:
        return self.level == NotificationLevel.SUCCESS

    @classmethod
    def success(cls, message: str) -> "Notification":
        return cls(NotificationLevel.SUCCESS, message)

    @classmethod
    def error(cls, message: str) -> "Notification":
        return cls(NotificationLevel.ERROR, message)


@dataclass(frozen=True)
class SessionView:
    """Everything the "today's session" widget shows at one instant."""

    active: bool
    elapsed: str
    started_at: Optional[str]
    session_type: Optional[SessionType]
    current_time: str
    current_date: str
    session: Optional[AttendanceSession] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": self.active,
            "elapsed": self.elapsed,
            "started_at": self.started_at,
            "session_type": self.session_type.label if self.session_type else None,
            "session_tone": self.session_type.tone if self.session_type else None,
            "current_time": self.current_time,
            "current_date": self.current_date,
            "session": self.session.to_dict() if self.session else None,
        }


def format_elapsed(session: Optional[AttendanceSession], now: datetime) -> str:
    if session is None:
        return "0h 0m 0s"
    hours, minutes, seconds = split_duration(now - session.sign_in_time)
    return f"{hours}h {minutes}m {seconds}s"


def session_type_for(sign_in_time: datetime, tz: Optional[tzinfo] = None) -> SessionType:
    hour = sign_in_time.astimezone(tz).hour
    if hour < 12:
        return MORNING
    if hour < 17:
        return AFTERNOON
    return EVENING


def clock_time(value: datetime, *, seconds: bool = False) -> str:
    """12-hour clock without a leading zero: `9:05 AM` / `9:05:07 AM`."""
    hour = value.hour % 12 or 12
    minute_part = f"{value:%M:%S}" if seconds else f"{value:%M}"
    return f"{hour}:{minute_part} {value:%p}"


def long_date(value: datetime) -> str:
    return f"{value:%A, %B} {value.day}, {value.year}"


class AttendanceActions:
    """Sign-in/out actions and derived session state for the widget.

    The widget polls `view()` once a second; elapsed time and the clock are
    recomputed on every call, nothing is stored between polls.
    """

    def __init__(
        self,
        attendance: AttendanceService,
        *,
        clock: Callable[[], datetime] = now_utc,
        tz: Optional[tzinfo] = None,
    ):
        self._attendance = attendance
        self._clock = clock
        self._tz = tz

    def current_session(self, user_id: str, company_id: Optional[str] = None) -> Optional[AttendanceSession]:
        return self._attendance.get_current_session(user_id, company_id, now=self._clock())

    def view(self, session: Optional[AttendanceSession], *, now: Optional[datetime] = None) -> SessionView:
        now = now or self._clock()
        local_now = now.astimezone(self._tz)
        if session is None:
            return SessionView(
                active=False,
                elapsed=format_elapsed(None, now),
                started_at=None,
                session_type=None,
                current_time=clock_time(local_now, seconds=True),
                current_date=long_date(local_now),
            )
        return SessionView(
            active=True,
            elapsed=format_elapsed(session, now),
            started_at=clock_time(session.sign_in_time.astimezone(self._tz)),
            session_type=session_type_for(session.sign_in_time, self._tz),
            current_time=clock_time(local_now, seconds=True),
            current_date=long_date(local_now),
            session=session,
        )

    def sign_in(self, user_id: Optional[str], company_id: Optional[str] = None) -> Notification:
        if not user_id:
            return Notification.error("User not authenticated")
        try:
            self._attendance.sign_in(user_id, company_id, now=self._clock())
        except AlreadySignedInError:
            return Notification.error("You are already signed in today")
        except DomainError as e:
            logger.warning("sign in failed user=%s: %s", user_id, e)
            return Notification.error(e.message or "Failed to start session")
        return Notification.success("Session started! Have a productive day!")

    def sign_out(self, session: Optional[AttendanceSession], company_id: Optional[str] = None) -> Notification:
        if session is None or not session.id:
            return Notification.error("No active session found")

        now = self._clock()
        hours_worked = (now - session.sign_in_time).total_seconds() / 3600
        try:
            self._attendance.sign_out(session.id, company_id or session.company_id, now=now)
        except DomainError as e:
            logger.warning("sign out failed session=%s: %s", session.id, e)
            return Notification.error(e.message or "Failed to end session")
        return Notification.success(f"Great work! You logged {hours_worked:.1f} hours today")
