from __future__ import annotations

import logging

from flask import Flask, request, session

from ..common.web import admin_required, json_result, login_required
from ..container import Container
from ..core.exceptions import DomainError
from .model import BulkAttendanceItem

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    actions = container.attendance_actions

    def _identity():
        return str(session["user_id"]), session.get("company_id")

    @app.route("/api/attendance/session", methods=["GET"], endpoint="attendance_session")
    @login_required
    def current_session():
        """Polled by the session widget every second."""
        user_id, company_id = _identity()
        try:
            view = actions.view(actions.current_session(user_id, company_id))
        except DomainError as e:
            return json_result(False, e.message, 400)
        except Exception:
            logger.exception("loading session failed user=%s", user_id)
            return json_result(False, "System error while loading session", 500)
        return json_result(True, "", session=view.to_dict())

    @app.route("/api/attendance/sign-in", methods=["POST"], endpoint="attendance_sign_in")
    @login_required
    def sign_in():
        user_id, company_id = _identity()
        try:
            note = actions.sign_in(user_id, company_id)
        except Exception:
            logger.exception("sign in failed user=%s", user_id)
            return json_result(False, "Failed to start session", 500)
        return json_result(note.ok, note.message, 200 if note.ok else 400, level=note.level.value)

    @app.route("/api/attendance/sign-out", methods=["POST"], endpoint="attendance_sign_out")
    @login_required
    def sign_out():
        user_id, company_id = _identity()
        try:
            note = actions.sign_out(actions.current_session(user_id, company_id), company_id)
        except DomainError as e:
            return json_result(False, e.message, 400)
        except Exception:
            logger.exception("sign out failed user=%s", user_id)
            return json_result(False, "Failed to end session", 500)
        return json_result(note.ok, note.message, 200 if note.ok else 400, level=note.level.value)

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def history():
        user_id, _ = _identity()
        try:
            limit = int(request.args.get("limit", 30))
            rows = container.attendance_service.get_user_attendance(user_id, limit)
        except ValueError:
            return json_result(False, "Invalid limit", 400)
        except DomainError as e:
            return json_result(False, e.message, 400)
        except Exception:
            logger.exception("loading history failed user=%s", user_id)
            return json_result(False, "System error while loading attendance", 500)
        return json_result(True, "", data=[r.to_dict() for r in rows])

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="attendance_bulk")
    @admin_required
    def bulk_mark():
        data = request.get_json(silent=True) or {}
        try:
            items = [BulkAttendanceItem.from_dict(raw) for raw in data.get("items", [])]
            rows = container.attendance_service.bulk_mark_attendance(items)
        except (KeyError, ValueError, TypeError):
            return json_result(False, "Each item needs user_id, status and an optional YYYY-MM-DD date", 400)
        except DomainError as e:
            return json_result(False, e.message, 400)
        except Exception:
            logger.exception("bulk attendance mark failed")
            return json_result(False, "Failed to mark attendance", 500)
        return json_result(True, f"Marked attendance for {len(rows)} employee(s)", data=[r.to_dict() for r in rows])
