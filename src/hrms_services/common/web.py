from __future__ import annotations

from functools import wraps

from flask import jsonify, session

from ..core.enums import Role


def json_result(success: bool, message: str, status: int = 200, **extra):
    body = {"success": success, "message": message}
    body.update(extra)
    return jsonify(body), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return json_result(False, "User not authenticated", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return json_result(False, "User not authenticated", 401)
        if session.get("role") != Role.ADMIN.value:
            return json_result(False, "Admin access required", 403)
        return view(*args, **kwargs)

    return wrapper
