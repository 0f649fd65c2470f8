"""Shared helpers for the JSON controllers: session guards and response envelopes."""
from __future__ import annotations

from functools import wraps
from typing import Any, Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import DomainError


def ok(data: Any = None, *, status: int = 200, message: Optional[str] = None, **extra: Any):
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def fail(message: str, status: int = 400):
    return jsonify({"success": False, "message": message}), status


def domain_error(exc: DomainError):
    return fail(str(exc), exc.status_code)


def server_error():
    return fail("Internal Server Error", 500)


def json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role"))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Not authenticated", 401)
        return view(*args, **kwargs)

    return wrapper


def hr_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Not authenticated", 401)
        if session.get("role") != Role.HR.value:
            return fail("Forbidden: Access denied.", 403)
        return view(*args, **kwargs)

    return wrapper
