"""Shared Flask helpers: actor resolution, JSON envelopes and error mapping.

Authentication happens upstream; the gateway forwards the authenticated
actor as ``X-Actor-Id`` / ``X-Actor-Role`` headers.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from functools import wraps
from typing import Any, Optional

import structlog
from flask import Flask, g, jsonify, request

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DomainError, ValidationError

logger = structlog.get_logger("shift_booking.http")


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def current_actor() -> Actor:
    raw_id = (request.headers.get("X-Actor-Id") or "").strip()
    if not raw_id.isdigit():
        raise AuthorizationError("Missing or invalid X-Actor-Id header")
    try:
        role = Role((request.headers.get("X-Actor-Role") or Role.EMPLOYEE.value).strip().lower())
    except ValueError:
        raise AuthorizationError("Unknown actor role")
    return Actor(user_id=int(raw_id), role=role)


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_actor().is_admin:
            raise AuthorizationError("Only administrators can perform this action")
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def to_json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(timespec="seconds")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if hasattr(value, "value"):
        return value.value
    return value


def ok(data: Any = None, *, status: int = 200, message: Optional[str] = None, meta: Optional[dict] = None):
    body: dict = {"success": True, "data": data}
    if message:
        body["message"] = message
    if meta:
        body["meta"] = meta
    return jsonify(body), status


def register_http_handlers(app: Flask) -> None:
    @app.before_request
    def _bind_request_context():
        g.request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=g.request_id, method=request.method, path=request.path)

    @app.errorhandler(DomainError)
    def _domain_error(exc: DomainError):
        logger.info("request_rejected", error=exc.code, message=str(exc))
        return jsonify({"success": False, "error": exc.code, "message": str(exc)}), exc.status_code
