"""Shared Flask helpers: session identity, request metadata and error mapping."""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any, Optional

import structlog
from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..capture.model import RequestMeta
from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    GuardViolation,
    NotFoundError,
    UpstreamError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

HTTP_STATUS = {
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    GuardViolation: 409,
    ConflictError: 409,
    UpstreamError: 502,
}


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: Role
    organization_id: Optional[int]


def current_actor() -> Actor:
    try:
        role = Role(session.get("role") or Role.EMPLOYEE.value)
    except ValueError:
        raise AuthorizationError("Unknown role in session")
    org_id = session.get("organization_id")
    return Actor(
        user_id=int(session["user_id"]),
        role=role,
        organization_id=int(org_id) if org_id is not None else None,
    )


def require_organization(actor: Actor) -> int:
    if actor.organization_id is None:
        raise ValidationError("Organization data not found for your account")
    return actor.organization_id


def client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.remote_addr or ""


def request_meta() -> RequestMeta:
    return RequestMeta(ip=client_ip(), user_agent=request.headers.get("User-Agent", ""))


def json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def ok(status: int = 200, **payload: Any):
    return jsonify({"success": True, **payload}), status


def error_response(exc: DomainError):
    status = next((code for cls, code in HTTP_STATUS.items() if isinstance(exc, cls)), 400)
    return jsonify({"success": False, "code": exc.code, "message": exc.message}), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "code": "NOT_AUTHENTICATED", "message": "Please log in first"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if not current_actor().role.is_admin:
            return error_response(AuthorizationError())
        return view(*args, **kwargs)

    return wrapper


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        logger.info("request_rejected", path=request.path, code=exc.code, message=exc.message)
        return error_response(exc)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"success": False, "code": exc.name.upper().replace(" ", "_"), "message": exc.description}), exc.code
        logger.exception("unhandled_error", path=request.path, method=request.method)
        return jsonify({"success": False, "code": "INTERNAL_ERROR", "message": "Internal server error"}), 500
