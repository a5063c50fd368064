from __future__ import annotations

from datetime import date

from flask import Flask, request

from ..capture.model import CaptureInput
from ..common.datetime_utils import parse_iso_date
from ..common.web import admin_required, current_actor, json_body, login_required, ok, request_meta, require_organization
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import ValidationError
from ..container import Container


def _int_arg(name: str, default: int | None = None) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="attendance_clock_in")
    @login_required
    def clock_in():
        actor = current_actor()
        record = container.attendance_service.clock_in(
            user_id=actor.user_id,
            organization_id=require_organization(actor),
            data=CaptureInput.from_payload(json_body()),
            meta=request_meta(),
        )
        return ok(201, attendance=record.to_dict())

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="attendance_clock_out")
    @login_required
    def clock_out():
        actor = current_actor()
        record = container.attendance_service.clock_out(
            user_id=actor.user_id,
            organization_id=require_organization(actor),
            data=CaptureInput.from_payload(json_body()),
            meta=request_meta(),
        )
        return ok(attendance=record.to_dict())

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today():
        record = container.attendance_service.get_today(current_actor().user_id)
        return ok(attendance=record.to_dict() if record else None)

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def history():
        actor = current_actor()
        page = container.attendance_service.get_history(
            current_role=actor.role,
            actor_id=actor.user_id,
            organization_id=require_organization(actor),
            user_id=_int_arg("user_id"),
            year=_int_arg("year"),
            month=_int_arg("month"),
            page=_int_arg("page", 1),
            limit=_int_arg("limit", DEFAULT_HISTORY_LIMIT),
        )
        return ok(**page.to_dict())

    @app.route("/api/attendance/overview", methods=["GET"], endpoint="attendance_overview")
    @admin_required
    def overview():
        actor = current_actor()
        raw_date = request.args.get("date")
        work_date = parse_iso_date(raw_date) if raw_date else date.today()
        result = container.attendance_service.get_overview(
            current_role=actor.role,
            organization_id=require_organization(actor),
            work_date=work_date,
        )
        return ok(**result.to_dict())

    @app.route("/api/attendance/weekly", methods=["GET"], endpoint="attendance_weekly")
    @admin_required
    def weekly():
        actor = current_actor()
        days = container.attendance_service.get_weekly_summary(
            current_role=actor.role,
            organization_id=require_organization(actor),
        )
        return ok(data=[d.to_dict() for d in days])

    @app.route("/api/attendance/<int:attendance_id>/approve", methods=["PATCH"], endpoint="attendance_approve")
    @admin_required
    def approve(attendance_id: int):
        actor = current_actor()
        record = container.attendance_service.approve(
            current_role=actor.role,
            actor_id=actor.user_id,
            organization_id=require_organization(actor),
            attendance_id=attendance_id,
            meta=request_meta(),
        )
        return ok(attendance=record.to_dict())
