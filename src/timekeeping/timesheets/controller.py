from __future__ import annotations

from datetime import datetime

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_actor, json_body, login_required, ok, require_organization
from ..core.enums import TimesheetStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .model import MILLISECONDS_PER_HOUR

_EDITABLE_FIELDS = ("task", "description", "project_id", "estimated_hours", "billable", "collaborators")


def _status(value: str | None) -> TimesheetStatus | None:
    if not value:
        return None
    try:
        return TimesheetStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown timesheet status {value!r}")


def _total(milliseconds: int, **extra) -> dict:
    return {**extra, "total_milliseconds": milliseconds, "hours": round(milliseconds / MILLISECONDS_PER_HOUR, 2)}


def register(app: Flask, container: Container) -> None:
    service = container.timesheet_service

    @app.route("/api/timesheets", methods=["GET"], endpoint="timesheets_list")
    @login_required
    def list_timesheets():
        actor = current_actor()
        raw_date = request.args.get("date")
        records = service.list_for_actor(
            actor.user_id,
            work_date=parse_iso_date(raw_date) if raw_date else None,
            status=_status(request.args.get("status")),
        )
        now = datetime.now()
        return ok(timesheets=[r.to_dict(now=now) for r in records])

    @app.route("/api/timesheets", methods=["POST"], endpoint="timesheets_create")
    @login_required
    def create_timesheet():
        actor = current_actor()
        payload = json_body()
        raw_date = payload.get("date")
        record = service.create(
            actor_id=actor.user_id,
            organization_id=require_organization(actor),
            task=payload.get("task") or "",
            work_date=parse_iso_date(raw_date) if raw_date else None,
            description=payload.get("description") or "",
            project_id=payload.get("project_id"),
            collaborators=payload.get("collaborators"),
            estimated_hours=payload.get("estimated_hours", 0),
            billable=payload.get("billable", True),
            status=_status(payload.get("status")) or TimesheetStatus.DRAFT,
        )
        return ok(201, timesheet=record.to_dict())

    @app.route("/api/timesheets/<int:timesheet_id>", methods=["GET"], endpoint="timesheets_get")
    @login_required
    def get_timesheet(timesheet_id: int):
        actor = current_actor()
        record = service.get(
            actor_id=actor.user_id,
            current_role=actor.role,
            organization_id=require_organization(actor),
            timesheet_id=timesheet_id,
        )
        return ok(timesheet=record.to_dict(now=datetime.now()))

    @app.route("/api/timesheets/<int:timesheet_id>", methods=["PATCH"], endpoint="timesheets_update")
    @login_required
    def update_timesheet(timesheet_id: int):
        payload = json_body()
        changes = {k: payload[k] for k in _EDITABLE_FIELDS if k in payload}
        if payload.get("date"):
            changes["work_date"] = parse_iso_date(payload["date"])
        record = service.update(actor_id=current_actor().user_id, timesheet_id=timesheet_id, changes=changes)
        return ok(timesheet=record.to_dict())

    @app.route("/api/timesheets/<int:timesheet_id>", methods=["DELETE"], endpoint="timesheets_delete")
    @login_required
    def delete_timesheet(timesheet_id: int):
        service.delete(actor_id=current_actor().user_id, timesheet_id=timesheet_id)
        return ok(message="Timesheet deleted")

    @app.route("/api/timesheets/<int:timesheet_id>/start", methods=["POST"], endpoint="timesheets_start")
    @login_required
    def start_timer(timesheet_id: int):
        record = service.start(actor_id=current_actor().user_id, timesheet_id=timesheet_id)
        return ok(timesheet=record.to_dict())

    @app.route("/api/timesheets/<int:timesheet_id>/stop", methods=["POST"], endpoint="timesheets_stop")
    @login_required
    def stop_timer(timesheet_id: int):
        record = service.stop(actor_id=current_actor().user_id, timesheet_id=timesheet_id)
        return ok(timesheet=record.to_dict())

    @app.route("/api/timesheets/<int:timesheet_id>/submit", methods=["PATCH"], endpoint="timesheets_submit")
    @login_required
    def submit_timesheet(timesheet_id: int):
        record = service.submit(actor_id=current_actor().user_id, timesheet_id=timesheet_id)
        return ok(timesheet=record.to_dict())

    @app.route("/api/timesheets/<int:timesheet_id>/review", methods=["PATCH"], endpoint="timesheets_review")
    @login_required
    def review_timesheet(timesheet_id: int):
        actor = current_actor()
        record = service.review(
            current_role=actor.role,
            actor_id=actor.user_id,
            organization_id=require_organization(actor),
            timesheet_id=timesheet_id,
            note=json_body().get("note") or "",
        )
        return ok(timesheet=record.to_dict())

    @app.route("/api/timesheets/totals/daily", methods=["GET"], endpoint="timesheets_daily_total")
    @login_required
    def daily_total():
        raw_date = request.args.get("date")
        work_date = parse_iso_date(raw_date) if raw_date else datetime.now().date()
        total = container.timesheet_aggregator.daily_total(current_actor().user_id, work_date)
        return ok(**_total(total, date=work_date.isoformat()))

    @app.route("/api/timesheets/totals/monthly", methods=["GET"], endpoint="timesheets_monthly_total")
    @login_required
    def monthly_total():
        month = request.args.get("month") or datetime.now().strftime("%Y-%m")
        total = container.timesheet_aggregator.monthly_total(current_actor().user_id, month)
        return ok(**_total(total, month=month))
