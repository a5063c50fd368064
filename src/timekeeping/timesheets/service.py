from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

import structlog

from ..audit.model import AuditEvent
from ..audit.sink import AuditSink, emit
from ..common.validators import normalize_id_list, require_non_empty, require_number_in_range
from ..core.enums import AuditAction, Role, TimerAction, TimesheetStatus
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidTransition,
    NotFoundError,
    TimerAlreadyRunning,
    TimerNotRunning,
    ValidationError,
)
from .model import TaskTimerRecord
from .repository import TimerTransaction, TimesheetRepository

logger = structlog.get_logger(__name__)

T = TypeVar("T")

LOCK_SCOPE_ATTEMPTS = 5
CREATABLE_STATUSES = (TimesheetStatus.DRAFT, TimesheetStatus.PENDING)
SUBMITTABLE_STATUSES = (TimesheetStatus.DRAFT, TimesheetStatus.PENDING, TimesheetStatus.IN_PROGRESS)
CLOSED_STATUSES = (TimesheetStatus.SUBMITTED, TimesheetStatus.REVIEWED)

RunningLookup = Callable[[int], Sequence[TaskTimerRecord]]


def _participant_scope(record: TaskTimerRecord, running_for: RunningLookup) -> set[int]:
    return set(record.participants)


def _start_scope(record: TaskTimerRecord, running_for: RunningLookup) -> set[int]:
    # Auto-stopping another record changes the running set of all of its
    # participants, so their locks are needed as well.
    scope = set(record.participants)
    for actor_id in record.participants:
        for other in running_for(actor_id):
            scope.update(other.participants)
    return scope


class TimesheetService:
    """Task timers with at most one running timer per actor.

    Every mutation runs inside a timer transaction holding the locks of all
    actors whose running set it can change; the record is re-read under the
    lock and the scope re-checked, retrying a few times if it grew meanwhile.
    """

    def __init__(self, timesheets: TimesheetRepository, *, audit: AuditSink):
        self._timesheets = timesheets
        self._audit = audit

    # ----- queries -----

    def list_for_actor(
        self,
        actor_id: int,
        *,
        work_date: Optional[date] = None,
        status: Optional[TimesheetStatus] = None,
    ) -> Sequence[TaskTimerRecord]:
        return self._timesheets.list_for_actor(actor_id, start=work_date, end=work_date, status=status)

    def get(
        self,
        *,
        actor_id: int,
        current_role: Role,
        organization_id: int,
        timesheet_id: int,
    ) -> TaskTimerRecord:
        record = self._timesheets.get(timesheet_id)
        if record is None:
            raise NotFoundError("Timesheet not found")
        if record.involves(actor_id):
            return record
        if current_role.is_admin and record.organization_id == int(organization_id):
            return record
        raise AuthorizationError()

    # ----- lifecycle -----

    def create(
        self,
        *,
        actor_id: int,
        organization_id: int,
        task: str,
        work_date: Optional[date] = None,
        description: str = "",
        project_id: Optional[int] = None,
        collaborators: Iterable[Any] | None = None,
        estimated_hours: Any = 0,
        billable: bool = True,
        status: TimesheetStatus = TimesheetStatus.DRAFT,
        now: datetime | None = None,
    ) -> TaskTimerRecord:
        now = now or datetime.now()
        if status not in CREATABLE_STATUSES:
            raise ValidationError("New timesheets start as draft or pending")

        record = TaskTimerRecord(
            owner_id=int(actor_id),
            organization_id=int(organization_id),
            work_date=work_date or now.date(),
            task=require_non_empty(task, "Task"),
            description=(description or "").strip(),
            project_id=int(project_id) if project_id is not None else None,
            collaborators=normalize_id_list(collaborators, "Collaborator", exclude=int(actor_id)),
            estimated_hours=require_number_in_range(estimated_hours or 0, "Estimated hours", 0, 24),
            billable=bool(billable),
            status=status,
        ).with_log(TimerAction.CREATED, now=now, actor_id=actor_id)

        saved = self._timesheets.add(record)
        logger.info("timesheet_created", timesheet_id=saved.timesheet_id, owner_id=saved.owner_id)
        self._audit_event(AuditAction.CREATE_TIMESHEET, actor_id=actor_id, record=saved, now=now)
        return saved

    def update(
        self,
        *,
        actor_id: int,
        timesheet_id: int,
        changes: dict[str, Any],
        now: datetime | None = None,
    ) -> TaskTimerRecord:
        now = now or datetime.now()

        def apply(tx: TimerTransaction, record: TaskTimerRecord) -> TaskTimerRecord:
            self._require_owner(record, actor_id)
            if record.status != TimesheetStatus.DRAFT:
                raise InvalidTransition("Only draft timesheets can be edited")
            return tx.save(self._with_changes(record, changes))

        saved = self._locked(timesheet_id, apply, _participant_scope)
        logger.info("timesheet_updated", timesheet_id=saved.timesheet_id, fields=sorted(changes))
        self._audit_event(
            AuditAction.UPDATE_TIMESHEET, actor_id=actor_id, record=saved, now=now, details={"fields": sorted(changes)}
        )
        return saved

    @staticmethod
    def _with_changes(record: TaskTimerRecord, changes: dict[str, Any]) -> TaskTimerRecord:
        fields: dict[str, Any] = {}
        if "task" in changes:
            fields["task"] = require_non_empty(changes["task"], "Task")
        if "description" in changes:
            fields["description"] = (changes["description"] or "").strip()
        if "project_id" in changes:
            fields["project_id"] = int(changes["project_id"]) if changes["project_id"] is not None else None
        if "estimated_hours" in changes:
            fields["estimated_hours"] = require_number_in_range(
                changes["estimated_hours"] or 0, "Estimated hours", 0, 24
            )
        if "billable" in changes:
            fields["billable"] = bool(changes["billable"])
        if "collaborators" in changes:
            fields["collaborators"] = normalize_id_list(
                changes["collaborators"], "Collaborator", exclude=record.owner_id
            )
        if "work_date" in changes:
            if not isinstance(changes["work_date"], date):
                raise ValidationError("work_date must be a date")
            fields["work_date"] = changes["work_date"]
        return replace(record, **fields)

    def delete(self, *, actor_id: int, timesheet_id: int, now: datetime | None = None) -> None:
        now = now or datetime.now()

        def apply(tx: TimerTransaction, record: TaskTimerRecord) -> TaskTimerRecord:
            self._require_owner(record, actor_id)
            if record.status != TimesheetStatus.DRAFT:
                raise InvalidTransition("Only draft timesheets can be deleted")
            tx.delete(record.timesheet_id)
            return record

        deleted = self._locked(timesheet_id, apply, _participant_scope)
        logger.info("timesheet_deleted", timesheet_id=deleted.timesheet_id, owner_id=deleted.owner_id)
        self._audit_event(AuditAction.DELETE_TIMESHEET, actor_id=actor_id, record=deleted, now=now)

    # ----- timer -----

    def start(self, *, actor_id: int, timesheet_id: int, now: datetime | None = None) -> TaskTimerRecord:
        """Start the timer, first stopping every other running timer of each participant."""
        now = now or datetime.now()

        def apply(tx: TimerTransaction, record: TaskTimerRecord) -> tuple[TaskTimerRecord, list[TaskTimerRecord]]:
            self._require_participant(record, actor_id)
            if record.is_running:
                raise TimerAlreadyRunning()
            if record.status in CLOSED_STATUSES:
                raise InvalidTransition(f"A {record.status.value} timesheet cannot be timed")

            auto_stopped: list[TaskTimerRecord] = []
            seen = {record.timesheet_id}
            for participant in record.participants:
                for other in tx.running_for(participant):
                    if other.timesheet_id in seen:
                        continue
                    seen.add(other.timesheet_id)
                    auto_stopped.append(
                        tx.save(
                            other.stopped(
                                now=now,
                                actor_id=actor_id,
                                action=TimerAction.AUTO_STOPPED,
                                note=f"Stopped because timesheet {record.timesheet_id} was started",
                            )
                        )
                    )
            return tx.save(record.started(now=now, actor_id=actor_id)), auto_stopped

        started, auto_stopped = self._locked(timesheet_id, apply, _start_scope)

        for other in auto_stopped:
            logger.info(
                "timer_auto_stopped",
                timesheet_id=other.timesheet_id,
                total_milliseconds=other.total_milliseconds,
                triggered_by=started.timesheet_id,
            )
            self._audit_event(
                AuditAction.AUTO_STOP_TIMER,
                actor_id=actor_id,
                record=other,
                now=now,
                details={"triggered_by": started.timesheet_id},
            )
        logger.info("timer_started", timesheet_id=started.timesheet_id, actor_id=actor_id)
        self._audit_event(AuditAction.START_TIMER, actor_id=actor_id, record=started, now=now)
        return started

    def stop(self, *, actor_id: int, timesheet_id: int, now: datetime | None = None) -> TaskTimerRecord:
        now = now or datetime.now()

        def apply(tx: TimerTransaction, record: TaskTimerRecord) -> TaskTimerRecord:
            self._require_participant(record, actor_id)
            if not record.is_running:
                raise TimerNotRunning()
            return tx.save(record.stopped(now=now, actor_id=actor_id))

        stopped = self._locked(timesheet_id, apply, _participant_scope)
        logger.info(
            "timer_stopped",
            timesheet_id=stopped.timesheet_id,
            actor_id=actor_id,
            total_milliseconds=stopped.total_milliseconds,
        )
        self._audit_event(
            AuditAction.STOP_TIMER,
            actor_id=actor_id,
            record=stopped,
            now=now,
            details={"total_milliseconds": stopped.total_milliseconds},
        )
        return stopped

    # ----- review workflow -----

    def submit(self, *, actor_id: int, timesheet_id: int, now: datetime | None = None) -> TaskTimerRecord:
        now = now or datetime.now()

        def apply(tx: TimerTransaction, record: TaskTimerRecord) -> TaskTimerRecord:
            self._require_owner(record, actor_id)
            if record.is_running:
                raise InvalidTransition("Stop the timer before submitting")
            if record.status not in SUBMITTABLE_STATUSES:
                raise InvalidTransition(f"A {record.status.value} timesheet cannot be submitted")
            submitted = replace(record, status=TimesheetStatus.SUBMITTED)
            return tx.save(submitted.with_log(TimerAction.SUBMITTED, now=now, actor_id=actor_id))

        saved = self._locked(timesheet_id, apply, _participant_scope)
        logger.info("timesheet_submitted", timesheet_id=saved.timesheet_id)
        self._audit_event(AuditAction.SUBMIT_TIMESHEET, actor_id=actor_id, record=saved, now=now)
        return saved

    def review(
        self,
        *,
        current_role: Role,
        actor_id: int,
        organization_id: int,
        timesheet_id: int,
        note: str = "",
        now: datetime | None = None,
    ) -> TaskTimerRecord:
        if not current_role.is_admin:
            raise AuthorizationError("Only administrators can review timesheets")
        now = now or datetime.now()

        def apply(tx: TimerTransaction, record: TaskTimerRecord) -> TaskTimerRecord:
            if record.organization_id != int(organization_id):
                raise NotFoundError("Timesheet not found")
            if record.status != TimesheetStatus.SUBMITTED:
                raise InvalidTransition("Only submitted timesheets can be reviewed")
            reviewed = replace(
                record,
                status=TimesheetStatus.REVIEWED,
                reviewed_by=int(actor_id),
                review_note=(note or "").strip(),
            )
            return tx.save(reviewed.with_log(TimerAction.REVIEWED, now=now, actor_id=actor_id, note=reviewed.review_note))

        saved = self._locked(timesheet_id, apply, _participant_scope)
        logger.info("timesheet_reviewed", timesheet_id=saved.timesheet_id, reviewed_by=actor_id)
        self._audit_event(AuditAction.REVIEW_TIMESHEET, actor_id=actor_id, record=saved, now=now)
        return saved

    # ----- helpers -----

    def _locked(
        self,
        timesheet_id: int,
        apply: Callable[[TimerTransaction, TaskTimerRecord], T],
        scope: Callable[[TaskTimerRecord, RunningLookup], set[int]],
    ) -> T:
        locked: set[int] = set()
        for _ in range(LOCK_SCOPE_ATTEMPTS):
            snapshot = self._timesheets.get(timesheet_id)
            if snapshot is None:
                raise NotFoundError("Timesheet not found")
            locked |= scope(snapshot, self._timesheets.list_running_for)

            with self._timesheets.timer_transaction(locked) as tx:
                record = tx.get(timesheet_id)
                if record is None:
                    raise NotFoundError("Timesheet not found")
                needed = scope(record, tx.running_for)
                if needed <= locked:
                    return apply(tx, record)
                locked |= needed

            logger.info("timer_lock_scope_changed", timesheet_id=timesheet_id)
        raise ConflictError()

    @staticmethod
    def _require_participant(record: TaskTimerRecord, actor_id: int) -> None:
        if not record.involves(actor_id):
            raise AuthorizationError("You are not part of this timesheet")

    @staticmethod
    def _require_owner(record: TaskTimerRecord, actor_id: int) -> None:
        if record.owner_id != int(actor_id):
            raise AuthorizationError("Only the owner can change this timesheet")

    def _audit_event(
        self,
        action: AuditAction,
        *,
        actor_id: int,
        record: TaskTimerRecord,
        now: datetime,
        details: dict | None = None,
    ) -> None:
        emit(
            self._audit,
            AuditEvent(
                actor_id=int(actor_id),
                action=action,
                module="timesheets",
                target_id=record.timesheet_id,
                target_model="Timesheet",
                created_at=now,
                details=details or {},
            ),
        )
