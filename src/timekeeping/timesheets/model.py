from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import elapsed_milliseconds
from ..core.enums import TimerAction, TimesheetStatus

MILLISECONDS_PER_HOUR = 3_600_000


@dataclass(frozen=True)
class TimerLogEntry:
    action: TimerAction
    timestamp: datetime
    actor_id: int
    note: str = ""

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat(),
            "user_id": self.actor_id,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimerLogEntry":
        return cls(
            action=TimerAction(data["action"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            actor_id=int(data["user_id"]),
            note=data.get("note") or "",
        )


@dataclass(frozen=True)
class TaskTimerRecord:
    """Bản ghi timesheet của một đầu việc, kèm đồng hồ bấm giờ.

    ``total_milliseconds`` only grows, and only when a running timer stops;
    while running, the live elapsed time is ``now - start_time`` on top of it.
    """

    owner_id: int
    organization_id: int
    work_date: date
    task: str
    timesheet_id: Optional[int] = None
    description: str = ""
    project_id: Optional[int] = None
    collaborators: tuple[int, ...] = ()
    estimated_hours: float = 0.0
    billable: bool = True
    status: TimesheetStatus = TimesheetStatus.DRAFT
    is_running: bool = False
    start_time: Optional[datetime] = None
    total_milliseconds: int = 0
    logs: tuple[TimerLogEntry, ...] = ()
    reviewed_by: Optional[int] = None
    review_note: str = ""

    @property
    def participants(self) -> tuple[int, ...]:
        return (self.owner_id,) + tuple(c for c in self.collaborators if c != self.owner_id)

    def involves(self, actor_id: int) -> bool:
        return int(actor_id) in self.participants

    def live_milliseconds(self, now: datetime) -> int:
        if self.is_running and self.start_time is not None:
            return self.total_milliseconds + elapsed_milliseconds(self.start_time, now)
        return self.total_milliseconds

    def with_log(self, action: TimerAction, *, now: datetime, actor_id: int, note: str = "") -> "TaskTimerRecord":
        entry = TimerLogEntry(action=action, timestamp=now, actor_id=int(actor_id), note=note)
        return replace(self, logs=self.logs + (entry,))

    def started(self, *, now: datetime, actor_id: int) -> "TaskTimerRecord":
        return replace(
            self,
            is_running=True,
            start_time=now,
            status=TimesheetStatus.IN_PROGRESS,
        ).with_log(TimerAction.STARTED, now=now, actor_id=actor_id)

    def stopped(
        self,
        *,
        now: datetime,
        actor_id: int,
        action: TimerAction = TimerAction.STOPPED,
        note: str = "",
    ) -> "TaskTimerRecord":
        return replace(
            self,
            is_running=False,
            start_time=None,
            total_milliseconds=self.live_milliseconds(now),
        ).with_log(action, now=now, actor_id=actor_id, note=note)

    def to_dict(self, *, now: Optional[datetime] = None) -> dict:
        data = {
            "id": self.timesheet_id,
            "user_id": self.owner_id,
            "organization_id": self.organization_id,
            "project_id": self.project_id,
            "date": self.work_date.isoformat(),
            "task": self.task,
            "description": self.description,
            "collaborators": list(self.collaborators),
            "estimated_hours": self.estimated_hours,
            "billable": self.billable,
            "status": self.status.value,
            "is_running": self.is_running,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "total_milliseconds": self.total_milliseconds,
            "hours_worked": round(self.total_milliseconds / MILLISECONDS_PER_HOUR, 2),
            "logs": [e.to_dict() for e in self.logs],
            "reviewed_by": self.reviewed_by,
            "review_note": self.review_note,
        }
        if now is not None:
            data["live_milliseconds"] = self.live_milliseconds(now)
        return data
