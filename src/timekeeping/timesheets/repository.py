from __future__ import annotations

from datetime import date
from typing import ContextManager, Iterable, Optional, Protocol, Sequence

from ..core.enums import TimesheetStatus
from .model import TaskTimerRecord


class TimerTransaction(Protocol):
    """Atomic section holding the timer locks of a set of actors.

    Reads see the state under the lock (including this section's own staged
    writes). Writes become visible only when the section exits without error.
    """

    def get(self, timesheet_id: int) -> Optional[TaskTimerRecord]:
        raise NotImplementedError

    def running_for(self, actor_id: int) -> Sequence[TaskTimerRecord]:
        raise NotImplementedError

    def save(self, record: TaskTimerRecord) -> TaskTimerRecord:
        raise NotImplementedError

    def delete(self, timesheet_id: int) -> None:
        raise NotImplementedError


class TimesheetRepository(Protocol):
    def add(self, record: TaskTimerRecord) -> TaskTimerRecord:
        raise NotImplementedError

    def get(self, timesheet_id: int) -> Optional[TaskTimerRecord]:
        raise NotImplementedError

    def list_running_for(self, actor_id: int) -> Sequence[TaskTimerRecord]:
        raise NotImplementedError

    def list_for_actor(
        self,
        actor_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[TimesheetStatus] = None,
    ) -> Sequence[TaskTimerRecord]:
        """Records the actor owns or collaborates on, newest date first."""

        raise NotImplementedError

    def timer_transaction(self, actor_ids: Iterable[int]) -> ContextManager[TimerTransaction]:
        raise NotImplementedError
