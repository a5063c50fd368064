from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Callable, Iterable, Iterator, Optional, Sequence

from ..common.locks import KeyedLock
from ..core.enums import TimesheetStatus
from .model import TaskTimerRecord
from .repository import TimerTransaction, TimesheetRepository


class _StagedTimerTransaction(TimerTransaction):
    def __init__(self, repo: "InMemoryTimesheetRepository"):
        self._repo = repo
        # None marks a staged delete.
        self.staged: dict[int, Optional[TaskTimerRecord]] = {}

    def get(self, timesheet_id: int) -> Optional[TaskTimerRecord]:
        if int(timesheet_id) in self.staged:
            return self.staged[int(timesheet_id)]
        return self._repo.get(timesheet_id)

    def running_for(self, actor_id: int) -> Sequence[TaskTimerRecord]:
        current = {r.timesheet_id: r for r in self._repo.list_running_for(actor_id)}
        for timesheet_id, record in self.staged.items():
            if record is None:
                current.pop(timesheet_id, None)
            else:
                current[timesheet_id] = record
        return [r for _, r in sorted(current.items()) if r.is_running and r.involves(actor_id)]

    def save(self, record: TaskTimerRecord) -> TaskTimerRecord:
        if record.timesheet_id is None:
            raise ValueError("Timer transactions only update existing timesheets")
        self.staged[record.timesheet_id] = record
        return record

    def delete(self, timesheet_id: int) -> None:
        self.staged[int(timesheet_id)] = None


class InMemoryTimesheetRepository(TimesheetRepository):
    """Process-local store; timer sections are serialized per actor with a KeyedLock."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks = KeyedLock()
        self._ids = itertools.count(1)
        self._records: dict[int, TaskTimerRecord] = {}

    def _select(self, predicate: Callable[[TaskTimerRecord], bool]) -> list[TaskTimerRecord]:
        with self._guard:
            return [r for _, r in sorted(self._records.items()) if predicate(r)]

    def add(self, record: TaskTimerRecord) -> TaskTimerRecord:
        with self._guard:
            saved = replace(record, timesheet_id=next(self._ids))
            self._records[saved.timesheet_id] = saved
            return saved

    def get(self, timesheet_id: int) -> Optional[TaskTimerRecord]:
        with self._guard:
            return self._records.get(int(timesheet_id))

    def list_running_for(self, actor_id: int) -> Sequence[TaskTimerRecord]:
        return self._select(lambda r: r.is_running and r.involves(actor_id))

    def list_for_actor(
        self,
        actor_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[TimesheetStatus] = None,
    ) -> Sequence[TaskTimerRecord]:
        def matches(r: TaskTimerRecord) -> bool:
            if not r.involves(actor_id):
                return False
            if start is not None and r.work_date < start:
                return False
            if end is not None and r.work_date > end:
                return False
            return status is None or r.status == status

        rows = self._select(matches)
        return sorted(rows, key=lambda r: (r.work_date, r.timesheet_id), reverse=True)

    @contextmanager
    def timer_transaction(self, actor_ids: Iterable[int]) -> Iterator[TimerTransaction]:
        with self._locks.hold(*(("timer", int(a)) for a in actor_ids)):
            tx = _StagedTimerTransaction(self)
            yield tx
            with self._guard:
                for timesheet_id, record in tx.staged.items():
                    if record is None:
                        self._records.pop(timesheet_id, None)
                    else:
                        self._records[timesheet_id] = record
