from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Iterator, Optional, Sequence

from ..common.locks import KeyedLock
from .model import AttendanceDayRecord
from .repository import AttendanceDayTransaction, AttendanceRepository


class _StagedDayTransaction(AttendanceDayTransaction):
    def __init__(self, record: Optional[AttendanceDayRecord], next_id):
        self.record = record
        self.staged: Optional[AttendanceDayRecord] = None
        self._next_id = next_id

    def save(self, record: AttendanceDayRecord) -> AttendanceDayRecord:
        if record.attendance_id is None:
            record = replace(record, attendance_id=self._next_id())
        self.staged = record
        return record


class InMemoryAttendanceRepository(AttendanceRepository):
    """Process-local store used by the memory backend and tests."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks = KeyedLock()
        self._ids = itertools.count(1)
        self._by_id: dict[int, AttendanceDayRecord] = {}
        self._by_day: dict[tuple[int, date], int] = {}

    def _next_id(self) -> int:
        with self._guard:
            return next(self._ids)

    def _snapshot(self) -> list[AttendanceDayRecord]:
        with self._guard:
            return list(self._by_id.values())

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceDayRecord]:
        with self._guard:
            return self._by_id.get(int(attendance_id))

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceDayRecord]:
        return self._lookup(user_id, work_date)

    def _lookup(self, user_id: int, work_date: date) -> Optional[AttendanceDayRecord]:
        with self._guard:
            attendance_id = self._by_day.get((int(user_id), work_date))
            return self._by_id.get(attendance_id) if attendance_id is not None else None

    @contextmanager
    def day_transaction(self, user_id: int, work_date: date) -> Iterator[AttendanceDayTransaction]:
        with self._locks.hold(("attendance", int(user_id))):
            tx = _StagedDayTransaction(self._lookup(user_id, work_date), self._next_id)
            yield tx
            if tx.staged is not None:
                with self._guard:
                    self._by_id[tx.staged.attendance_id] = tx.staged
                    self._by_day[(tx.staged.user_id, tx.staged.work_date)] = tx.staged.attendance_id

    def list_for_date(self, organization_id: int, work_date: date) -> Sequence[AttendanceDayRecord]:
        return self.list_for_range(organization_id, work_date, work_date)

    def list_for_range(self, organization_id: int, start: date, end: date) -> Sequence[AttendanceDayRecord]:
        rows = [
            r
            for r in self._snapshot()
            if r.organization_id == int(organization_id) and start <= r.work_date <= end
        ]
        return sorted(rows, key=lambda r: (r.work_date, r.attendance_id))

    def _history(self, organization_id, user_id, start, end) -> list[AttendanceDayRecord]:
        rows = []
        for r in self._snapshot():
            if r.organization_id != int(organization_id):
                continue
            if user_id is not None and r.user_id != int(user_id):
                continue
            if start is not None and r.work_date < start:
                continue
            if end is not None and r.work_date > end:
                continue
            rows.append(r)
        return sorted(rows, key=lambda r: (r.work_date, r.attendance_id), reverse=True)

    def list_history(
        self,
        organization_id: int,
        *,
        user_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> Sequence[AttendanceDayRecord]:
        rows = self._history(organization_id, user_id, start, end)
        return rows[offset : offset + limit]

    def count_history(
        self,
        organization_id: int,
        *,
        user_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> int:
        return len(self._history(organization_id, user_id, start, end))

    def list_open_for_date(self, organization_id: int, work_date: date) -> Sequence[AttendanceDayRecord]:
        return [r for r in self.list_for_date(organization_id, work_date) if r.is_clocked_in and not r.is_clocked_out]
