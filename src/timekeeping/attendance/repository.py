from __future__ import annotations

from datetime import date
from typing import ContextManager, Optional, Protocol, Sequence

from .model import AttendanceDayRecord


class AttendanceDayTransaction(Protocol):
    """Atomic section over one (user, day) slot.

    ``record`` is the state read under the lock; ``save`` stages an insert or
    update that becomes visible only when the section exits without error.
    """

    record: Optional[AttendanceDayRecord]

    def save(self, record: AttendanceDayRecord) -> AttendanceDayRecord:
        raise NotImplementedError


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceDayRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceDayRecord]:
        raise NotImplementedError

    def day_transaction(self, user_id: int, work_date: date) -> ContextManager[AttendanceDayTransaction]:
        raise NotImplementedError

    def list_for_date(self, organization_id: int, work_date: date) -> Sequence[AttendanceDayRecord]:
        raise NotImplementedError

    def list_for_range(self, organization_id: int, start: date, end: date) -> Sequence[AttendanceDayRecord]:
        raise NotImplementedError

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
        """Newest first."""

        raise NotImplementedError

    def count_history(
        self,
        organization_id: int,
        *,
        user_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> int:
        raise NotImplementedError

    def list_open_for_date(self, organization_id: int, work_date: date) -> Sequence[AttendanceDayRecord]:
        """Records of the day with a clock-in but no clock-out."""

        raise NotImplementedError
