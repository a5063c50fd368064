from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from ..common.datetime_utils import parse_clock_time
from ..core.constants import (
    DEFAULT_AUTO_LOGOUT_OFFSET_HOURS,
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_OFFICE_END,
    DEFAULT_OFFICE_START,
)


@dataclass(frozen=True)
class AttendanceSettings:
    """Cấu hình chấm công của một tổ chức (organization)."""

    organization_id: int
    start_time: time = parse_clock_time(DEFAULT_OFFICE_START)
    end_time: time = parse_clock_time(DEFAULT_OFFICE_END)
    late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES
    auto_logout_offset_hours: int = DEFAULT_AUTO_LOGOUT_OFFSET_HOURS
    is_active: bool = True

    def late_cutoff_on(self, day: date) -> datetime:
        """Clock-ins after this instant are classified as late."""
        return datetime.combine(day, self.start_time) + timedelta(minutes=self.late_grace_minutes)

    @property
    def auto_logout_hour(self) -> int:
        return self.end_time.hour + self.auto_logout_offset_hours
