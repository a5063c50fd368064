from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from ..capture.model import Capture
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceDayRecord:
    """Thực thể miền (domain): Bản ghi chấm công của một nhân viên trong một ngày."""

    user_id: int
    organization_id: int
    work_date: date
    status: AttendanceStatus
    attendance_id: Optional[int] = None
    clock_in: Optional[Capture] = None
    clock_out: Optional[Capture] = None
    total_hours: Optional[float] = None
    notes: str = ""

    @property
    def is_clocked_in(self) -> bool:
        return self.clock_in is not None

    @property
    def is_clocked_out(self) -> bool:
        return self.clock_out is not None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "user_id": self.user_id,
            "organization_id": self.organization_id,
            "date": self.work_date.isoformat(),
            "status": self.status.value,
            "clock_in": self.clock_in.to_dict() if self.clock_in else None,
            "clock_out": self.clock_out.to_dict() if self.clock_out else None,
            "total_hours": self.total_hours,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class ConflictEntry:
    user_id: int
    attendance_id: Optional[int]


@dataclass(frozen=True)
class IpConflict:
    """Nhiều nhân viên chấm công vào ca từ cùng một địa chỉ IP (chỉ mang tính cảnh báo)."""

    ip: str
    entries: tuple[ConflictEntry, ...]

    def to_dict(self) -> dict:
        return {
            "ip": self.ip,
            "users": [{"user_id": e.user_id, "attendance_id": e.attendance_id} for e in self.entries],
        }


@dataclass(frozen=True)
class AttendanceOverview:
    """Read-model: tổng quan chấm công của tổ chức trong một ngày."""

    work_date: date
    records: Sequence[AttendanceDayRecord]
    present_count: int
    late_count: int
    pending_count: int
    ip_conflicts: Sequence[IpConflict] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "records": [r.to_dict() for r in self.records],
            "stats": {
                "present": self.present_count,
                "late": self.late_count,
                "pending": self.pending_count,
            },
            "ip_conflicts": [c.to_dict() for c in self.ip_conflicts],
        }


@dataclass(frozen=True)
class HistoryPage:
    records: Sequence[AttendanceDayRecord]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> dict:
        return {
            "records": [r.to_dict() for r in self.records],
            "total": self.total,
            "page": self.page,
            "total_pages": self.total_pages,
        }


@dataclass(frozen=True)
class DailyAttendanceSummary:
    work_date: date
    total: int
    attended: int

    @property
    def percentage(self) -> int:
        if self.total <= 0:
            return 0
        # half up: 12.5 -> 13
        return (self.attended * 200 + self.total) // (2 * self.total)

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "total": self.total,
            "present": self.attended,
            "percentage": self.percentage,
        }
