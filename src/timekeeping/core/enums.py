from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Vai trò người dùng dùng cho phân quyền."""

    EMPLOYEE = "employee"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @property
    def is_admin(self) -> bool:
        return self in {Role.ADMIN, Role.SUPERADMIN}


class AttendanceStatus(str, Enum):
    """Trạng thái chấm công trong ngày."""

    PENDING = "pending"
    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"

    @property
    def attended(self) -> bool:
        return self in {AttendanceStatus.PRESENT, AttendanceStatus.LATE}


class TimesheetStatus(str, Enum):
    """Trạng thái của một bản ghi timesheet (task timer)."""

    DRAFT = "draft"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"


class TimerAction(str, Enum):
    """Closed set of events recorded in a timesheet's log."""

    CREATED = "CREATED"
    STARTED = "STARTED"
    STOPPED = "STOPPED"
    AUTO_STOPPED = "AUTO_STOPPED"
    SUBMITTED = "SUBMITTED"
    REVIEWED = "REVIEWED"


class AuditAction(str, Enum):
    CLOCK_IN = "CLOCK_IN"
    CLOCK_OUT = "CLOCK_OUT"
    APPROVE_ATTENDANCE = "APPROVE_ATTENDANCE"
    AUTO_CLOCK_OUT = "AUTO_CLOCK_OUT"
    MARK_ABSENT = "MARK_ABSENT"
    CREATE_TIMESHEET = "CREATE_TIMESHEET"
    UPDATE_TIMESHEET = "UPDATE_TIMESHEET"
    START_TIMER = "START_TIMER"
    STOP_TIMER = "STOP_TIMER"
    AUTO_STOP_TIMER = "AUTO_STOP_TIMER"
    SUBMIT_TIMESHEET = "SUBMIT_TIMESHEET"
    REVIEW_TIMESHEET = "REVIEW_TIMESHEET"
    DELETE_TIMESHEET = "DELETE_TIMESHEET"
    UPDATE_GEOFENCE = "UPDATE_GEOFENCE"
