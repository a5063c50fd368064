from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Optional

import structlog

from ..audit.model import AuditEvent
from ..audit.sink import AuditSink, emit
from ..capture.builder import CaptureBuilder
from ..capture.model import Capture, CaptureInput, RequestMeta
from ..common.datetime_utils import month_bounds, worked_hours
from ..core.constants import (
    AUTO_ABSENT_NOTE,
    AUTO_LOGOUT_NOTE,
    DEFAULT_HISTORY_LIMIT,
    SYSTEM_DEVICE,
    WEEKLY_SUMMARY_DAYS,
)
from ..core.enums import AttendanceStatus, AuditAction, Role
from ..core.exceptions import (
    AlreadyClockedIn,
    AlreadyClockedOut,
    AuthorizationError,
    InvalidTransition,
    NotClockedIn,
    NotFoundError,
    ValidationError,
)
from ..organizations.repository import OrganizationRepository
from ..users.repository import EmployeeDirectory
from .conflicts import detect_ip_conflicts
from .factory import AttendanceStrategyFactory
from .model import AttendanceDayRecord, AttendanceOverview, DailyAttendanceSummary, HistoryPage
from .repository import AttendanceRepository

logger = structlog.get_logger(__name__)


def _require_admin(role: Role) -> None:
    if not role.is_admin:
        raise AuthorizationError()


class AttendanceService:
    """Per (employee, day) state machine: Unmarked -> ClockedIn -> ClockedOut.

    Guards are checked once before the capture is built (so a rejected call
    never uploads a photo) and again inside the per-day atomic section, which
    is what actually linearizes concurrent requests.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        organizations: OrganizationRepository,
        employees: EmployeeDirectory,
        captures: CaptureBuilder,
        *,
        audit: AuditSink,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._organizations = organizations
        self._employees = employees
        self._captures = captures
        self._audit = audit
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def clock_in(
        self,
        *,
        user_id: int,
        organization_id: int,
        data: CaptureInput,
        meta: RequestMeta,
        now: datetime | None = None,
    ) -> AttendanceDayRecord:
        now = now or datetime.now()
        today = now.date()

        existing = self._attendance.get_for_user_and_date(user_id, today)
        if existing and existing.is_clocked_in:
            raise AlreadyClockedIn()

        capture = self._captures.build(organization_id=organization_id, data=data, meta=meta, now=now)
        try:
            settings = self._organizations.get_attendance_settings(organization_id)
            strategy = self._factory.for_clock_in(now=now, within_geofence=capture.within_geofence, settings=settings)
            decision = strategy.decide_clock_in(now=now, capture=capture, settings=settings)

            with self._attendance.day_transaction(user_id, today) as tx:
                current = tx.record
                if current is None:
                    record = AttendanceDayRecord(
                        user_id=int(user_id),
                        organization_id=int(organization_id),
                        work_date=today,
                        status=decision.status,
                        clock_in=capture,
                    )
                elif current.is_clocked_in:
                    raise AlreadyClockedIn()
                else:
                    # A sweep-created absent record is upgraded in place.
                    record = replace(current, clock_in=capture, status=decision.status)
                saved = tx.save(record)
        except Exception:
            # the rejected capture's photo must not outlive the call
            self._captures.discard(capture)
            raise

        logger.info(
            "clock_in",
            user_id=saved.user_id,
            attendance_id=saved.attendance_id,
            status=saved.status.value,
            within_geofence=capture.within_geofence,
        )
        self._audit_event(
            AuditAction.CLOCK_IN,
            actor_id=user_id,
            record=saved,
            now=now,
            meta=meta,
            details={"status": saved.status.value, "within_geofence": capture.within_geofence},
        )
        return saved

    def clock_out(
        self,
        *,
        user_id: int,
        organization_id: int,
        data: CaptureInput,
        meta: RequestMeta,
        now: datetime | None = None,
    ) -> AttendanceDayRecord:
        now = now or datetime.now()
        today = now.date()

        existing = self._attendance.get_for_user_and_date(user_id, today)
        self._guard_clock_out(existing)

        capture = self._captures.build(organization_id=organization_id, data=data, meta=meta, now=now)

        try:
            with self._attendance.day_transaction(user_id, today) as tx:
                current = tx.record
                self._guard_clock_out(current)
                saved = tx.save(self._closed(current, capture))
        except Exception:
            self._captures.discard(capture)
            raise

        logger.info("clock_out", user_id=saved.user_id, attendance_id=saved.attendance_id, total_hours=saved.total_hours)
        self._audit_event(
            AuditAction.CLOCK_OUT,
            actor_id=user_id,
            record=saved,
            now=now,
            meta=meta,
            details={"total_hours": saved.total_hours},
        )
        return saved

    @staticmethod
    def _guard_clock_out(record: Optional[AttendanceDayRecord]) -> None:
        if record is None or not record.is_clocked_in:
            raise NotClockedIn()
        if record.is_clocked_out:
            raise AlreadyClockedOut()

    @staticmethod
    def _closed(record: AttendanceDayRecord, capture: Capture, *, notes: Optional[str] = None) -> AttendanceDayRecord:
        return replace(
            record,
            clock_out=capture,
            total_hours=worked_hours(record.clock_in.timestamp, capture.timestamp),
            notes=record.notes if notes is None else notes,
        )

    def approve(
        self,
        *,
        current_role: Role,
        actor_id: int,
        organization_id: int,
        attendance_id: int,
        meta: RequestMeta | None = None,
        now: datetime | None = None,
    ) -> AttendanceDayRecord:
        _require_admin(current_role)
        now = now or datetime.now()

        record = self._attendance.get_by_id(attendance_id)
        if record is None or record.organization_id != int(organization_id):
            raise NotFoundError("Attendance record not found")

        with self._attendance.day_transaction(record.user_id, record.work_date) as tx:
            current = tx.record
            if current is None or current.attendance_id != record.attendance_id:
                raise NotFoundError("Attendance record not found")
            if current.status != AttendanceStatus.PENDING:
                raise InvalidTransition(f"Only pending records can be approved (status is {current.status.value})")
            saved = tx.save(replace(current, status=AttendanceStatus.PRESENT))

        logger.info("attendance_approved", attendance_id=saved.attendance_id, approved_by=actor_id)
        self._audit_event(AuditAction.APPROVE_ATTENDANCE, actor_id=actor_id, record=saved, now=now, meta=meta)
        return saved

    def get_today(self, user_id: int, *, now: datetime | None = None) -> Optional[AttendanceDayRecord]:
        now = now or datetime.now()
        return self._attendance.get_for_user_and_date(user_id, now.date())

    def get_history(
        self,
        *,
        current_role: Role,
        actor_id: int,
        organization_id: int,
        user_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        page: int = 1,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> HistoryPage:
        if not current_role.is_admin:
            if user_id is not None and int(user_id) != int(actor_id):
                raise AuthorizationError("You can only view your own attendance history")
            user_id = actor_id

        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")

        start = end = None
        if month is not None or year is not None:
            if month is None or year is None:
                raise ValidationError("month and year must be given together")
            if not 1 <= int(month) <= 12:
                raise ValidationError("month must be between 1 and 12")
            start, end = month_bounds(int(year), int(month))

        records = self._attendance.list_history(
            organization_id,
            user_id=user_id,
            start=start,
            end=end,
            offset=(page - 1) * limit,
            limit=limit,
        )
        total = self._attendance.count_history(organization_id, user_id=user_id, start=start, end=end)
        return HistoryPage(records=list(records), total=total, page=page, limit=limit)

    def get_overview(self, *, current_role: Role, organization_id: int, work_date: date) -> AttendanceOverview:
        _require_admin(current_role)
        records = list(self._attendance.list_for_date(organization_id, work_date))
        return AttendanceOverview(
            work_date=work_date,
            records=records,
            present_count=sum(1 for r in records if r.status.attended),
            late_count=sum(1 for r in records if r.status == AttendanceStatus.LATE),
            pending_count=sum(1 for r in records if r.status == AttendanceStatus.PENDING),
            ip_conflicts=detect_ip_conflicts(records),
        )

    def get_weekly_summary(
        self,
        *,
        current_role: Role,
        organization_id: int,
        today: date | None = None,
    ) -> list[DailyAttendanceSummary]:
        _require_admin(current_role)
        today = today or date.today()
        days = [today - timedelta(days=offset) for offset in range(WEEKLY_SUMMARY_DAYS - 1, -1, -1)]

        totals = {d: 0 for d in days}
        attended = {d: 0 for d in days}
        for r in self._attendance.list_for_range(organization_id, days[0], days[-1]):
            totals[r.work_date] += 1
            if r.status.attended:
                attended[r.work_date] += 1
        return [DailyAttendanceSummary(work_date=d, total=totals[d], attended=attended[d]) for d in days]

    # ----- scheduled sweeps -----

    def auto_clock_out(self, *, now: datetime | None = None) -> list[AttendanceDayRecord]:
        """Close every open record of today once the organization's logout hour has passed."""
        now = now or datetime.now()
        today = now.date()
        closed: list[AttendanceDayRecord] = []

        for settings in self._organizations.list_active_attendance_settings():
            logout_hour = settings.auto_logout_hour
            if logout_hour > 23 or now.hour < logout_hour:
                continue
            logout_at = datetime.combine(today, time(hour=logout_hour))
            capture = Capture(
                timestamp=logout_at,
                ip="",
                device=SYSTEM_DEVICE,
                user_agent="",
                within_geofence=None,
                face_detected=False,
                address="system auto logout",
            )

            for open_record in self._attendance.list_open_for_date(settings.organization_id, today):
                with self._attendance.day_transaction(open_record.user_id, today) as tx:
                    current = tx.record
                    if current is None or not current.is_clocked_in or current.is_clocked_out:
                        continue
                    notes = f"{current.notes} {AUTO_LOGOUT_NOTE}" if current.notes else AUTO_LOGOUT_NOTE
                    saved = tx.save(self._closed(current, capture, notes=notes))

                closed.append(saved)
                logger.info(
                    "auto_clock_out",
                    organization_id=settings.organization_id,
                    user_id=saved.user_id,
                    total_hours=saved.total_hours,
                )
                self._audit_event(AuditAction.AUTO_CLOCK_OUT, actor_id=None, record=saved, now=now)

        return closed

    def mark_absentees(self, *, now: datetime | None = None) -> list[AttendanceDayRecord]:
        """Create an absent record for every active employee without a record today."""
        now = now or datetime.now()
        today = now.date()
        marked: list[AttendanceDayRecord] = []

        for settings in self._organizations.list_active_attendance_settings():
            for employee in self._employees.list_active_employees(settings.organization_id):
                with self._attendance.day_transaction(employee.user_id, today) as tx:
                    if tx.record is not None:
                        continue
                    saved = tx.save(
                        AttendanceDayRecord(
                            user_id=employee.user_id,
                            organization_id=settings.organization_id,
                            work_date=today,
                            status=AttendanceStatus.ABSENT,
                            notes=AUTO_ABSENT_NOTE,
                        )
                    )

                marked.append(saved)
                logger.info("marked_absent", organization_id=settings.organization_id, user_id=saved.user_id)
                self._audit_event(AuditAction.MARK_ABSENT, actor_id=None, record=saved, now=now)

        return marked

    def _audit_event(
        self,
        action: AuditAction,
        *,
        actor_id: Optional[int],
        record: AttendanceDayRecord,
        now: datetime,
        meta: RequestMeta | None = None,
        details: dict | None = None,
    ) -> None:
        emit(
            self._audit,
            AuditEvent(
                actor_id=int(actor_id) if actor_id is not None else None,
                action=action,
                module="attendance",
                target_id=record.attendance_id,
                target_model="Attendance",
                created_at=now,
                details=details or {},
                ip=meta.ip if meta else "",
                user_agent=meta.user_agent if meta else "",
            ),
        )
