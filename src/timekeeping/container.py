from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.memory_attendance_repository import InMemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_sink import MySQLAuditSink
from .audit.sink import AuditSink, InMemoryAuditSink
from .capture.builder import CaptureBuilder
from .capture.media import LocalMediaStore, MediaStore
from .core.constants import DEFAULT_GEOFENCE_CACHE_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .geofence.memory_geofence_repository import InMemoryGeofenceRepository
from .geofence.mysql_geofence_repository import MySQLGeofenceRepository
from .geofence.repository import GeofenceRepository
from .geofence.service import GeofenceService
from .organizations.memory_organization_repository import InMemoryOrganizationRepository
from .organizations.mysql_organization_repository import MySQLOrganizationRepository
from .organizations.repository import OrganizationRepository
from .timesheets.aggregator import TimesheetAggregator
from .timesheets.memory_timesheet_repository import InMemoryTimesheetRepository
from .timesheets.mysql_timesheet_repository import MySQLTimesheetRepository
from .timesheets.repository import TimesheetRepository
from .timesheets.service import TimesheetService
from .users.memory_user_repository import InMemoryEmployeeDirectory
from .users.mysql_user_repository import MySQLEmployeeDirectory
from .users.repository import EmployeeDirectory

BACKENDS = ("mysql", "memory")


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    organizations_repo: OrganizationRepository
    employees_repo: EmployeeDirectory
    geofence_repo: GeofenceRepository
    attendance_repo: AttendanceRepository
    timesheets_repo: TimesheetRepository
    audit_sink: AuditSink
    media_store: MediaStore

    geofence_service: GeofenceService
    capture_builder: CaptureBuilder
    attendance_service: AttendanceService
    timesheet_service: TimesheetService
    timesheet_aggregator: TimesheetAggregator


def build_container(
    *,
    db_config: dict | None = None,
    backend: str = "mysql",
    media_root: str = "media",
    media_base_url: str = "/media",
    geofence_cache_seconds: float = DEFAULT_GEOFENCE_CACHE_SECONDS,
) -> Container:
    if backend not in BACKENDS:
        raise ValueError(f"Unknown storage backend {backend!r}; expected one of {BACKENDS}")

    conn: Optional[DatabaseConnection] = None
    if backend == "mysql":
        if db_config is None:
            raise ValueError("db_config is required for the mysql backend")
        conn = DatabaseConnection(DBConfig.from_dict(db_config))
        organizations_repo = MySQLOrganizationRepository(conn)
        employees_repo = MySQLEmployeeDirectory(conn)
        geofence_repo = MySQLGeofenceRepository(conn)
        attendance_repo = MySQLAttendanceRepository(conn)
        timesheets_repo = MySQLTimesheetRepository(conn)
        audit_sink = MySQLAuditSink(conn)
    else:
        organizations_repo = InMemoryOrganizationRepository()
        employees_repo = InMemoryEmployeeDirectory()
        geofence_repo = InMemoryGeofenceRepository()
        attendance_repo = InMemoryAttendanceRepository()
        timesheets_repo = InMemoryTimesheetRepository()
        audit_sink = InMemoryAuditSink()

    media_store = LocalMediaStore(media_root, base_url=media_base_url)

    geofence_service = GeofenceService(geofence_repo, audit=audit_sink, cache_seconds=geofence_cache_seconds)
    capture_builder = CaptureBuilder(geofence_service, media_store)
    attendance_service = AttendanceService(
        attendance_repo,
        organizations_repo,
        employees_repo,
        capture_builder,
        audit=audit_sink,
        strategy_factory=AttendanceStrategyFactory(),
    )
    timesheet_service = TimesheetService(timesheets_repo, audit=audit_sink)
    timesheet_aggregator = TimesheetAggregator(timesheets_repo)

    return Container(
        conn=conn,
        organizations_repo=organizations_repo,
        employees_repo=employees_repo,
        geofence_repo=geofence_repo,
        attendance_repo=attendance_repo,
        timesheets_repo=timesheets_repo,
        audit_sink=audit_sink,
        media_store=media_store,
        geofence_service=geofence_service,
        capture_builder=capture_builder,
        attendance_service=attendance_service,
        timesheet_service=timesheet_service,
        timesheet_aggregator=timesheet_aggregator,
    )
