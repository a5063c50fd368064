from __future__ import annotations

import base64
import io
from datetime import datetime

import pytest
from PIL import Image

from timekeeping.attendance.memory_attendance_repository import InMemoryAttendanceRepository
from timekeeping.attendance.service import AttendanceService
from timekeeping.audit.sink import InMemoryAuditSink
from timekeeping.capture.builder import CaptureBuilder
from timekeeping.capture.media import LocalMediaStore
from timekeeping.geofence.memory_geofence_repository import InMemoryGeofenceRepository
from timekeeping.geofence.model import GeofenceBoundary
from timekeeping.geofence.service import GeofenceService
from timekeeping.organizations.memory_organization_repository import InMemoryOrganizationRepository
from timekeeping.organizations.model import AttendanceSettings
from timekeeping.timesheets.aggregator import TimesheetAggregator
from timekeeping.timesheets.memory_timesheet_repository import InMemoryTimesheetRepository
from timekeeping.timesheets.service import TimesheetService
from timekeeping.users.memory_user_repository import InMemoryEmployeeDirectory

ORG_ID = 1


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 3, 9, 0, 0)


@pytest.fixture
def png_data_url() -> str:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


@pytest.fixture
def audit() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def office() -> GeofenceBoundary:
    return GeofenceBoundary(organization_id=ORG_ID, lat=0.0, lng=0.0, radius_meters=200)


@pytest.fixture
def geofence_service(office, audit) -> GeofenceService:
    return GeofenceService(InMemoryGeofenceRepository([office]), audit=audit, cache_seconds=0)


@pytest.fixture
def media_store(tmp_path) -> LocalMediaStore:
    return LocalMediaStore(tmp_path / "media", base_url="/media")


@pytest.fixture
def organizations() -> InMemoryOrganizationRepository:
    return InMemoryOrganizationRepository([AttendanceSettings(organization_id=ORG_ID)])


@pytest.fixture
def employees() -> InMemoryEmployeeDirectory:
    return InMemoryEmployeeDirectory()


@pytest.fixture
def attendance_repo() -> InMemoryAttendanceRepository:
    return InMemoryAttendanceRepository()


@pytest.fixture
def attendance_service(attendance_repo, organizations, employees, geofence_service, media_store, audit) -> AttendanceService:
    return AttendanceService(
        attendance_repo,
        organizations,
        employees,
        CaptureBuilder(geofence_service, media_store),
        audit=audit,
    )


@pytest.fixture
def timesheets_repo() -> InMemoryTimesheetRepository:
    return InMemoryTimesheetRepository()


@pytest.fixture
def timesheet_service(timesheets_repo, audit) -> TimesheetService:
    return TimesheetService(timesheets_repo, audit=audit)


@pytest.fixture
def aggregator(timesheets_repo) -> TimesheetAggregator:
    return TimesheetAggregator(timesheets_repo)
