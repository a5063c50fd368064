from __future__ import annotations

from typing import Any, Dict, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_clock_time
from .model import AttendanceSettings
from .repository import OrganizationRepository

_COLUMNS = "organization_id, start_time, end_time, late_grace_minutes, auto_logout_offset_hours, is_active"


def _row_to_settings(r: Dict[str, Any]) -> AttendanceSettings:
    return AttendanceSettings(
        organization_id=int(r["organization_id"]),
        start_time=to_clock_time(r["start_time"]),
        end_time=to_clock_time(r["end_time"]),
        late_grace_minutes=int(r["late_grace_minutes"]),
        auto_logout_offset_hours=int(r["auto_logout_offset_hours"]),
        is_active=bool(r["is_active"]),
    )


class MySQLOrganizationRepository(OrganizationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_attendance_settings(self, organization_id: int) -> AttendanceSettings:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_settings WHERE organization_id=%s",
                (int(organization_id),),
            )
            r = fetchone(cur)
            if not r:
                return AttendanceSettings(organization_id=int(organization_id))
            return _row_to_settings(r)

    def list_active_attendance_settings(self) -> Sequence[AttendanceSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_settings WHERE is_active=1 ORDER BY organization_id")
            return [_row_to_settings(r) for r in fetchall(cur)]
