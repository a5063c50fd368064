from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Iterator, Optional, Sequence

from ..capture.model import Capture
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, lock_keys
from .model import AttendanceDayRecord
from .repository import AttendanceDayTransaction, AttendanceRepository

_COLUMNS = "attendance_id, user_id, organization_id, work_date, clock_in, clock_out, status, total_hours, notes"


def _row_to_record(r: Dict[str, Any]) -> AttendanceDayRecord:
    clock_in = load_json(r.get("clock_in"))
    clock_out = load_json(r.get("clock_out"))
    total_hours = r.get("total_hours")
    return AttendanceDayRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        organization_id=int(r["organization_id"]),
        work_date=r["work_date"],
        clock_in=Capture.from_dict(clock_in) if clock_in else None,
        clock_out=Capture.from_dict(clock_out) if clock_out else None,
        status=AttendanceStatus(r["status"]),
        total_hours=float(total_hours) if total_hours is not None else None,
        notes=r.get("notes") or "",
    )


def _history_filter(organization_id, user_id, start, end) -> tuple[str, list[object]]:
    clauses = ["organization_id=%s"]
    params: list[object] = [int(organization_id)]
    if user_id is not None:
        clauses.append("user_id=%s")
        params.append(int(user_id))
    if start is not None:
        clauses.append("work_date>=%s")
        params.append(start)
    if end is not None:
        clauses.append("work_date<=%s")
        params.append(end)
    return " AND ".join(clauses), params


class _MySQLDayTransaction(AttendanceDayTransaction):
    def __init__(self, cur, record: Optional[AttendanceDayRecord]):
        self._cur = cur
        self.record = record

    def save(self, record: AttendanceDayRecord) -> AttendanceDayRecord:
        params = (
            dump_json(record.clock_in.to_dict()) if record.clock_in else None,
            dump_json(record.clock_out.to_dict()) if record.clock_out else None,
            record.clock_in.ip if record.clock_in else None,
            record.status.value,
            record.total_hours,
            record.notes,
        )
        if record.attendance_id is not None:
            self._cur.execute(
                """
                UPDATE attendance_records
                SET clock_in=%s, clock_out=%s, clock_in_ip=%s, status=%s, total_hours=%s, notes=%s
                WHERE attendance_id=%s
                """,
                params + (record.attendance_id,),
            )
            return record

        # The unique (user_id, work_date) key is the real one-record-per-day guard.
        self._cur.execute(
            """
            INSERT INTO attendance_records(clock_in, clock_out, clock_in_ip, status, total_hours, notes,
                                           user_id, organization_id, work_date)
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
            ON DUPLICATE KEY UPDATE
                attendance_id=LAST_INSERT_ID(attendance_id),
                clock_in=VALUES(clock_in), clock_out=VALUES(clock_out), clock_in_ip=VALUES(clock_in_ip),
                status=VALUES(status), total_hours=VALUES(total_hours), notes=VALUES(notes)
            """,
            params + (record.user_id, record.organization_id, record.work_date),
        )
        return replace(record, attendance_id=int(self._cur.lastrowid))


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceDayRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceDayRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    @contextmanager
    def day_transaction(self, user_id: int, work_date: date) -> Iterator[AttendanceDayTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            lock_keys(cur, [f"attendance:{int(user_id)}"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s FOR UPDATE",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            yield _MySQLDayTransaction(cur, _row_to_record(r) if r else None)

    def list_for_date(self, organization_id: int, work_date: date) -> Sequence[AttendanceDayRecord]:
        return self.list_for_range(organization_id, work_date, work_date)

    def list_for_range(self, organization_id: int, start: date, end: date) -> Sequence[AttendanceDayRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE organization_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date ASC, attendance_id ASC
                """,
                (int(organization_id), start, end),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

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
        where, params = _history_filter(organization_id, user_id, start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY work_date DESC, attendance_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def count_history(
        self,
        organization_id: int,
        *,
        user_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> int:
        where, params = _history_filter(organization_id, user_id, start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def list_open_for_date(self, organization_id: int, work_date: date) -> Sequence[AttendanceDayRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE organization_id=%s AND work_date=%s AND clock_in IS NOT NULL AND clock_out IS NULL
                ORDER BY attendance_id ASC
                """,
                (int(organization_id), work_date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]
