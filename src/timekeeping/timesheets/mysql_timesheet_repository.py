from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Iterable, Iterator, Optional, Sequence

from ..core.enums import TimesheetStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, lock_keys
from .model import TaskTimerRecord, TimerLogEntry
from .repository import TimerTransaction, TimesheetRepository

_COLUMNS = (
    "timesheet_id, user_id, organization_id, project_id, work_date, task, description, collaborators, "
    "estimated_hours, billable, status, is_running, start_time, total_milliseconds, logs, reviewed_by, review_note"
)

_INVOLVES = "(user_id=%s OR JSON_CONTAINS(COALESCE(collaborators, JSON_ARRAY()), CAST(%s AS JSON)))"


def _row_to_record(r: Dict[str, Any]) -> TaskTimerRecord:
    return TaskTimerRecord(
        timesheet_id=int(r["timesheet_id"]),
        owner_id=int(r["user_id"]),
        organization_id=int(r["organization_id"]),
        project_id=int(r["project_id"]) if r.get("project_id") is not None else None,
        work_date=r["work_date"],
        task=r["task"],
        description=r.get("description") or "",
        collaborators=tuple(int(c) for c in (load_json(r.get("collaborators")) or [])),
        estimated_hours=float(r.get("estimated_hours") or 0),
        billable=bool(r["billable"]),
        status=TimesheetStatus(r["status"]),
        is_running=bool(r["is_running"]),
        start_time=r.get("start_time"),
        total_milliseconds=int(r["total_milliseconds"] or 0),
        logs=tuple(TimerLogEntry.from_dict(e) for e in (load_json(r.get("logs")) or [])),
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        review_note=r.get("review_note") or "",
    )


def _record_params(record: TaskTimerRecord) -> tuple:
    return (
        record.owner_id,
        record.organization_id,
        record.project_id,
        record.work_date,
        record.task,
        record.description,
        dump_json(list(record.collaborators)),
        record.estimated_hours,
        int(record.billable),
        record.status.value,
        int(record.is_running),
        record.start_time,
        int(record.total_milliseconds),
        dump_json([e.to_dict() for e in record.logs]),
        record.reviewed_by,
        record.review_note,
    )


class _MySQLTimerTransaction(TimerTransaction):
    def __init__(self, cur):
        self._cur = cur

    def get(self, timesheet_id: int) -> Optional[TaskTimerRecord]:
        self._cur.execute(f"SELECT {_COLUMNS} FROM timesheets WHERE timesheet_id=%s FOR UPDATE", (int(timesheet_id),))
        r = fetchone(self._cur)
        return _row_to_record(r) if r else None

    def running_for(self, actor_id: int) -> Sequence[TaskTimerRecord]:
        self._cur.execute(
            f"SELECT {_COLUMNS} FROM timesheets WHERE is_running=1 AND {_INVOLVES} ORDER BY timesheet_id FOR UPDATE",
            (int(actor_id), str(int(actor_id))),
        )
        return [_row_to_record(r) for r in fetchall(self._cur)]

    def save(self, record: TaskTimerRecord) -> TaskTimerRecord:
        self._cur.execute(
            """
            UPDATE timesheets
            SET user_id=%s, organization_id=%s, project_id=%s, work_date=%s, task=%s, description=%s,
                collaborators=%s, estimated_hours=%s, billable=%s, status=%s, is_running=%s, start_time=%s,
                total_milliseconds=%s, logs=%s, reviewed_by=%s, review_note=%s
            WHERE timesheet_id=%s
            """,
            _record_params(record) + (record.timesheet_id,),
        )
        return record

    def delete(self, timesheet_id: int) -> None:
        self._cur.execute("DELETE FROM timesheets WHERE timesheet_id=%s", (int(timesheet_id),))


class MySQLTimesheetRepository(TimesheetRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(self, record: TaskTimerRecord) -> TaskTimerRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO timesheets(user_id, organization_id, project_id, work_date, task, description,
                                       collaborators, estimated_hours, billable, status, is_running, start_time,
                                       total_milliseconds, logs, reviewed_by, review_note)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _record_params(record),
            )
            return replace(record, timesheet_id=int(cur.lastrowid))

    def get(self, timesheet_id: int) -> Optional[TaskTimerRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM timesheets WHERE timesheet_id=%s", (int(timesheet_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_running_for(self, actor_id: int) -> Sequence[TaskTimerRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM timesheets WHERE is_running=1 AND {_INVOLVES} ORDER BY timesheet_id",
                (int(actor_id), str(int(actor_id))),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_actor(
        self,
        actor_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[TimesheetStatus] = None,
    ) -> Sequence[TaskTimerRecord]:
        clauses = [_INVOLVES]
        params: list[object] = [int(actor_id), str(int(actor_id))]
        if start is not None:
            clauses.append("work_date>=%s")
            params.append(start)
        if end is not None:
            clauses.append("work_date<=%s")
            params.append(end)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM timesheets WHERE {where} ORDER BY work_date DESC, timesheet_id DESC",
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    @contextmanager
    def timer_transaction(self, actor_ids: Iterable[int]) -> Iterator[TimerTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            lock_keys(cur, [f"timer:{int(a)}" for a in actor_ids])
            yield _MySQLTimerTransaction(cur)
