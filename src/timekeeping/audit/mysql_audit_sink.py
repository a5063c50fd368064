from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json
from .model import AuditEvent
from .sink import AuditSink


class MySQLAuditSink(AuditSink):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, event: AuditEvent) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO activity_logs(user_id, action, module, target_id, target_model, details, ip, user_agent, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event.actor_id,
                    event.action.value,
                    event.module,
                    event.target_id,
                    event.target_model,
                    dump_json(dict(event.details)),
                    event.ip or "",
                    (event.user_agent or "")[:255],
                    event.created_at,
                ),
            )
