from __future__ import annotations

from typing import Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Employee
from .repository import EmployeeDirectory


class MySQLEmployeeDirectory(EmployeeDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active_employees(self, organization_id: int) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, organization_id, full_name, role, is_active
                FROM users
                WHERE organization_id=%s AND role=%s AND is_active=1
                ORDER BY user_id
                """,
                (int(organization_id), Role.EMPLOYEE.value),
            )
            return [
                Employee(
                    user_id=int(r["user_id"]),
                    organization_id=int(r["organization_id"]),
                    full_name=r["full_name"],
                    role=Role(r["role"]),
                    is_active=bool(r["is_active"]),
                )
                for r in fetchall(cur)
            ]
