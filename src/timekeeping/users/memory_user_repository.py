from __future__ import annotations

from typing import Iterable, Sequence

from ..core.enums import Role
from .model import Employee
from .repository import EmployeeDirectory


class InMemoryEmployeeDirectory(EmployeeDirectory):
    def __init__(self, employees: Iterable[Employee] = ()):
        self._employees = {e.user_id: e for e in employees}

    def put(self, employee: Employee) -> None:
        self._employees[employee.user_id] = employee

    def list_active_employees(self, organization_id: int) -> Sequence[Employee]:
        return [
            e
            for _, e in sorted(self._employees.items())
            if e.organization_id == int(organization_id) and e.is_active and e.role == Role.EMPLOYEE
        ]
