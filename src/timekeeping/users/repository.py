from __future__ import annotations

from typing import Protocol, Sequence

from .model import Employee


class EmployeeDirectory(Protocol):
    def list_active_employees(self, organization_id: int) -> Sequence[Employee]:
        raise NotImplementedError
