from __future__ import annotations

from typing import Protocol, Sequence

from .model import AttendanceSettings


class OrganizationRepository(Protocol):
    def get_attendance_settings(self, organization_id: int) -> AttendanceSettings:
        """Settings for an organization; defaults when none were configured."""

        raise NotImplementedError

    def list_active_attendance_settings(self) -> Sequence[AttendanceSettings]:
        raise NotImplementedError
