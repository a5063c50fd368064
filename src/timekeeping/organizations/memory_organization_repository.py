from __future__ import annotations

from typing import Iterable, Sequence

from .model import AttendanceSettings
from .repository import OrganizationRepository


class InMemoryOrganizationRepository(OrganizationRepository):
    def __init__(self, settings: Iterable[AttendanceSettings] = ()):
        self._settings = {s.organization_id: s for s in settings}

    def put(self, settings: AttendanceSettings) -> None:
        self._settings[settings.organization_id] = settings

    def get_attendance_settings(self, organization_id: int) -> AttendanceSettings:
        return self._settings.get(int(organization_id)) or AttendanceSettings(organization_id=int(organization_id))

    def list_active_attendance_settings(self) -> Sequence[AttendanceSettings]:
        return [s for _, s in sorted(self._settings.items()) if s.is_active]
