from __future__ import annotations

from typing import Optional, Protocol

from .model import GeofenceBoundary


class GeofenceRepository(Protocol):
    def get_for_organization(self, organization_id: int) -> Optional[GeofenceBoundary]:
        raise NotImplementedError

    def upsert(self, boundary: GeofenceBoundary) -> GeofenceBoundary:
        raise NotImplementedError
