from __future__ import annotations

from typing import Iterable, Optional

from .model import GeofenceBoundary
from .repository import GeofenceRepository


class InMemoryGeofenceRepository(GeofenceRepository):
    def __init__(self, boundaries: Iterable[GeofenceBoundary] = ()):
        self._by_org = {b.organization_id: b for b in boundaries}

    def get_for_organization(self, organization_id: int) -> Optional[GeofenceBoundary]:
        return self._by_org.get(int(organization_id))

    def upsert(self, boundary: GeofenceBoundary) -> GeofenceBoundary:
        self._by_org[boundary.organization_id] = boundary
        return boundary
