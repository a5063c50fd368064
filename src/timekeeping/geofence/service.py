from __future__ import annotations

import threading
import time
from datetime import datetime
from typing import Any, Callable, Optional

import structlog

from ..audit.model import AuditEvent
from ..audit.sink import AuditSink, emit
from ..common.validators import require_non_empty, require_number_in_range
from ..core.constants import (
    DEFAULT_GEOFENCE_CACHE_SECONDS,
    GEOFENCE_MAX_RADIUS_METERS,
    GEOFENCE_MIN_RADIUS_METERS,
)
from ..core.enums import AuditAction, Role
from ..core.exceptions import AuthorizationError
from .evaluator import evaluate
from .model import GeofenceBoundary
from .repository import GeofenceRepository

logger = structlog.get_logger(__name__)


class GeofenceService:
    """Organization boundary lookup (cached per organization) and admin updates."""

    def __init__(
        self,
        boundaries: GeofenceRepository,
        *,
        audit: AuditSink,
        cache_seconds: float = DEFAULT_GEOFENCE_CACHE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._boundaries = boundaries
        self._audit = audit
        self._cache_seconds = float(cache_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        # Missing boundaries are cached as None too.
        self._cache: dict[int, tuple[float, Optional[GeofenceBoundary]]] = {}

    def get_boundary(self, organization_id: int) -> Optional[GeofenceBoundary]:
        org_id = int(organization_id)
        now = self._clock()
        with self._lock:
            hit = self._cache.get(org_id)
            if hit and hit[0] > now:
                return hit[1]

        boundary = self._boundaries.get_for_organization(org_id)
        with self._lock:
            self._cache[org_id] = (now + self._cache_seconds, boundary)
        return boundary

    def get_active_boundary(self, organization_id: int) -> Optional[GeofenceBoundary]:
        boundary = self.get_boundary(organization_id)
        if boundary is None or not boundary.is_active:
            return None
        return boundary

    def check(self, organization_id: Optional[int], lat: Any, lng: Any) -> Optional[bool]:
        if organization_id is None:
            return None
        return evaluate(self.get_active_boundary(organization_id), lat, lng)

    def invalidate(self, organization_id: int) -> None:
        with self._lock:
            self._cache.pop(int(organization_id), None)

    def update_boundary(
        self,
        *,
        current_role: Role,
        actor_id: int,
        organization_id: int,
        lat: Any,
        lng: Any,
        radius_meters: Any,
        is_active: bool = True,
        office_name: str = "Head Office",
        now: datetime | None = None,
    ) -> GeofenceBoundary:
        if not current_role.is_admin:
            raise AuthorizationError("Only administrators can change the geofence")

        now = now or datetime.now()
        boundary = GeofenceBoundary(
            organization_id=int(organization_id),
            office_name=require_non_empty(office_name, "Office name"),
            lat=require_number_in_range(lat, "Latitude", -90, 90),
            lng=require_number_in_range(lng, "Longitude", -180, 180),
            radius_meters=require_number_in_range(
                radius_meters, "Radius", GEOFENCE_MIN_RADIUS_METERS, GEOFENCE_MAX_RADIUS_METERS
            ),
            is_active=bool(is_active),
            updated_by=int(actor_id),
            updated_at=now,
        )
        saved = self._boundaries.upsert(boundary)
        self.invalidate(organization_id)

        logger.info(
            "geofence_updated",
            organization_id=saved.organization_id,
            radius_meters=saved.radius_meters,
            is_active=saved.is_active,
        )
        emit(
            self._audit,
            AuditEvent(
                actor_id=int(actor_id),
                action=AuditAction.UPDATE_GEOFENCE,
                module="settings",
                target_id=saved.organization_id,
                target_model="GeofenceSettings",
                created_at=now,
                details={"lat": saved.lat, "lng": saved.lng, "radius_meters": saved.radius_meters},
            ),
        )
        return saved
