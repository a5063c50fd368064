from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.constants import UNKNOWN_DEVICE
from ..geofence.evaluator import coerce_coordinate
from ..geofence.service import GeofenceService
from .media import MediaStore
from .model import Capture, CaptureInput, RequestMeta


class CaptureBuilder:
    """Turns a raw submission plus request metadata into an immutable Capture.

    Boundary lookup and photo upload failures propagate; nothing is persisted
    by the builder itself, so the caller's clock action is aborted as a whole.
    """

    def __init__(self, geofence: GeofenceService, media: MediaStore):
        self._geofence = geofence
        self._media = media

    def build(
        self,
        *,
        organization_id: Optional[int],
        data: CaptureInput,
        meta: RequestMeta,
        now: datetime,
    ) -> Capture:
        within_geofence = self._geofence.check(organization_id, data.lat, data.lng)

        photo_url = ""
        photo_public_id = ""
        if data.photo and data.photo.startswith("data:image"):
            stored = self._media.upload_data_url(data.photo)
            photo_url, photo_public_id = stored.url, stored.public_id

        return Capture(
            timestamp=now,
            photo_url=photo_url,
            photo_public_id=photo_public_id,
            lat=coerce_coordinate(data.lat),
            lng=coerce_coordinate(data.lng),
            address=(data.address or "").strip(),
            ip=meta.ip or "",
            device=(data.device or "").strip() or UNKNOWN_DEVICE,
            user_agent=meta.user_agent or "",
            within_geofence=within_geofence,
            face_detected=data.face_detected is not False,
        )

    def discard(self, capture: Capture) -> None:
        """Drop the photo of a capture whose clock action was rejected."""
        if capture.photo_public_id:
            self._media.delete(capture.photo_public_id)
