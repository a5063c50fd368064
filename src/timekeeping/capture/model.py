from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class CaptureInput:
    """Raw clock-in/out submission as sent by the client."""

    photo: Optional[str] = None
    lat: Any = None
    lng: Any = None
    device: Optional[str] = None
    address: Optional[str] = None
    face_detected: Optional[bool] = None

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> "CaptureInput":
        payload = payload or {}
        face = payload.get("faceDetected", payload.get("face_detected"))
        return cls(
            photo=payload.get("photo") or None,
            lat=payload.get("lat"),
            lng=payload.get("lng"),
            device=payload.get("device") or None,
            address=payload.get("address") or None,
            face_detected=face if isinstance(face, bool) else None,
        )


@dataclass(frozen=True)
class RequestMeta:
    """Transport metadata of the inbound request."""

    ip: str = ""
    user_agent: str = ""


@dataclass(frozen=True)
class Capture:
    """Bằng chứng xác thực tại một thời điểm (ảnh, vị trí, IP, thiết bị). Bất biến."""

    timestamp: datetime
    ip: str
    device: str
    user_agent: str
    within_geofence: Optional[bool]
    face_detected: bool
    photo_url: str = ""
    photo_public_id: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: str = ""

    def to_dict(self) -> dict:
        return {
            "time": self.timestamp.isoformat(),
            "photo": self.photo_url,
            "photo_public_id": self.photo_public_id,
            "lat": self.lat,
            "lng": self.lng,
            "address": self.address,
            "ip": self.ip,
            "device": self.device,
            "user_agent": self.user_agent,
            "within_geofence": self.within_geofence,
            "face_detected": self.face_detected,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Capture":
        return cls(
            timestamp=datetime.fromisoformat(data["time"]),
            photo_url=data.get("photo") or "",
            photo_public_id=data.get("photo_public_id") or "",
            lat=data.get("lat"),
            lng=data.get("lng"),
            address=data.get("address") or "",
            ip=data.get("ip") or "",
            device=data.get("device") or "",
            user_agent=data.get("user_agent") or "",
            within_geofence=data.get("within_geofence"),
            face_detected=bool(data.get("face_detected", True)),
        )
