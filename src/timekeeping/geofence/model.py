from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class GeofenceBoundary:
    """Vùng địa lý hình tròn (tâm + bán kính) của văn phòng."""

    organization_id: int
    lat: float
    lng: float
    radius_meters: float
    is_active: bool = True
    office_name: str = "Head Office"
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "organization_id": self.organization_id,
            "office_name": self.office_name,
            "lat": self.lat,
            "lng": self.lng,
            "radius_meters": self.radius_meters,
            "is_active": self.is_active,
            "updated_by": self.updated_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
