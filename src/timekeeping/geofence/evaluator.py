"""Geofence evaluation.

Uses the haversine formula to compute great-circle distance between points.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from ..core.constants import EARTH_RADIUS_METERS
from .model import GeofenceBoundary


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters between two (lat, lng) points in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lng2 - lng1)

    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def coerce_coordinate(value: Any) -> Optional[float]:
    """Parse a client-supplied coordinate; None for absent or malformed input."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def evaluate(boundary: Optional[GeofenceBoundary], lat: Any, lng: Any) -> Optional[bool]:
    """Return True/False for inside/outside, None when the check is not possible.

    None means "unverifiable": no active boundary, no point supplied, or
    malformed numbers. Callers must not penalize it.
    """
    if boundary is None or not boundary.is_active:
        return None

    point_lat = coerce_coordinate(lat)
    point_lng = coerce_coordinate(lng)
    if point_lat is None or point_lng is None:
        return None

    try:
        radius = float(boundary.radius_meters)
        distance = haversine_distance(point_lat, point_lng, float(boundary.lat), float(boundary.lng))
    except (TypeError, ValueError):
        return None
    if not math.isfinite(distance) or not math.isfinite(radius):
        return None
    return distance <= radius
