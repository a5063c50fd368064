from __future__ import annotations

from typing import Optional

import mysql.connector

from ..core.exceptions import UpstreamError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import GeofenceBoundary
from .repository import GeofenceRepository


class MySQLGeofenceRepository(GeofenceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_organization(self, organization_id: int) -> Optional[GeofenceBoundary]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    SELECT organization_id, office_name, lat, lng, radius_meters, is_active, updated_by, updated_at
                    FROM geofence_settings
                    WHERE organization_id=%s
                    """,
                    (int(organization_id),),
                )
                r = fetchone(cur)
        except mysql.connector.Error as exc:
            raise UpstreamError("Geofence settings are unavailable") from exc

        if not r:
            return None
        return GeofenceBoundary(
            organization_id=int(r["organization_id"]),
            office_name=r["office_name"],
            lat=float(r["lat"]),
            lng=float(r["lng"]),
            radius_meters=float(r["radius_meters"]),
            is_active=bool(r["is_active"]),
            updated_by=r.get("updated_by"),
            updated_at=r.get("updated_at"),
        )

    def upsert(self, boundary: GeofenceBoundary) -> GeofenceBoundary:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO geofence_settings(organization_id, office_name, lat, lng, radius_meters, is_active, updated_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    office_name=VALUES(office_name), lat=VALUES(lat), lng=VALUES(lng),
                    radius_meters=VALUES(radius_meters), is_active=VALUES(is_active), updated_by=VALUES(updated_by)
                """,
                (
                    boundary.organization_id,
                    boundary.office_name,
                    boundary.lat,
                    boundary.lng,
                    boundary.radius_meters,
                    int(boundary.is_active),
                    boundary.updated_by,
                ),
            )
        return boundary
