from __future__ import annotations

from flask import Flask

from ..common.web import admin_required, current_actor, json_body, login_required, ok, require_organization
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/geofence", methods=["GET"], endpoint="geofence_get")
    @login_required
    def get_geofence():
        boundary = container.geofence_service.get_boundary(require_organization(current_actor()))
        return ok(geofence=boundary.to_dict() if boundary else None)

    @app.route("/api/geofence", methods=["PUT"], endpoint="geofence_update")
    @admin_required
    def update_geofence():
        actor = current_actor()
        payload = json_body()
        boundary = container.geofence_service.update_boundary(
            current_role=actor.role,
            actor_id=actor.user_id,
            organization_id=require_organization(actor),
            lat=payload.get("lat"),
            lng=payload.get("lng"),
            radius_meters=payload.get("radius", payload.get("radius_meters")),
            is_active=bool(payload.get("is_active", True)),
            office_name=payload.get("office_name") or "Head Office",
        )
        return ok(geofence=boundary.to_dict())
