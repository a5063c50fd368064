from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

import structlog
from dotenv import load_dotenv
from flask import Flask, send_from_directory

from .common.logging import setup_logging
from .common.web import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig

from .attendance.controller import register as register_attendance
from .geofence.controller import register as register_geofence
from .timesheets.controller import register as register_timesheets

logger = structlog.get_logger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    db_config = getattr(settings, "DB_CONFIG")
    backend = getattr(settings, "STORAGE_BACKEND", "mysql")
    media_root = Path(getattr(settings, "MEDIA_ROOT", "media")).resolve()
    media_base_url = getattr(settings, "MEDIA_BASE_URL", "/media").rstrip("/")

    if container is None:
        if backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema_ready", tables=len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            backend=backend,
            media_root=str(media_root),
            media_base_url=media_base_url,
            geofence_cache_seconds=float(getattr(settings, "GEOFENCE_CACHE_SECONDS", 300)),
        )

    logger.info(
        "app_configured",
        settings=settings_module,
        backend=backend,
        db=DBConfig.from_dict(db_config).describe(),
    )

    media_dir = getattr(container.media_store, "base_dir", media_root)

    @app.route(f"{media_base_url}/<path:filename>", endpoint="media")
    def media(filename: str):
        return send_from_directory(media_dir, filename)

    register_error_handlers(app)
    register_attendance(app, container)
    register_timesheets(app, container)
    register_geofence(app, container)

    return app
