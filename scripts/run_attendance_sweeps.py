"""Run the scheduled attendance sweeps once.

Intended for cron, e.g. hourly for auto clock-out and at 23:55 for absentees:

    0 * * * *   python scripts/run_attendance_sweeps.py auto-clock-out
    55 23 * * * python scripts/run_attendance_sweeps.py mark-absent
"""

from __future__ import annotations

import argparse
import importlib

import structlog
from dotenv import load_dotenv

from timekeeping.common.logging import setup_logging
from timekeeping.config import get_settings_module
from timekeeping.container import build_container

logger = structlog.get_logger("timekeeping.sweeps")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("sweep", choices=["auto-clock-out", "mark-absent"])
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        backend=getattr(settings, "STORAGE_BACKEND", "mysql"),
        media_root=getattr(settings, "MEDIA_ROOT", "media"),
        media_base_url=getattr(settings, "MEDIA_BASE_URL", "/media"),
    )

    if args.sweep == "auto-clock-out":
        records = container.attendance_service.auto_clock_out()
    else:
        records = container.attendance_service.mark_absentees()
    logger.info("sweep_finished", sweep=args.sweep, affected=len(records))


if __name__ == "__main__":
    main()
