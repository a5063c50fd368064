from __future__ import annotations

import importlib

from dotenv import load_dotenv

from timekeeping.common.logging import setup_logging
from timekeeping.config import get_settings_module
from timekeeping.database.bootstrap import apply_schema, list_tables
from timekeeping.database.connection import DBConfig


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config)
    tables = list_tables(db_config)
    print(f"Schema ready on {DBConfig.from_dict(db_config).describe()}: {', '.join(tables)}")


if __name__ == "__main__":
    main()
