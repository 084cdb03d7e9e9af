"""Database maintenance for the configured environment (APP_ENV).

    python scripts/manage_db.py init     # create database and tables
    python scripts/manage_db.py seed     # load demo time slots and limits
    python scripts/manage_db.py tables   # list tables
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import structlog
from dotenv import load_dotenv

from config import get_settings_module

from src.shift_booking.shift_booking.core.logging_config import setup_logging
from src.shift_booking.shift_booking.database.bootstrap import apply_schema, apply_seed_sql, list_tables

logger = structlog.get_logger("shift_booking.scripts")

DATABASE_DIR = REPO_ROOT / "database"


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("command", choices=("init", "seed", "tables"))
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    if args.command == "init":
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
    elif args.command == "seed":
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")

    tables = list_tables(db_config)
    logger.info("database_ready", command=args.command, target=target, tables=tables)
    return 0


if __name__ == "__main__":
    sys.exit(main())
