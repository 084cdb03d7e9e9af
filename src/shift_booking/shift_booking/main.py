from __future__ import annotations

import importlib
from pathlib import Path

import structlog
from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.http import register_http_handlers
from .container import build_container
from .core.logging_config import setup_logging
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables

from .settings.controller import register as register_settings
from .time_slots.controller import register as register_time_slots
from .bookings.controller import register as register_bookings
from .bulk.controller import register as register_bulk

logger = structlog.get_logger("shift_booking.main")

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), json=bool(getattr(settings, "LOG_JSON", False)))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = dict(getattr(settings, "DB_CONFIG", {}))
    backend = str(getattr(settings, "STORAGE_BACKEND", "mysql")).lower()
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["AUTO_APPROVE_ADMIN_BOOKINGS"] = bool(getattr(settings, "AUTO_APPROVE_ADMIN_BOOKINGS", True))

    logger.info(
        "app_configuring",
        settings=settings_module,
        backend=backend,
        db=f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}",
    )

    if backend == "mysql":
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema_ready", tables=len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            logger.info("seed_ready")

    container = build_container(db_config=db_config, backend=backend)
    app.extensions["shift_booking"] = container

    register_http_handlers(app)
    register_settings(app, container)
    register_time_slots(app, container)
    register_bookings(app, container)
    register_bulk(app, container)

    return app
