from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import build_container
from .database.bootstrap import apply_schema, missing_tables
from .reports.controller import register as register_reports
from .sync.controller import register as register_sync

logger = logging.getLogger(__name__)


def create_app(*, container=None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            missing = missing_tables(db_config)
            if missing:
                logger.error("schema incomplete, missing tables: %s", ", ".join(missing))
            else:
                logger.info("schema ready")

        container = build_container(
            db_config=db_config,
            http_timeout_seconds=float(getattr(settings, "SYNC_HTTP_TIMEOUT_SECONDS", 30)),
            sync_interval_minutes=int(getattr(settings, "SYNC_INTERVAL_MINUTES", 5)),
            sync_initial_delay_seconds=int(getattr(settings, "SYNC_INITIAL_DELAY_SECONDS", 10)),
            sync_max_workers=int(getattr(settings, "SYNC_MAX_WORKERS", 8)),
            max_report_days=int(getattr(settings, "MAX_REPORT_DAYS", 93)),
            max_report_rows=int(getattr(settings, "MAX_REPORT_ROWS", 500)),
            field_variants=getattr(settings, "DEVICE_FIELD_VARIANTS", None),
            default_timezone=getattr(settings, "DEFAULT_TIMEZONE", "Africa/Lagos"),
        )
        if bool(getattr(settings, "SYNC_ENABLED", False)):
            container.sync_scheduler.start()

    app.extensions["attendance_reconciler"] = container
    register_attendance(app, container)
    register_reports(app, container)
    register_sync(app, container)

    return app
