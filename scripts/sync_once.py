from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_reconciler.attendance_reconciler.container import build_container


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        http_timeout_seconds=float(settings.SYNC_HTTP_TIMEOUT_SECONDS),
        sync_interval_minutes=int(settings.SYNC_INTERVAL_MINUTES),
        sync_initial_delay_seconds=int(settings.SYNC_INITIAL_DELAY_SECONDS),
        sync_max_workers=int(settings.SYNC_MAX_WORKERS),
        max_report_days=int(settings.MAX_REPORT_DAYS),
        max_report_rows=int(settings.MAX_REPORT_ROWS),
        default_timezone=settings.DEFAULT_TIMEZONE,
    )
    summary = container.sync_scheduler.run_once()
    for r in summary.results:
        print(f"{r.facility_name}: {r.status.value} fetched={r.fetched} applied={r.applied} error={r.error or '-'}")
    return 1 if any(r.error for r in summary.results) else 0


if __name__ == "__main__":
    sys.exit(main())
