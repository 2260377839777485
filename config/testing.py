import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_reconciler_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

SYNC_ENABLED = False
SYNC_INTERVAL_MINUTES = 5
SYNC_INITIAL_DELAY_SECONDS = 0
SYNC_HTTP_TIMEOUT_SECONDS = 5.0
SYNC_MAX_WORKERS = 2

DEFAULT_TIMEZONE = "Africa/Lagos"

MAX_REPORT_DAYS = 93
MAX_REPORT_ROWS = 500
