import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_reconciler"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

SYNC_ENABLED = bool(int(os.getenv("SYNC_ENABLED", "1")))
SYNC_INTERVAL_MINUTES = int(os.getenv("SYNC_INTERVAL_MINUTES", "5"))
SYNC_INITIAL_DELAY_SECONDS = int(os.getenv("SYNC_INITIAL_DELAY_SECONDS", "10"))
SYNC_HTTP_TIMEOUT_SECONDS = float(os.getenv("SYNC_HTTP_TIMEOUT_SECONDS", "30"))
SYNC_MAX_WORKERS = int(os.getenv("SYNC_MAX_WORKERS", "8"))

DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Africa/Lagos")

MAX_REPORT_DAYS = int(os.getenv("MAX_REPORT_DAYS", "93"))
MAX_REPORT_ROWS = int(os.getenv("MAX_REPORT_ROWS", "500"))
