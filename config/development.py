import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_reconciler"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Device sync
SYNC_ENABLED = bool(int(os.getenv("SYNC_ENABLED", "0")))
SYNC_INTERVAL_MINUTES = int(os.getenv("SYNC_INTERVAL_MINUTES", "5"))
SYNC_INITIAL_DELAY_SECONDS = int(os.getenv("SYNC_INITIAL_DELAY_SECONDS", "10"))
SYNC_HTTP_TIMEOUT_SECONDS = float(os.getenv("SYNC_HTTP_TIMEOUT_SECONDS", "30"))
SYNC_MAX_WORKERS = int(os.getenv("SYNC_MAX_WORKERS", "4"))

DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Africa/Lagos")

# Reporting limits
MAX_REPORT_DAYS = int(os.getenv("MAX_REPORT_DAYS", "93"))
MAX_REPORT_ROWS = int(os.getenv("MAX_REPORT_ROWS", "500"))
