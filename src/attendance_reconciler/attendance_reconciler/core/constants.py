"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TIMEZONE = "Africa/Lagos"

DEFAULT_GRACE_MINUTES = 15
DEFAULT_WORKING_HOURS = 8.0
DEFAULT_BREAK_MAX_DURATION = 90
EARLY_ARRIVAL_WINDOW_MINUTES = 30

COMPLIANCE_EXCEEDED_FACTOR = 1.5
COMPLIANCE_INSUFFICIENT_FACTOR = 0.5

MAX_CONFLICT_RETRIES = 3
CONFLICT_BACKOFF_SECONDS = 0.05

DEFAULT_SYNC_INTERVAL_MINUTES = 5
DEFAULT_SYNC_LOOKBACK_HOURS = 24
DEFAULT_HTTP_TIMEOUT_SECONDS = 30
DEFAULT_SYNC_MAX_WORKERS = 8

DEFAULT_REPORT_DAYS = 7
MAX_REPORT_DAYS = 93
MAX_REPORT_ROWS = 500
DEFAULT_PAGE_SIZE = 50
DEFAULT_HISTORY_LIMIT = 30

DEFAULT_PUNCH_METHOD = "face"
UNKNOWN_NAME = "Unknown"

ANOMALY_CHECKOUT_WITHOUT_CHECKIN = "checkout-without-checkin"

# Hosts that show up in facility records as placeholders for devices that are not reachable.
OFFLINE_PLACEHOLDER_HOSTS = (
    "test-device.com",
    "facility1-server.com",
    "facility2-server.com",
    "localhost",
    "127.0.0.1",
)
OFFLINE_NGROK_PATTERN = r"https?://[a-f0-9]+\.ngrok-free\.app"
