"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 1
DEFAULT_HISTORY_LIMIT = 7
DEFAULT_ADMIN_LIST_LIMIT = 500
DEFAULT_NOTIFICATION_LIMIT = 20
DEFAULT_NOTIFY_WORKERS = 2
MIN_PASSWORD_LENGTH = 6
SECONDS_PER_HOUR = 3600
