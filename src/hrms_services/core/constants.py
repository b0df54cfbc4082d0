"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_PAGE_SIZE = 50
DEFAULT_BATCH_SIZE = 100

DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_SECONDS = 0.5
DEFAULT_RETRY_BACKOFF = 2.0

# Absences and bulk marks are stamped at this UTC hour of the given day.
ABSENCE_MARK_HOUR_UTC = 9

# Placeholder attendance figures written on freshly processed payroll rows.
PLACEHOLDER_WORKING_DAYS = 22
PLACEHOLDER_PRESENT_DAYS = 20
PLACEHOLDER_PAID_LEAVE_DAYS = 1
PLACEHOLDER_UNPAID_LEAVE_DAYS = 0

ATTENDANCE_TABLE = "attendance_sessions"
PAYROLL_TABLE = "payroll"
PROFILES_TABLE = "profiles"
