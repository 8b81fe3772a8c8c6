"""Constants and defaults.

Note: Keep constants here to avoid magic strings spread across code.
"""

STORAGE_KEY_PREFIX = "timeLogs_"

DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
CLOCK_FORMAT = "%H:%M"

INVITE_CODE_LENGTH = 6
INVITE_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
INVITE_CODE_MAX_ATTEMPTS = 10

EXPORT_SHEET_NAME = "Time Logs"
EXPORT_ALL_SUBJECTS = "All_Employees"
EXPORT_OPEN_CLOCK_OUT = "---"
