"""Constants and defaults.

Note: Keep constants here to avoid magic strings spread across code.
"""

USERS = "users"
ATTENDANCE = "attendance"
LAB_STATUS = "labStatus"
COUNTERS = "counters"
CREDENTIALS = "credentials"

LAB_STATUS_KEY = "current"

DEFAULT_ID_PREFIX = "SAE"
DEFAULT_CLUB_NAME = "SAE CUSAT"
SERIAL_WIDTH = 3
FACULTY_BUCKET = "FAC"

DEFAULT_TRANSACTION_ATTEMPTS = 5
MIN_PASSWORD_LENGTH = 6

TEAM_OPTIONS = (
    "TARUSA",
    "YETI",
    "ASTRON ENDURANCE",
    "MARUTSAKHA",
    "HERMES",
    "ELEKTRA",
    "STORM RACING",
    "BEHEMOTH",
    "AROHA",
)
BLOOD_GROUP_OPTIONS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")
