"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000

DEFAULT_OFFICE_START = "09:00"
DEFAULT_OFFICE_END = "18:00"
DEFAULT_LATE_GRACE_MINUTES = 30
DEFAULT_AUTO_LOGOUT_OFFSET_HOURS = 2

GEOFENCE_MIN_RADIUS_METERS = 50
GEOFENCE_MAX_RADIUS_METERS = 5000
DEFAULT_GEOFENCE_CACHE_SECONDS = 300

DEFAULT_HISTORY_LIMIT = 50
WEEKLY_SUMMARY_DAYS = 7

UNKNOWN_DEVICE = "Unknown"
SYSTEM_DEVICE = "System"
AUTO_LOGOUT_NOTE = "[System Auto Logout]"
AUTO_ABSENT_NOTE = "System marked absent: No clock-in detected"
