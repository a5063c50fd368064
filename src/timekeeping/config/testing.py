import os
import tempfile

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timekeeping_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = False

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")

MEDIA_ROOT = os.getenv("MEDIA_ROOT", os.path.join(tempfile.gettempdir(), "timekeeping-media"))
MEDIA_BASE_URL = "/media"

GEOFENCE_CACHE_SECONDS = 0

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
