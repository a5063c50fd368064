import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timekeeping"),
}

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "mysql")

MEDIA_ROOT = os.getenv("MEDIA_ROOT", "/var/lib/timekeeping/media")
MEDIA_BASE_URL = os.getenv("MEDIA_BASE_URL", "/media")

GEOFENCE_CACHE_SECONDS = int(os.getenv("GEOFENCE_CACHE_SECONDS", "300"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
