import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_booking_test"),
}

DEBUG = False
TESTING = True

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")

AUTO_INIT_DB = False
AUTO_SEED_DB = False

AUTO_APPROVE_ADMIN_BOOKINGS = True

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
LOG_JSON = False
