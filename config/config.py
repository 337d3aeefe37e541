"""Settings shared by every environment. Each environment module re-exports these
and overrides what differs."""
import os


def env_flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


def db_config_from_env(default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "hr_attendance"),
    }


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Leave
DEFAULT_ANNUAL_QUOTA = int(os.getenv("DEFAULT_ANNUAL_QUOTA", "12"))

# Object storage (local disk, signed download links)
STORAGE_ROOT = os.getenv("STORAGE_ROOT", os.path.join(os.getcwd(), "storage"))
STORAGE_URL_BASE = os.getenv("STORAGE_URL_BASE", "/files")
# 5 proofs of 5 MB plus form fields
MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(30 * 1024 * 1024)))

# QR clock-in
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
QR_DEFAULT_EXPIRY_MINUTES = int(os.getenv("QR_DEFAULT_EXPIRY_MINUTES", "10"))
