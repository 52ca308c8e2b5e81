# app/core/config.py

import os

# =========================
# DATABASE
# =========================

DB_USER = os.getenv("DB_USER", "vault_user")
DB_PASS = os.getenv("DB_PASS", "vault_pass")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "vaultlinks")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# =========================
# STORAGE & LINKS
# =========================

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")

MAX_UPLOAD_BYTES = 50 * 1024 * 1024
DEFAULT_EXPIRY_MINUTES = 10
MAX_EXPIRY_MINUTES = 365 * 24 * 60

# =========================
# BACKGROUND CLEANUP
# =========================


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


CLEANUP_ENABLED = _flag("CLEANUP_ENABLED", "true")
CLEANUP_INTERVAL_SECONDS = float(os.getenv("CLEANUP_INTERVAL_SECONDS", "60"))

# =========================
# RATE LIMITING & LOGGING
# =========================

RATE_LIMIT_ENABLED = _flag("RATE_LIMIT_ENABLED", "true")
AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "10/minute")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
