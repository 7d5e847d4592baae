# barbershop/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# SQLite database (file-based) unless DATABASE_URL is set
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barbershop.db")
# Older hosts hand out postgres:// URLs, SQLAlchemy wants postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# Security
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

ALGORITHM = "HS256"
# 30 days, same as the old session lifetime
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(30 * 24 * 60)))

# Rate limiting (fixed window, in-memory)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
LOGIN_RATE_LIMIT = int(os.getenv("LOGIN_RATE_LIMIT", "10"))
RESERVATION_RATE_LIMIT = int(os.getenv("RESERVATION_RATE_LIMIT", "5"))

# Scanner
SCANNER_DEFAULT_AUTO_DISABLE_HOURS = int(os.getenv("SCANNER_DEFAULT_AUTO_DISABLE_HOURS", "2"))
SCANNER_MIN_HOURS = 1
SCANNER_MAX_HOURS = 10000

# Seed owner account
OWNER_EMAIL = os.getenv("OWNER_EMAIL", "admin@barbershop.local")
OWNER_PASSWORD = os.getenv("OWNER_PASSWORD", "admin123")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
