import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./fieldservice.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))

# Comma separated list of frontend origins
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# Shared secret for the cron endpoints (unset = open, for local development)
CRON_SECRET = os.getenv("CRON_SECRET")

# Contract lifecycle tunables
RENEWAL_HORIZON_MONTHS = int(os.getenv("RENEWAL_HORIZON_MONTHS", "3"))
JOB_CREATION_LEAD_MONTHS = int(os.getenv("JOB_CREATION_LEAD_MONTHS", "1"))
JOB_OVERDUE_GRACE_DAYS = int(os.getenv("JOB_OVERDUE_GRACE_DAYS", "2"))
NOTIFICATION_COOLDOWN_DAYS = int(os.getenv("NOTIFICATION_COOLDOWN_DAYS", "7"))

# Worker schedule (UTC)
CONTRACT_SCAN_HOUR = int(os.getenv("CONTRACT_SCAN_HOUR", "0"))
CONTRACT_SCAN_MINUTE = int(os.getenv("CONTRACT_SCAN_MINUTE", "5"))

# Login-code throttling, per client IP
LOGIN_RATE_LIMIT = int(os.getenv("LOGIN_RATE_LIMIT", "10"))
LOGIN_RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("LOGIN_RATE_LIMIT_WINDOW_SECONDS", "900"))
