import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./salon.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_HOURS = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "24"))

# Login throttling (per client IP)
LOGIN_RATE_LIMIT = int(os.getenv("LOGIN_RATE_LIMIT", "10"))
LOGIN_RATE_WINDOW_SECONDS = int(os.getenv("LOGIN_RATE_WINDOW_SECONDS", "60"))

# No-show grace period in minutes; the stored `no_show_grace` row wins once seeded
NO_SHOW_GRACE_DEFAULT = int(os.getenv("NO_SHOW_GRACE_DEFAULT", "10"))
NO_SHOW_GRACE_MIN = 0
NO_SHOW_GRACE_MAX = 240

# Fallback duration for services without a stored duration
DEFAULT_SERVICE_MINUTES = 30

# Appointment sweep: "inprocess" runs inside the API process, "worker" leaves it
# to the arq cron job, "off" disables it (tests)
APPOINTMENT_SWEEP_MODE = os.getenv("APPOINTMENT_SWEEP_MODE", "inprocess").lower()
APPOINTMENT_SWEEP_INTERVAL_SECONDS = int(os.getenv("APPOINTMENT_SWEEP_INTERVAL_SECONDS", "60"))

# Seconds to wait for the per staff/day booking lock before answering 409
BOOKING_LOCK_TIMEOUT = float(os.getenv("BOOKING_LOCK_TIMEOUT", "10"))

# Optional webhook that receives client notifications (confirmations)
NOTIFICATION_WEBHOOK_URL = os.getenv("NOTIFICATION_WEBHOOK_URL")
NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "5"))

# Frontend dashboard origins
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
