# backend/liftplan/config.py
import os

# sqlite:///path for local runs, postgresql+psycopg://... in containers
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./liftplan.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Shared secret for the /cron endpoints; unset disables them
CRON_SECRET_KEY = os.getenv("CRON_SECRET_KEY")

DEFAULT_MIN_DAYS_IN_ADVANCE = int(os.getenv("DEFAULT_MIN_DAYS_IN_ADVANCE", "7"))

FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")

# IANA zone for "today" and plan creation days (e.g. "Europe/Berlin"); unset uses the server's local zone
TIMEZONE = os.getenv("TIMEZONE") or None
