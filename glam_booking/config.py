import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./glam_booking.db")

# Business hours
# All times are wall-clock times in BUSINESS_TIMEZONE
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Europe/Paris")
OPEN_DAYS = os.getenv("OPEN_DAYS", "tuesday,wednesday,thursday,friday,saturday")
OPENING_TIME = os.getenv("OPENING_TIME", "09:00")
CLOSING_TIME = os.getenv("CLOSING_TIME", "19:00")
SLOT_GRANULARITY_MINUTES = int(os.getenv("SLOT_GRANULARITY_MINUTES", "30"))
# Optional daily unavailable window, e.g. BREAK_START=12:30 BREAK_END=14:00
BREAK_START = os.getenv("BREAK_START") or None
BREAK_END = os.getenv("BREAK_END") or None
# Per-weekday overrides of the window and break above, e.g.
# HOURS_SATURDAY=09:00-17:00, BREAK_TUESDAY=12:00-13:00, BREAK_SATURDAY=none
_WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
DAY_HOURS = {
    day: os.getenv(f"HOURS_{day.upper()}") for day in _WEEKDAY_NAMES if os.getenv(f"HOURS_{day.upper()}")
}
DAY_BREAKS = {
    day: os.getenv(f"BREAK_{day.upper()}") for day in _WEEKDAY_NAMES if os.getenv(f"BREAK_{day.upper()}")
}
# Optional bookable date range (YYYY-MM-DD)
AVAILABLE_FROM = os.getenv("AVAILABLE_FROM") or None
AVAILABLE_UNTIL = os.getenv("AVAILABLE_UNTIL") or None

# Booking serialization
# "local" serializes commits inside one process only. Any deployment with more
# than one worker process (uvicorn --workers N, several hosts) must use "redis";
# with "local" the slot index only rejects identical starts, not overlaps.
BOOKING_LOCK_BACKEND = os.getenv("BOOKING_LOCK_BACKEND", "local").lower()
BOOKING_LOCK_TIMEOUT_SECONDS = float(os.getenv("BOOKING_LOCK_TIMEOUT_SECONDS", "5"))
BOOKING_LOCK_TTL_SECONDS = int(os.getenv("BOOKING_LOCK_TTL_SECONDS", "30"))
BOOKING_RETRY_AFTER_SECONDS = int(os.getenv("BOOKING_RETRY_AFTER_SECONDS", "1"))

# Redis (only used by the redis lock backend)
REDIS_URL = os.getenv("REDIS_URL")

# Sweeps run by run_sweeps.py
NO_SHOW_GRACE_MINUTES = int(os.getenv("NO_SHOW_GRACE_MINUTES", "15"))

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Queen's Glam <rendez-vous@queensglam.fr>")
BUSINESS_NAME = os.getenv("BUSINESS_NAME", "Queen's Glam")
