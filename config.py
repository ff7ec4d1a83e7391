import os
import secrets
from contextvars import ContextVar
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

DB_PATH = os.environ.get("GLP_GUIDE_DB_PATH", "glp_guide.db")
SECRET_KEY_PATH = Path(".app_secret_key")
SESSION_TTL_SECONDS = 60 * 60 * 24 * 14
SESSION_COOKIE_NAME = "glp_session"
CSRF_COOKIE_NAME = "csrf_token"
TZ_OFFSET_COOKIE_NAME = "tz_offset"

_client_now: ContextVar[Optional[datetime]] = ContextVar("_client_now", default=None)

PUBLIC_PATHS = {"/", "/login", "/signup", "/logout", "/forgot-password", "/reset-password"}
RESET_TOKEN_TTL_SECONDS = 3600  # 1 hour
MIN_PASSWORD_LEN = 6

# Page sizes for the record lists and the merged timeline (per source).
RECENT_PAGE_SIZE = 10
TIMELINE_PAGE_SIZE = 20

DEFAULT_MEDICATION = "Ozempic"
DEFAULT_DOSE_UNIT = "mg"

SEVERITIES = ("low", "medium", "high")
SEVERITY_LABELS = {"low": "Mild", "medium": "Moderate", "high": "Severe"}

COMMON_SYMPTOMS = [
    "Nausea",
    "Vomiting",
    "Diarrhea",
    "Constipation",
    "Abdominal pain",
    "Fatigue",
    "Dizziness",
    "Headache",
    "Loss of appetite",
    "Reflux",
]

ONBOARDING_STEPS = [
    {
        "title": "Log your doses",
        "description": "Keep track of when and how much of your GLP-1 medication you took.",
        "color": "#10b981",
    },
    {
        "title": "Track symptoms",
        "description": "Record side effects and symptoms to understand how your body responds.",
        "color": "#3b82f6",
    },
    {
        "title": "Follow your progress",
        "description": "See your journey on a timeline and keep reports of how you are doing.",
        "color": "#8b5cf6",
    },
]


def _set_client_clock(tz_offset_cookie: str):
    """Set per-request client-local clock derived from JS timezone offset cookie."""
    offset = None
    try:
        offset = int((tz_offset_cookie or "").strip())
    except ValueError:
        offset = None
    if offset is not None and -840 <= offset <= 840:
        utc_now = datetime.now(timezone.utc).replace(tzinfo=None)
        _client_now.set(utc_now - timedelta(minutes=offset))
        return
    _client_now.set(datetime.now())


def _now_local() -> datetime:
    return _client_now.get() or datetime.now()


def _today_local() -> date:
    return _now_local().date()


def _load_secret_key() -> str:
    env_key = os.environ.get("APP_SECRET_KEY", "").strip()
    if env_key:
        return env_key
    if SECRET_KEY_PATH.exists():
        return SECRET_KEY_PATH.read_text(encoding="utf-8").strip()
    key = secrets.token_hex(32)
    SECRET_KEY_PATH.write_text(key, encoding="utf-8")
    return key


SECRET_KEY = _load_secret_key()
