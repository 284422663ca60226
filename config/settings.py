"""
LuxRent – Django Settings
===========================
Django hosts the durable booking store (adapters.django_store) and
provides settings, ORM and logging. The booking core itself is plain
Python and receives its configuration from LUXRENT_BOOKING below.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("LUXRENT_SECRET_KEY", "luxrent-dev-key-replace-before-deployment")

DEBUG = os.environ.get("LUXRENT_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "adapters.django_store",
]

MIDDLEWARE = []

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured via environment.
DATABASES = {
    "default": {
        "ENGINE": os.environ.get("LUXRENT_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("LUXRENT_DB_NAME", str(BASE_DIR / "db.sqlite3")),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "luxrent": {
            "handlers": ["console"],
            "level": os.environ.get("LUXRENT_LOG_LEVEL", "INFO"),
        },
    },
}

# ── Booking Core ──────────────────────────────────────────────
# Money in integer cents; rates as strings to stay exact.
LUXRENT_BOOKING = {
    "tier_multipliers": {"standard": "1.0", "premium": "1.3", "elite": "1.6"},
    "service_fee_rate": "0.05",
    "insurance": {"mode": "flat", "flat_cents": 0},
    "pricing_timeout_seconds": 2.0,
    "payment_window_minutes": 15,
    "buffer_hours_by_type": {"cars": 2, "yachts": 4, "jets": 6, "properties": 12},
    "min_notice_hours_by_type": {"cars": 2, "yachts": 24, "jets": 48, "properties": 72},
    "max_advance_days_by_type": {"cars": 365, "yachts": 730, "jets": 365, "properties": 1095},
    "enforce_booking_window": True,
    "lock_timeout_seconds": 30.0,
    "refund_processing_fee_rate": "0.05",
    "tax_rates": {
        "dubai": "0.05",
        "washington-dc": "0.06",
        "houston": "0.0825",
        "atlanta": "0.089",
        "maryland": "0.06",
        "northern-virginia": "0.06",
    },
}
