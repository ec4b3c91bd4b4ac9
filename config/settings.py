"""
FieldSync – Django Settings (Infrastructure Only)
==================================================
Django serves as the persistence and configuration container for
the FieldSync ledger. The fulfillment engines do not depend on it.
"""

from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
# TODO: Move to environment variable before any deployment
SECRET_KEY = "fieldsync-dev-key-replace-before-deployment"

DEBUG = True

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # ── FieldSync Modules (added in build order) ──────────
    "core.ledger_store",
    "core.bootstrap",
]

MIDDLEWARE = []

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Fulfillment ───────────────────────────────────────────────
# Read by core.config.load_fulfillment_settings(); unknown keys fail.
FIELDSYNC = {
    "eta_days": 2,
    "default_from_site": "Warehouse",
    "default_to_site": "MKR Project",
    "low_stock_threshold": 10,
    "driver_policy": "first_available",
}

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "fieldsync": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": True,
        },
        "fieldsync.ledger": {
            "level": "WARNING",
        },
    },
}
