"""
Invoicing - Django Settings
===========================
Django is the container for the ORM, migrations and logging config.
The invoicing core reads its own tunables from INVOICING through
invoicing.config.get_invoicing_settings().

Database selection is environment driven (INVOICING_DB_*); SQLite is the
development default.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("INVOICING_SECRET_KEY", "invoicing-dev-key-replace-before-deployment")

DEBUG = os.environ.get("INVOICING_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
# Leaf-first: invoices reference organizations.
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "invoicing.sequences",
    "invoicing.organizations",
    "invoicing.invoices",
]

MIDDLEWARE = []

# ── Database ──────────────────────────────────────────────────
DATABASES = {
    "default": {
        "ENGINE": os.environ.get("INVOICING_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("INVOICING_DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("INVOICING_DB_USER", ""),
        "PASSWORD": os.environ.get("INVOICING_DB_PASSWORD", ""),
        "HOST": os.environ.get("INVOICING_DB_HOST", ""),
        "PORT": os.environ.get("INVOICING_DB_PORT", ""),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Invoicing core ────────────────────────────────────────────
INVOICING = {
    "DEFAULT_PADDING": 4,
    "FALLBACK_PRICE": "50.00",
    "BATCH_INVOICE_STATUS": "sent",
    "DEFAULT_PAYMENT_METHOD": "card",
    "DOCUMENT_NAME_TEMPLATE": "invoice-{number}.pdf",
    "CURRENCY": "EUR",
    "DOCUMENT_STORAGE_ROOT": os.environ.get(
        "INVOICING_DOCUMENT_ROOT", str(BASE_DIR / "var" / "documents")
    ),
}

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "invoicing": {
            "handlers": ["console"],
            "level": os.environ.get("INVOICING_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
