"""
Test settings.

SQLite in memory, local-memory cache and console logging.
"""

from apps.core.logging import configure_logging

from .base import *  # noqa: F403

DEBUG = False
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

configure_logging(json_format=False, log_level="WARNING")

AWS_SES_FROM_EMAIL = "no-reply@crewvar.test"
OTP_EMAIL_CONSOLE_FALLBACK = False
