"""
Local development settings.

Extends base settings with development-friendly defaults.
"""

from apps.core.logging import configure_logging

from .base import *  # noqa: F403
from .base import settings

DEBUG = True
ALLOWED_HOSTS = ["localhost", "127.0.0.1", "10.0.2.2"]

# Pretty console logs in development
configure_logging(json_format=False, log_level="DEBUG")

# Print login codes to the console instead of calling SES when no sender is set
OTP_EMAIL_CONSOLE_FALLBACK = not settings.AWS_SES_FROM_EMAIL
