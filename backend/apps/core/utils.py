"""
Core utility functions.
"""

import re

from django.http import HttpRequest

# Basic local@domain.tld shape; deliverability is proven by the emailed code.
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Same limit as Django's EmailField
MAX_EMAIL_LENGTH = 254


def normalize_email(email: object) -> str:
    """Trim and lower-case an email address. Non-strings normalize to ''."""
    if email is None:
        return ""
    return str(email).strip().lower()


def is_valid_email(email: str) -> bool:
    """Check an already-normalized email against the basic address shape."""
    return bool(email) and len(email) <= MAX_EMAIL_LENGTH and EMAIL_PATTERN.match(email) is not None


def email_local_part(email: str) -> str:
    """Return the part of an email address before the '@'."""
    return email.split("@", 1)[0]


def get_client_ip(request: HttpRequest) -> str | None:
    """
    Extract client IP from X-Forwarded-For or REMOTE_ADDR.

    X-Forwarded-For may hold a proxy chain; the first entry is the client.
    """
    x_forwarded_for: str | None = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")
