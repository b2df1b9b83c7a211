"""
Constants for accounts app.
"""

from enum import StrEnum


class JWTAction(StrEnum):
    """
    ``action`` claim values for tokens signed by this service.

    A custom token can only be exchanged; a session token can only
    authenticate API calls. Each decoder rejects the other kind.
    """

    CUSTOM_TOKEN = "custom_token"
    SESSION = "session"
