"""
Exceptions for accounts app.
"""

from apps.core.errors import CallableError, ErrorCode


class TokenInvalidError(CallableError):
    """Custom or session token is malformed, expired, or already used."""

    code = ErrorCode.UNAUTHENTICATED
    default_message = "Invalid or expired token."


class AccountDisabledError(CallableError):
    """Identity account has been disabled."""

    code = ErrorCode.PERMISSION_DENIED
    default_message = "This account has been disabled."
