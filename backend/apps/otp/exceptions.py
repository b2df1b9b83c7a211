"""
Exceptions for the OTP exchange.

Each maps to a distinct caller-visible code so the client can tell a wrong
code from an expired one from a rate limit.
"""

from apps.core.errors import CallableError, ErrorCode


class OTPError(CallableError):
    """Base exception for OTP operations."""


class InvalidInputError(OTPError):
    """Email or code does not have the expected shape."""

    code = ErrorCode.INVALID_ARGUMENT
    default_message = "Invalid input."


class OTPCooldownError(OTPError):
    """A code was requested for this email too recently."""

    code = ErrorCode.RESOURCE_EXHAUSTED
    default_message = "Please wait before requesting another code."


class OTPNotFoundError(OTPError):
    """No unused code exists for this email."""

    code = ErrorCode.NOT_FOUND
    default_message = "No active code. Request a new one."


class OTPExpiredError(OTPError):
    """The code's lifetime has passed."""

    code = ErrorCode.DEADLINE_EXCEEDED
    default_message = "Code expired. Request a new one."


class OTPAttemptsExhaustedError(OTPError):
    """Too many wrong codes were submitted against this request."""

    code = ErrorCode.RESOURCE_EXHAUSTED
    default_message = "Too many attempts. Request a new code."


class OTPIncorrectCodeError(OTPError):
    """Submitted code does not match."""

    code = ErrorCode.PERMISSION_DENIED
    default_message = "Incorrect code."


class OTPDeliveryError(OTPError):
    """The login email could not be sent."""

    code = ErrorCode.UNAVAILABLE
    default_message = "Failed to send login code. Please try again."
