"""
Callable error codes shared by every public operation.

Each domain exception carries a stable string ``code`` that clients switch on
to render a precise message. The HTTP status follows the canonical RPC code
to HTTP mapping so generic HTTP tooling still sees sensible statuses.
"""

from enum import StrEnum


class ErrorCode(StrEnum):
    """Caller-visible error codes."""

    INVALID_ARGUMENT = "invalid-argument"
    NOT_FOUND = "not-found"
    DEADLINE_EXCEEDED = "deadline-exceeded"
    RESOURCE_EXHAUSTED = "resource-exhausted"
    PERMISSION_DENIED = "permission-denied"
    UNAUTHENTICATED = "unauthenticated"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


HTTP_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.DEADLINE_EXCEEDED: 504,
    ErrorCode.RESOURCE_EXHAUSTED: 429,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.UNAVAILABLE: 503,
    ErrorCode.INTERNAL: 500,
}


class CallableError(Exception):
    """Base exception for errors surfaced verbatim to the calling client."""

    code: ErrorCode = ErrorCode.INTERNAL
    default_message = "Internal error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_CODE[self.code]
