"""
Client-side exceptions.
"""


class CrewvarClientError(Exception):
    """Base exception for the client library."""


class CallableError(CrewvarClientError):
    """
    Error returned by a backend operation.

    ``code`` is the server's callable code (e.g. ``permission-denied``) and
    ``message`` its detail text, both passed through unchanged.
    """

    def __init__(self, code: str, message: str, status_code: int | None = None) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(f"{code}: {message}")


class IntegrityCheckFailed(CrewvarClientError):
    """Stored session does not match its integrity tag."""


class SessionExpired(CrewvarClientError):
    """Stored session is older than the maximum session age."""


class ProfileFetchFailed(CrewvarClientError):
    """Profile could not be loaded for an authenticated user."""


class StorageError(CrewvarClientError):
    """Reading or writing device preferences failed."""
