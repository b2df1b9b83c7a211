"""
Core security - authentication classes for API.
"""

from typing import TYPE_CHECKING

from ninja.security import HttpBearer

if TYPE_CHECKING:
    from apps.accounts.models import User


class SessionBearerAuth(HttpBearer):
    """
    Bearer session-token authentication for API endpoints.

    SessionTokenAuthMiddleware has already verified the token and attached
    ``request.auth_user``; this class exposes the OpenAPI security scheme and
    turns a missing or rejected identity into a 401. The authenticated User
    is available to endpoints as ``request.auth``.
    """

    def authenticate(self, request, token: str) -> "User | None":
        if not token:
            return None
        return getattr(request, "auth_user", None)
