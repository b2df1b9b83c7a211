"""
Core middleware.

RequestContextMiddleware binds per-request log context.
SessionTokenAuthMiddleware resolves the bearer session token to a User.
"""

import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

from apps.core.logging import bind_contextvars, clear_contextvars, get_logger
from apps.core.types import AuthenticatedHttpRequest
from apps.core.utils import get_client_ip

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Paths that never carry a session token
PUBLIC_PATH_PREFIXES = (
    "/admin/",
    "/api/v1/health",
    "/api/v1/auth/otp/",
    "/api/v1/auth/token/exchange",
)


class RequestContextMiddleware:
    """
    Bind a correlation id, client IP and user agent to structlog context.

    The correlation id is taken from the X-Correlation-ID header when the
    client sends one, and echoed back on the response.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        clear_contextvars()
        bind_contextvars(
            correlation_id=correlation_id,
            **{
                "request.ip_address": get_client_ip(request),
                "request.user_agent": request.headers.get("User-Agent", ""),
            },
        )
        try:
            response = self.get_response(request)
        finally:
            clear_contextvars()
        response[CORRELATION_HEADER] = correlation_id
        return response


class SessionTokenAuthMiddleware:
    """
    Authenticate ``Authorization: Bearer <session token>`` headers.

    Sets ``request.auth_user`` to the User for a valid session token, or None.
    ``request.auth_failed`` is True when a token was present but rejected.
    Never rejects the request itself; endpoints decide via SessionBearerAuth.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: AuthenticatedHttpRequest) -> HttpResponse:
        request.auth_user = None
        request.auth_failed = False

        if not request.path.startswith(PUBLIC_PATH_PREFIXES):
            self._authenticate(request)

        return self.get_response(request)

    def _authenticate(self, request: AuthenticatedHttpRequest) -> None:
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        from apps.accounts.exceptions import AccountDisabledError, TokenInvalidError
        from apps.accounts.services import authenticate_session_token

        token = auth_header.removeprefix("Bearer ").strip()
        try:
            user = authenticate_session_token(token)
        except (TokenInvalidError, AccountDisabledError) as e:
            logger.info("session_token_rejected", reason=e.message)
            request.auth_failed = True
            return

        request.auth_user = user
        bind_contextvars(**{"usr.uid": user.uid})
