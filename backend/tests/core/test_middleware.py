"""
Tests for request middleware.

Covers correlation id binding and bearer session-token resolution.
"""

from unittest.mock import MagicMock

import pytest
from django.http import HttpRequest, HttpResponse
from structlog.contextvars import get_contextvars

from apps.accounts.constants import JWTAction
from apps.accounts.services import create_custom_token, exchange_custom_token
from apps.accounts.tokens import encode_token
from apps.core.middleware import RequestContextMiddleware, SessionTokenAuthMiddleware
from tests.accounts.factories import UserFactory


def make_request(path: str = "/api/v1/auth/me", auth_header: str | None = None, **meta) -> HttpRequest:
    """Create a bare HttpRequest."""
    request = HttpRequest()
    request.path = path
    request.method = "GET"
    request.META = {"REMOTE_ADDR": "10.0.0.1", **meta}
    if auth_header:
        request.META["HTTP_AUTHORIZATION"] = auth_header
    return request


class TestRequestContextMiddleware:
    """Tests for RequestContextMiddleware."""

    def test_binds_and_echoes_correlation_id(self) -> None:
        seen = {}

        def view(request):
            seen.update(get_contextvars())
            return HttpResponse()

        middleware = RequestContextMiddleware(view)
        response = middleware(make_request(HTTP_X_CORRELATION_ID="corr-1", HTTP_USER_AGENT="crewvar-ios"))

        assert response["X-Correlation-ID"] == "corr-1"
        assert seen["correlation_id"] == "corr-1"
        assert seen["request.ip_address"] == "10.0.0.1"
        assert seen["request.user_agent"] == "crewvar-ios"

    def test_generates_correlation_id(self) -> None:
        middleware = RequestContextMiddleware(lambda request: HttpResponse())

        response = middleware(make_request())

        assert len(response["X-Correlation-ID"]) == 36

    def test_clears_context_after_request(self) -> None:
        middleware = RequestContextMiddleware(lambda request: HttpResponse())

        middleware(make_request(HTTP_X_CORRELATION_ID="corr-2"))

        assert get_contextvars().get("correlation_id") is None


@pytest.mark.django_db
class TestSessionTokenAuthMiddleware:
    """Tests for SessionTokenAuthMiddleware."""

    def _run(self, request: HttpRequest) -> HttpRequest:
        get_response = MagicMock(return_value=HttpResponse())
        SessionTokenAuthMiddleware(get_response)(request)
        get_response.assert_called_once_with(request)
        return request

    def test_no_header_leaves_anonymous(self) -> None:
        request = self._run(make_request())

        assert request.auth_user is None
        assert request.auth_failed is False

    def test_non_bearer_header_ignored(self) -> None:
        request = self._run(make_request(auth_header="Basic abc"))

        assert request.auth_user is None
        assert request.auth_failed is False

    def test_valid_session_token(self) -> None:
        user = UserFactory.create()
        grant = exchange_custom_token(create_custom_token(user))

        request = self._run(make_request(auth_header=f"Bearer {grant.access_token}"))

        assert request.auth_user == user
        assert request.auth_failed is False

    def test_custom_token_is_rejected(self) -> None:
        token = create_custom_token(UserFactory.create())

        request = self._run(make_request(auth_header=f"Bearer {token}"))

        assert request.auth_user is None
        assert request.auth_failed is True

    def test_disabled_account_is_rejected(self) -> None:
        user = UserFactory.create(is_active=False)
        token, _ = encode_token(user.uid, JWTAction.SESSION, 3600)

        request = self._run(make_request(auth_header=f"Bearer {token}"))

        assert request.auth_user is None
        assert request.auth_failed is True

    @pytest.mark.parametrize(
        "path",
        ["/api/v1/health", "/api/v1/auth/otp/verify", "/api/v1/auth/token/exchange", "/admin/"],
    )
    def test_public_paths_skip_authentication(self, path: str) -> None:
        request = self._run(make_request(path=path, auth_header="Bearer garbage"))

        assert request.auth_user is None
        assert request.auth_failed is False
