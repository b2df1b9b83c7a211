"""
Tests for auth API endpoints.
"""

import pytest
from django.test import Client

from apps.accounts.models import UserProfile
from apps.accounts.services import create_custom_token, exchange_custom_token
from tests.accounts.factories import UserFactory, UserProfileFactory

EXCHANGE_URL = "/api/v1/auth/token/exchange"
ME_URL = "/api/v1/auth/me"
PROFILE_URL = "/api/v1/auth/me/profile"
SIGN_OUT_URL = "/api/v1/auth/sign-out"


def bearer(user) -> dict:
    grant = exchange_custom_token(create_custom_token(user))
    return {"HTTP_AUTHORIZATION": f"Bearer {grant.access_token}"}


@pytest.mark.django_db
class TestTokenExchangeEndpoint:
    """Tests for POST /auth/token/exchange."""

    def test_returns_session(self, api_client: Client) -> None:
        profile = UserProfileFactory.create(display_name="Sam")
        token = create_custom_token(profile.user)

        response = api_client.post(EXCHANGE_URL, data={"token": token}, content_type="application/json")

        assert response.status_code == 200
        body = response.json()
        assert body["uid"] == profile.user.uid
        assert body["email"] == profile.user.email
        assert body["display_name"] == "Sam"
        assert body["email_verified"] is True
        assert body["access_token"]
        assert body["expires_at"]

    def test_replay_is_unauthenticated(self, api_client: Client) -> None:
        token = create_custom_token(UserFactory.create())
        api_client.post(EXCHANGE_URL, data={"token": token}, content_type="application/json")

        response = api_client.post(EXCHANGE_URL, data={"token": token}, content_type="application/json")

        assert response.status_code == 401
        assert response.json() == {"code": "unauthenticated", "detail": "Token has already been used."}

    def test_garbage_token_is_unauthenticated(self, api_client: Client) -> None:
        response = api_client.post(EXCHANGE_URL, data={"token": "not-a-jwt"}, content_type="application/json")

        assert response.status_code == 401
        assert response.json()["code"] == "unauthenticated"

    def test_disabled_account_is_permission_denied(self, api_client: Client) -> None:
        user = UserFactory.create()
        token = create_custom_token(user)
        user.is_active = False
        user.save()

        response = api_client.post(EXCHANGE_URL, data={"token": token}, content_type="application/json")

        assert response.status_code == 403
        assert response.json()["code"] == "permission-denied"


@pytest.mark.django_db
class TestCurrentProfileEndpoint:
    """Tests for GET /auth/me."""

    def test_requires_bearer(self, api_client: Client) -> None:
        response = api_client.get(ME_URL)

        assert response.status_code == 401
        assert response.json() == {"code": "unauthenticated", "detail": "Not authenticated."}

    def test_rejects_invalid_bearer(self, api_client: Client) -> None:
        response = api_client.get(ME_URL, HTTP_AUTHORIZATION="Bearer nope")

        assert response.status_code == 401

    def test_returns_profile(self, api_client: Client) -> None:
        profile = UserProfileFactory.create(display_name="Sam", current_ship_id="ship-7")

        response = api_client.get(ME_URL, **bearer(profile.user))

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == profile.user.uid
        assert body["display_name"] == "Sam"
        assert body["current_ship_id"] == "ship-7"
        assert body["is_online"] is True
        assert body["is_banned"] is False
        assert body["is_deleted"] is False

    def test_reports_ban_fields(self, api_client: Client) -> None:
        profile = UserProfileFactory.create(is_banned=True, ban_reason="Spam")

        response = api_client.get(ME_URL, **bearer(profile.user))

        assert response.json()["is_banned"] is True
        assert response.json()["ban_reason"] == "Spam"

    def test_creates_missing_profile(self, api_client: Client) -> None:
        user = UserFactory.create(email="new.crew@example.com")
        headers = bearer(user)
        UserProfile.objects.filter(user=user).delete()

        response = api_client.get(ME_URL, **headers)

        assert response.status_code == 200
        assert response.json()["display_name"] == "new.crew"


@pytest.mark.django_db
class TestUpdateProfileEndpoint:
    """Tests for PATCH /auth/me/profile."""

    def test_updates_fields(self, api_client: Client) -> None:
        profile = UserProfileFactory.create()

        response = api_client.patch(
            PROFILE_URL,
            data={"display_name": "Bosun", "department_id": "deck"},
            content_type="application/json",
            **bearer(profile.user),
        )

        assert response.status_code == 200
        assert response.json()["display_name"] == "Bosun"
        profile.refresh_from_db()
        assert profile.department_id == "deck"

    def test_ignores_privileged_fields(self, api_client: Client) -> None:
        profile = UserProfileFactory.create()

        api_client.patch(
            PROFILE_URL,
            data={"is_admin": True},
            content_type="application/json",
            **bearer(profile.user),
        )

        profile.refresh_from_db()
        assert profile.is_admin is False

    def test_requires_bearer(self, api_client: Client) -> None:
        response = api_client.patch(PROFILE_URL, data={"bio": "x"}, content_type="application/json")

        assert response.status_code == 401


@pytest.mark.django_db
class TestSignOutEndpoint:
    """Tests for POST /auth/sign-out."""

    def test_marks_offline(self, api_client: Client) -> None:
        profile = UserProfileFactory.create()
        headers = bearer(profile.user)

        response = api_client.post(SIGN_OUT_URL, **headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        profile.refresh_from_db()
        assert profile.is_online is False


@pytest.mark.django_db
def test_health(api_client: Client) -> None:
    response = api_client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
