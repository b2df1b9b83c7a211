"""
Tests for accounts models.
"""

from datetime import timedelta

import pytest
from django.db import IntegrityError
from django.utils import timezone

from apps.accounts.models import SignInToken, User
from tests.accounts.factories import UserFactory, UserProfileFactory


@pytest.mark.django_db
class TestUserModel:
    """Tests for User model."""

    def test_create_user(self) -> None:
        """Should create a passwordless user with a generated uid."""
        user = User.objects.create_user(email="  Crew@Example.COM ")

        assert user.email == "crew@example.com"
        assert user.uid
        assert user.is_active is True
        assert user.is_staff is False
        assert not user.has_usable_password()

    def test_uids_are_unique(self) -> None:
        first = UserFactory.create()
        second = UserFactory.create()

        assert first.uid != second.uid

    def test_user_str(self) -> None:
        """String representation should be email."""
        user = UserFactory.create(email="test@example.com")

        assert str(user) == "test@example.com"

    def test_email_unique(self) -> None:
        """Email must be unique."""
        UserFactory.create(email="duplicate@example.com")

        with pytest.raises(IntegrityError):
            UserFactory.create(email="duplicate@example.com")

    def test_create_user_requires_email(self) -> None:
        with pytest.raises(ValueError, match="Email is required"):
            User.objects.create_user(email="")

    def test_create_superuser(self) -> None:
        user = User.objects.create_superuser(email="admin@example.com")

        assert user.is_staff is True
        assert user.is_superuser is True


@pytest.mark.django_db
class TestUserProfileModel:
    """Tests for UserProfile model."""

    def test_one_profile_per_user(self) -> None:
        profile = UserProfileFactory.create()

        with pytest.raises(IntegrityError):
            UserProfileFactory.create(user=profile.user)

    def test_str_uses_display_name(self) -> None:
        profile = UserProfileFactory.create(display_name="Sam")

        assert str(profile) == f"Sam ({profile.user.uid})"


@pytest.mark.django_db
class TestSignInTokenModel:
    """Tests for SignInToken model."""

    def _token(self, **kwargs) -> SignInToken:
        defaults = {
            "user": UserFactory.create(),
            "token_hash": "a" * 64,
            "expires_at": timezone.now() + timedelta(minutes=5),
        }
        defaults.update(kwargs)
        return SignInToken.objects.create(**defaults)

    def test_valid_token(self) -> None:
        token = self._token()

        assert token.is_used is False
        assert token.is_expired is False
        assert str(token).endswith("(valid)")

    def test_expired_token(self) -> None:
        token = self._token(expires_at=timezone.now() - timedelta(seconds=1))

        assert token.is_expired is True
        assert str(token).endswith("(expired)")

    def test_mark_used(self) -> None:
        token = self._token()

        token.mark_used()

        token.refresh_from_db()
        assert token.is_used is True
        assert str(token).endswith("(used)")
