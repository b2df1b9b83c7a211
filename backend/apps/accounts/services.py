"""
Identity services - accounts, profiles and token exchange.

These functions are the identity-provider side of passwordless login:
the OTP verifier calls get_or_create_user_by_email, ensure_profile and
create_custom_token; the client later trades the custom token for a
session token through exchange_custom_token.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.accounts.constants import JWTAction
from apps.accounts.exceptions import AccountDisabledError, TokenInvalidError
from apps.accounts.models import SignInToken, User, UserProfile
from apps.accounts.tokens import decode_token, encode_token, hash_token
from apps.core.logging import get_logger
from apps.core.utils import email_local_part

logger = get_logger(__name__)

PROFILE_EDITABLE_FIELDS = (
    "display_name",
    "profile_photo",
    "bio",
    "department_id",
    "role_id",
    "current_ship_id",
)


@dataclass
class SessionGrant:
    """Result of exchanging a custom token."""

    user: User
    profile: UserProfile
    access_token: str
    expires_at: datetime


def get_or_create_user_by_email(email: str) -> tuple[User, bool]:
    """
    Get or create the identity account for a normalized email.

    New accounts are created with ``email_verified=True`` because the caller
    has just proven control of the address. Tolerates a concurrent insert:
    the loser of the race re-reads the winner.

    Returns:
        Tuple of (user, created)
    """
    try:
        return User.objects.get(email=email), False
    except User.DoesNotExist:
        pass

    try:
        with transaction.atomic():
            user = User.objects.create_user(email=email, email_verified=True)
    except IntegrityError:
        # Concurrent insert won the race, fetch the winner
        return User.objects.get(email=email), False

    logger.info("identity_account_created", uid=user.uid, email=email)
    return user, True


def ensure_profile(user: User) -> UserProfile:
    """
    Ensure a profile exists for a user who just verified their email.

    Creates a default profile (display name from the email's local part) or
    marks an existing one as email-verified and bumps ``updated_at``.
    """
    try:
        profile = UserProfile.objects.get(user=user)
    except UserProfile.DoesNotExist:
        try:
            with transaction.atomic():
                return UserProfile.objects.create(
                    user=user,
                    email=user.email,
                    display_name=email_local_part(user.email),
                    is_email_verified=True,
                    is_active=True,
                    is_admin=False,
                    is_online=True,
                )
        except IntegrityError:
            profile = UserProfile.objects.get(user=user)

    profile.is_email_verified = True
    profile.save(update_fields=["is_email_verified", "updated_at"])
    return profile


def get_or_create_profile(user: User) -> UserProfile:
    """
    Get the profile for a user, creating a default one when missing.

    Used by profile reads for accounts that predate profile provisioning.
    """
    try:
        return UserProfile.objects.get(user=user)
    except UserProfile.DoesNotExist:
        try:
            with transaction.atomic():
                return UserProfile.objects.create(
                    user=user,
                    email=user.email,
                    display_name=email_local_part(user.email),
                    is_email_verified=user.email_verified,
                )
        except IntegrityError:
            return UserProfile.objects.get(user=user)


def update_profile(user: User, changes: dict[str, Any]) -> UserProfile:
    """Apply editable profile fields. Unknown keys are ignored."""
    profile = get_or_create_profile(user)
    update_fields = []
    for field in PROFILE_EDITABLE_FIELDS:
        if field in changes and changes[field] is not None:
            setattr(profile, field, changes[field])
            update_fields.append(field)

    if update_fields:
        profile.save(update_fields=[*update_fields, "updated_at"])
        logger.info("profile_updated", uid=user.uid, fields=update_fields)

    return profile


def create_custom_token(user: User) -> str:
    """
    Mint a single-use custom token bound to the user's uid.

    The token is short-lived (CUSTOM_TOKEN_EXPIRY_SECONDS) and recorded by
    hash so it can be exchanged exactly once.
    """
    token, exp = encode_token(
        user.uid,
        JWTAction.CUSTOM_TOKEN,
        settings.CUSTOM_TOKEN_EXPIRY_SECONDS,
    )
    SignInToken.objects.create(
        user=user,
        token_hash=hash_token(token),
        expires_at=datetime.fromtimestamp(exp, tz=UTC),
    )
    return token


def exchange_custom_token(token: str) -> SessionGrant:
    """
    Exchange a custom token for a session token.

    Raises:
        TokenInvalidError: Token is malformed, expired, unknown or already used.
        AccountDisabledError: The account was disabled after the token was minted.
    """
    payload = decode_token(token, JWTAction.CUSTOM_TOKEN)

    with transaction.atomic():
        try:
            record = (
                SignInToken.objects.select_for_update()
                .select_related("user")
                .get(token_hash=hash_token(token))
            )
        except SignInToken.DoesNotExist:
            raise TokenInvalidError() from None

        if record.is_used:
            logger.warning("custom_token_replayed", uid=payload["sub"])
            raise TokenInvalidError("Token has already been used.")
        if record.is_expired:
            raise TokenInvalidError("Token has expired.")

        user = record.user
        if user.uid != payload["sub"]:
            raise TokenInvalidError()
        if not user.is_active:
            raise AccountDisabledError()

        record.mark_used()

        profile = get_or_create_profile(user)
        profile.is_online = True
        profile.save(update_fields=["is_online", "updated_at"])

    access_token, exp = encode_token(
        user.uid,
        JWTAction.SESSION,
        settings.SESSION_TOKEN_EXPIRY_SECONDS,
        email=user.email,
    )

    logger.info("custom_token_exchanged", uid=user.uid)

    return SessionGrant(
        user=user,
        profile=profile,
        access_token=access_token,
        expires_at=datetime.fromtimestamp(exp, tz=UTC),
    )


def authenticate_session_token(token: str) -> User:
    """
    Resolve a session token to its User.

    Raises:
        TokenInvalidError: Token is invalid or its account no longer exists.
        AccountDisabledError: Account is disabled.
    """
    payload = decode_token(token, JWTAction.SESSION)
    try:
        user = User.objects.get(uid=payload["sub"])
    except User.DoesNotExist:
        raise TokenInvalidError() from None

    if not user.is_active:
        raise AccountDisabledError()
    return user


def sign_out(user: User) -> None:
    """Mark the user offline. Session tokens expire on their own."""
    UserProfile.objects.filter(user=user).update(is_online=False, updated_at=timezone.now())
    logger.info("user_signed_out", uid=user.uid)


def purge_sign_in_tokens(older_than: timedelta) -> int:
    """Delete sign-in token records created more than ``older_than`` ago."""
    cutoff = timezone.now() - older_than
    deleted, _ = SignInToken.objects.filter(created_at__lt=cutoff).delete()
    return deleted
