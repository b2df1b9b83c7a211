"""
OTP issuing and verification services.

request_otp creates a record and emails the code; verify_otp checks a
submitted code and, on success, provisions the account and mints a custom
token the client exchanges for a session.
"""

import hashlib
import hmac
import re
import secrets
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.accounts.models import User
from apps.accounts.services import create_custom_token, ensure_profile, get_or_create_user_by_email
from apps.core.logging import get_logger
from apps.core.utils import is_valid_email, normalize_email
from apps.otp.email_client import EmailError, send_otp_email
from apps.otp.exceptions import (
    InvalidInputError,
    OTPAttemptsExhaustedError,
    OTPCooldownError,
    OTPDeliveryError,
    OTPError,
    OTPExpiredError,
    OTPIncorrectCodeError,
    OTPNotFoundError,
)
from apps.otp.models import OTPRequest

logger = get_logger(__name__)

# Exactly six ASCII digits (str.isdigit and \d accept other scripts)
CODE_PATTERN = re.compile(r"[0-9]{6}")


@dataclass
class VerificationResult:
    """Outcome of a successful verification."""

    user: User
    token: str
    user_created: bool


def generate_otp_code() -> str:
    """Generate a uniformly random code in 100000..999999 from the OS CSPRNG."""
    return str(100000 + secrets.randbelow(900000))


def generate_salt() -> str:
    """Generate a fresh 16-byte salt, hex encoded."""
    return secrets.token_hex(16)


def hash_otp(code: str, salt: str) -> str:
    """SHA-256 hex digest of code + salt."""
    return hashlib.sha256(f"{code}{salt}".encode()).hexdigest()


def code_matches(code: str, otp_request: OTPRequest) -> bool:
    """Compare a submitted code against a stored hash in constant time."""
    return hmac.compare_digest(hash_otp(code, otp_request.salt), otp_request.otp_hash)


def find_active_request(email: str, for_update: bool = False) -> OTPRequest | None:
    """
    Get the most recently created unused request for an email.

    Expiry is not considered here; verification checks it separately.
    Pass ``for_update=True`` inside a transaction to lock the row.
    """
    queryset = OTPRequest.objects.filter(email=email, used=False).order_by("-created_at")
    if for_update:
        queryset = queryset.select_for_update()
    return queryset.first()


def _clean_email(email: object) -> str:
    normalized = normalize_email(email)
    if not is_valid_email(normalized):
        raise InvalidInputError("Invalid email")
    return normalized


def _clean_code(code: object) -> str:
    cleaned = "" if code is None else str(code).strip()
    if not CODE_PATTERN.fullmatch(cleaned):
        raise InvalidInputError("Invalid code")
    return cleaned


def request_otp(email: object) -> OTPRequest:
    """
    Issue a login code for an email address.

    Enforces a cooldown against the most recent unused request. The record is
    persisted before the email is sent; if sending fails the record is marked
    used so it can neither be redeemed nor hold the cooldown.

    Args:
        email: Raw email from the caller

    Returns:
        The created OTPRequest (the plaintext code is not retained)

    Raises:
        InvalidInputError: Email is empty or malformed
        OTPCooldownError: A code was issued less than the cooldown ago
        OTPDeliveryError: The email could not be sent
    """
    email = _clean_email(email)
    now = timezone.now()

    existing = find_active_request(email)
    cooldown = timedelta(seconds=settings.OTP_RESEND_COOLDOWN_SECONDS)
    if existing is not None and now - existing.created_at < cooldown:
        logger.warning("otp_cooldown_active", email=email, otp_id=existing.pk)
        raise OTPCooldownError()

    code = generate_otp_code()
    salt = generate_salt()
    otp_request = OTPRequest.objects.create(
        email=email,
        otp_hash=hash_otp(code, salt),
        salt=salt,
        used=False,
        attempts=0,
        created_at=now,
        expires_at=now + timedelta(seconds=settings.OTP_TTL_SECONDS),
    )

    try:
        send_otp_email(email, code, ttl_minutes=settings.OTP_TTL_SECONDS // 60)
    except EmailError as e:
        otp_request.mark_used()
        logger.error("otp_email_failed", email=email, otp_id=otp_request.pk, error=str(e))
        raise OTPDeliveryError() from None

    logger.info("otp_requested", email=email, otp_id=otp_request.pk)
    return otp_request


def verify_otp(email: object, code: object) -> VerificationResult:
    """
    Verify a submitted login code.

    Checks run in order: input shape, active record lookup, expiry, attempt
    budget, then a constant-time hash comparison. The attempt budget is
    checked before comparing, so OTP_MAX_ATTEMPTS wrong codes are answered
    with "incorrect code" and the next call is rejected outright.

    The lookup, checks and their writes run in one transaction with the row
    locked, so parallel submissions cannot under-count attempts. Terminal
    outcomes are committed before the error is raised.

    Returns:
        VerificationResult with the account and a single-use custom token

    Raises:
        InvalidInputError: Email or code malformed
        OTPNotFoundError: No unused request for the email
        OTPExpiredError: The request's lifetime has passed
        OTPAttemptsExhaustedError: Attempt budget already spent
        OTPIncorrectCodeError: Code does not match
    """
    email = _clean_email(email)
    code = _clean_code(code)

    outcome: VerificationResult | OTPError

    with transaction.atomic():
        otp_request = find_active_request(email, for_update=True)

        if otp_request is None:
            outcome = OTPNotFoundError()
        elif otp_request.is_expired:
            otp_request.mark_used()
            outcome = OTPExpiredError()
        elif otp_request.attempts >= settings.OTP_MAX_ATTEMPTS:
            otp_request.mark_used()
            outcome = OTPAttemptsExhaustedError()
        elif not code_matches(code, otp_request):
            OTPRequest.objects.filter(pk=otp_request.pk).update(attempts=F("attempts") + 1)
            outcome = OTPIncorrectCodeError()
        else:
            otp_request.mark_verified()
            outcome = _provision_identity(email)

    if isinstance(outcome, OTPError):
        logger.info(
            "otp_verification_failed",
            email=email,
            otp_id=otp_request.pk if otp_request else None,
            code=str(outcome.code),
        )
        raise outcome

    logger.info(
        "otp_verified",
        email=email,
        otp_id=otp_request.pk if otp_request else None,
        uid=outcome.user.uid,
        user_created=outcome.user_created,
    )
    return outcome


def _provision_identity(email: str) -> VerificationResult:
    """Ensure account and profile exist, then mint the custom token."""
    user, created = get_or_create_user_by_email(email)
    ensure_profile(user)
    token = create_custom_token(user)
    return VerificationResult(user=user, token=token, user_created=created)


def purge_otp_requests(older_than_days: int | None = None) -> int:
    """
    Delete OTP requests created before the retention window.

    Intended for a scheduled maintenance job; never called on the request path.

    Returns:
        Number of records deleted
    """
    if older_than_days is None:
        older_than_days = settings.OTP_RETENTION_DAYS

    cutoff = timezone.now() - timedelta(days=older_than_days)
    deleted, _ = OTPRequest.objects.filter(created_at__lt=cutoff).delete()

    if deleted:
        logger.info("otp_requests_purged", count=deleted, older_than_days=older_than_days)

    return deleted
