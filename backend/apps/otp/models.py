"""
OTP request models.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


class OTPRequest(models.Model):
    """
    One outstanding email login code.

    Only the salted SHA-256 digest of the code is stored. Records are never
    reactivated once ``used`` is set, and are kept after use as history for
    cooldown checks and auditing.

    Lifecycle: ACTIVE (attempts 0..max-1) -> VERIFIED | EXPIRED | ATTEMPTS_EXHAUSTED.
    """

    class State(models.TextChoices):
        ACTIVE = "active", "Active"
        VERIFIED = "verified", "Verified"
        EXPIRED = "expired", "Expired"
        ATTEMPTS_EXHAUSTED = "attempts_exhausted", "Attempts exhausted"

    email = models.EmailField(
        db_index=True,
        help_text="Normalized (trimmed, lower-cased) email address",
    )
    otp_hash = models.CharField(
        max_length=64,
        help_text="SHA-256 hex digest of code + salt",
    )
    salt = models.CharField(max_length=32, help_text="Per-request random salt (hex)")

    used = models.BooleanField(default=False)
    attempts = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of wrong-code submissions",
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    expires_at = models.DateTimeField()
    verified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["email", "used", "-created_at"], name="otp_email_active_idx"),
        ]

    def __str__(self) -> str:
        return f"OTP #{self.pk} ({self.state})"

    @property
    def is_expired(self) -> bool:
        """Check if the code's lifetime has passed."""
        return timezone.now() > self.expires_at

    @property
    def state(self) -> str:
        """Lifecycle state derived from the stored flags."""
        if self.verified_at is not None:
            return self.State.VERIFIED
        if self.attempts >= settings.OTP_MAX_ATTEMPTS:
            return self.State.ATTEMPTS_EXHAUSTED
        if self.used or self.is_expired:
            return self.State.EXPIRED
        return self.State.ACTIVE

    def mark_used(self) -> None:
        """Terminate the record without a successful verification."""
        self.used = True
        self.save(update_fields=["used"])

    def mark_verified(self) -> None:
        """Consume the record after a correct code."""
        self.used = True
        self.verified_at = timezone.now()
        self.save(update_fields=["used", "verified_at"])
