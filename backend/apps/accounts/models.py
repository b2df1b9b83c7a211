"""
Accounts models - identity accounts, crew profiles and sign-in tokens.
"""

import secrets

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
from django.utils import timezone

from apps.core.models import TimestampedModel


def generate_uid() -> str:
    """Opaque public identifier handed to clients instead of the primary key."""
    return secrets.token_urlsafe(21)


class UserManager(BaseUserManager):
    """Custom manager for User model."""

    def create_user(
        self,
        email: str,
        **extra_fields,
    ) -> "User":
        """Create and return a passwordless user."""
        if not email:
            raise ValueError("Email is required")

        email = email.strip().lower()
        user = self.model(email=email, **extra_fields)
        # No password - login is by emailed one-time code
        user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(
        self,
        email: str,
        **extra_fields,
    ) -> "User":
        """Create and return a superuser (for Django admin access)."""
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Identity account.

    This is AUTH_USER_MODEL and plays the identity-provider role: one account
    per normalized email, addressed by ``uid`` in tokens and client storage.
    Application data lives on UserProfile.
    """

    uid = models.CharField(
        max_length=64,
        unique=True,
        default=generate_uid,
        editable=False,
        help_text="Public identifier used in tokens and on devices",
    )
    email = models.EmailField(unique=True, db_index=True)
    email_verified = models.BooleanField(default=False)

    is_active = models.BooleanField(
        default=True,
        help_text="Disabled accounts cannot exchange sign-in tokens",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Can access Django admin",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.email


class UserProfile(TimestampedModel):
    """
    Application profile for a crew member, keyed by the account uid.

    Moderation flags (ban, deactivation, deletion) live here; clients read
    them after sign-in to decide whether to block the session.
    """

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    email = models.EmailField()
    display_name = models.CharField(max_length=255, blank=True)
    profile_photo = models.URLField(max_length=500, blank=True)
    bio = models.TextField(blank=True)

    department_id = models.CharField(max_length=64, blank=True)
    role_id = models.CharField(max_length=64, blank=True)
    current_ship_id = models.CharField(max_length=64, blank=True)

    is_email_verified = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    is_admin = models.BooleanField(default=False)
    is_online = models.BooleanField(default=False)

    is_banned = models.BooleanField(default=False)
    ban_reason = models.CharField(max_length=255, blank=True)
    ban_expires_at = models.DateTimeField(null=True, blank=True)

    is_deleted = models.BooleanField(default=False)
    delete_reason = models.CharField(max_length=255, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.display_name or self.email} ({self.user.uid})"


class SignInToken(models.Model):
    """
    Single-use record for a minted custom sign-in token.

    The JWT itself is never stored; only its SHA-256 hash, so a leaked
    database cannot be replayed into sessions.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="sign_in_tokens",
    )
    token_hash = models.CharField(
        max_length=64,
        unique=True,
        db_index=True,
        help_text="SHA-256 hash of the custom token",
    )
    expires_at = models.DateTimeField(db_index=True)
    used_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Timestamp when the token was exchanged. NULL = unused.",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        status = "used" if self.is_used else ("expired" if self.is_expired else "valid")
        return f"SignInToken {self.pk} ({status})"

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    @property
    def is_expired(self) -> bool:
        return timezone.now() > self.expires_at

    def mark_used(self) -> None:
        self.used_at = timezone.now()
        self.save(update_fields=["used_at"])
