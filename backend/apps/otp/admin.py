"""
Admin configuration for OTP app.
"""

from django.contrib import admin

from apps.core.logging import mask_email
from apps.otp.models import OTPRequest


@admin.register(OTPRequest)
class OTPRequestAdmin(admin.ModelAdmin):
    """Read-only view of issued login codes."""

    list_display = [
        "id",
        "email_masked",
        "state_display",
        "attempts",
        "created_at",
        "expires_at",
    ]
    list_filter = ["used", "created_at"]
    search_fields = ["email"]
    readonly_fields = [
        "email",
        "otp_hash",
        "salt",
        "used",
        "attempts",
        "created_at",
        "expires_at",
        "verified_at",
    ]

    def email_masked(self, obj: OTPRequest) -> str:
        return mask_email(obj.email)

    email_masked.short_description = "Email"  # type: ignore[attr-defined]

    def state_display(self, obj: OTPRequest) -> str:
        return OTPRequest.State(obj.state).label

    state_display.short_description = "State"  # type: ignore[attr-defined]

    def has_add_permission(self, request) -> bool:  # type: ignore[no-untyped-def]
        return False
