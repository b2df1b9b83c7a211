"""
Admin configuration for accounts app.
"""

from django.contrib import admin

from apps.accounts.models import SignInToken, User, UserProfile


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Admin for identity accounts."""

    list_display = ["email", "uid", "email_verified", "is_active", "created_at"]
    list_filter = ["email_verified", "is_active", "is_staff"]
    search_fields = ["email", "uid"]
    readonly_fields = ["uid", "created_at", "updated_at", "last_login"]
    exclude = ["password"]


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    """Admin for crew profiles, including moderation flags."""

    list_display = [
        "display_name",
        "email",
        "is_active",
        "is_banned",
        "is_deleted",
        "is_online",
        "updated_at",
    ]
    list_filter = ["is_active", "is_banned", "is_deleted", "is_admin"]
    search_fields = ["email", "display_name", "user__uid"]
    raw_id_fields = ["user"]


@admin.register(SignInToken)
class SignInTokenAdmin(admin.ModelAdmin):
    """Read-only view of minted sign-in tokens."""

    list_display = ["id", "user", "expires_at", "used_at", "created_at"]
    readonly_fields = ["user", "token_hash", "expires_at", "used_at", "created_at"]
    raw_id_fields = ["user"]
