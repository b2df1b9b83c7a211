"""
Auth API schemas - Pydantic models for request/response.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from apps.accounts.models import UserProfile


class TokenExchangeRequest(BaseModel):
    """Request to exchange a custom token for a session."""

    token: str = Field(
        ...,
        description="Custom token returned by the OTP verify endpoint",
        examples=["eyJhbGciOiJSUzI1NiIsImtpZCI6..."],
    )


class SessionResponse(BaseModel):
    """Session established by a token exchange."""

    uid: str
    email: str
    display_name: str
    email_verified: bool
    access_token: str = Field(description="Bearer token for authenticated endpoints")
    expires_at: datetime = Field(description="When the access token stops being accepted")


class ProfileResponse(BaseModel):
    """Crew member profile."""

    id: str = Field(description="Account uid")
    email: str
    display_name: str
    profile_photo: str = ""
    bio: str = ""
    department_id: str = ""
    role_id: str = ""
    current_ship_id: str = ""
    is_email_verified: bool
    is_active: bool
    is_admin: bool
    is_online: bool
    is_banned: bool
    ban_reason: str = ""
    ban_expires_at: datetime | None = None
    is_deleted: bool
    delete_reason: str = ""
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "ProfileResponse":
        return cls(
            id=profile.user.uid,
            email=profile.email,
            display_name=profile.display_name,
            profile_photo=profile.profile_photo,
            bio=profile.bio,
            department_id=profile.department_id,
            role_id=profile.role_id,
            current_ship_id=profile.current_ship_id,
            is_email_verified=profile.is_email_verified,
            is_active=profile.is_active,
            is_admin=profile.is_admin,
            is_online=profile.is_online,
            is_banned=profile.is_banned,
            ban_reason=profile.ban_reason,
            ban_expires_at=profile.ban_expires_at,
            is_deleted=profile.is_deleted,
            delete_reason=profile.delete_reason,
            deleted_at=profile.deleted_at,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )


class UpdateProfileRequest(BaseModel):
    """Editable profile fields. Omitted fields are left unchanged."""

    display_name: str | None = Field(default=None, max_length=255)
    profile_photo: str | None = Field(default=None, max_length=500)
    bio: str | None = None
    department_id: str | None = Field(default=None, max_length=64)
    role_id: str | None = Field(default=None, max_length=64)
    current_ship_id: str | None = Field(default=None, max_length=64)
