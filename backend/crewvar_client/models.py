"""
Identity and profile types shared across the client.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


@dataclass(frozen=True)
class AuthUser:
    """Identity reported by the auth SDK or restored from the device."""

    uid: str
    email: str | None = None
    display_name: str | None = None
    email_verified: bool = False
    id_token: str | None = None
    token_expires_at: datetime | None = None


class UserProfile(BaseModel):
    """Application profile with every field defaulted."""

    id: str
    email: str = ""
    display_name: str = ""
    profile_photo: str = ""
    bio: str = ""
    department_id: str = ""
    role_id: str = ""
    current_ship_id: str = ""
    is_email_verified: bool = False
    is_active: bool = True
    is_admin: bool = False
    is_online: bool = False
    is_banned: bool = False
    ban_reason: str = ""
    ban_expires_at: datetime | None = None
    is_deleted: bool = False
    delete_reason: str = ""
    deleted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AccountStatus(StrEnum):
    ACTIVE = "active"
    BANNED = "banned"
    DEACTIVATED = "deactivated"
    DELETED = "deleted"


@dataclass(frozen=True)
class BanInfo:
    """Why an authenticated account is blocked."""

    reason: str
    message: str
    expires_at: datetime | None = None
