"""
Auth API endpoints.

Identity-provider operations used by the client after OTP verification:
- Custom token exchange for a session token
- Current profile read and update
- Sign-out
"""

from django.http import HttpRequest
from ninja import Router

from apps.accounts.schemas import (
    ProfileResponse,
    SessionResponse,
    TokenExchangeRequest,
    UpdateProfileRequest,
)
from apps.accounts.services import (
    exchange_custom_token,
    get_or_create_profile,
    sign_out,
    update_profile,
)
from apps.core.schemas import ErrorResponse, SuccessResponse
from apps.core.security import SessionBearerAuth

router = Router(tags=["auth"])
bearer_auth = SessionBearerAuth()


@router.post(
    "/token/exchange",
    response={200: SessionResponse, 401: ErrorResponse, 403: ErrorResponse},
    operation_id="exchangeCustomToken",
    summary="Exchange a custom token for a session",
)
def exchange_token(request: HttpRequest, payload: TokenExchangeRequest) -> SessionResponse:
    """
    Exchange the single-use custom token from OTP verification.

    Returns a bearer access token plus the identity snapshot the client
    persists on the device.
    """
    grant = exchange_custom_token(payload.token)
    return SessionResponse(
        uid=grant.user.uid,
        email=grant.user.email,
        display_name=grant.profile.display_name,
        email_verified=grant.user.email_verified,
        access_token=grant.access_token,
        expires_at=grant.expires_at,
    )


@router.get(
    "/me",
    response={200: ProfileResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getCurrentProfile",
    summary="Get current user's profile",
)
def get_current_profile(request: HttpRequest) -> ProfileResponse:
    """Get the authenticated user's profile, creating a default one if missing."""
    profile = get_or_create_profile(request.auth)  # type: ignore[attr-defined]
    return ProfileResponse.from_profile(profile)


@router.patch(
    "/me/profile",
    response={200: ProfileResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="updateProfile",
    summary="Update current user's profile",
)
def patch_profile(request: HttpRequest, payload: UpdateProfileRequest) -> ProfileResponse:
    """Update editable profile fields."""
    profile = update_profile(request.auth, payload.model_dump(exclude_unset=True))  # type: ignore[attr-defined]
    return ProfileResponse.from_profile(profile)


@router.post(
    "/sign-out",
    response={200: SuccessResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="signOut",
    summary="Sign out",
)
def sign_out_user(request: HttpRequest) -> SuccessResponse:
    """Mark the user offline. The client discards its session token."""
    sign_out(request.auth)  # type: ignore[attr-defined]
    return SuccessResponse()
