"""
API endpoints for email OTP sign-in.

Both endpoints are unauthenticated. Failures surface as CallableErrors and
are rendered by the API-wide handler as {"code", "detail"}.
"""

from django.http import HttpRequest
from ninja import Router

from apps.core.schemas import ErrorResponse
from apps.otp.schemas import (
    RequestOTPRequest,
    RequestOTPResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from apps.otp.services import request_otp, verify_otp

router = Router(tags=["otp"])


@router.post(
    "/request",
    response={
        200: RequestOTPResponse,
        400: ErrorResponse,
        429: ErrorResponse,
        503: ErrorResponse,
    },
    operation_id="requestOtp",
    summary="Email a login code",
)
def request_login_code(request: HttpRequest, payload: RequestOTPRequest) -> RequestOTPResponse:
    """
    Issue a 6-digit login code and send it to the given email.

    Codes expire after 5 minutes. A new code can be requested at most once
    per minute per email.
    """
    request_otp(payload.email)
    return RequestOTPResponse()


@router.post(
    "/verify",
    response={
        200: VerifyOTPResponse,
        400: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
        429: ErrorResponse,
        504: ErrorResponse,
    },
    operation_id="verifyOtp",
    summary="Verify a login code",
)
def verify_login_code(request: HttpRequest, payload: VerifyOTPRequest) -> VerifyOTPResponse:
    """
    Verify a login code.

    On success the account is created if needed and a single-use custom
    token is returned for the token exchange endpoint.
    """
    result = verify_otp(payload.email, payload.code)
    return VerifyOTPResponse(token=result.token)
