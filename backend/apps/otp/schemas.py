"""
Schemas for the OTP endpoints.

Fields are plain strings; shape validation happens in the services so that
malformed input is reported as invalid-argument.
"""

from pydantic import BaseModel, Field

from apps.core.utils import MAX_EMAIL_LENGTH


class RequestOTPRequest(BaseModel):
    """Request a login code by email."""

    email: str = Field(
        default="",
        max_length=MAX_EMAIL_LENGTH,
        description="Email address to send the code to",
        examples=["crew@example.com"],
    )


class RequestOTPResponse(BaseModel):
    """Response after a code was issued and sent."""

    success: bool = True


class VerifyOTPRequest(BaseModel):
    """Submit a login code."""

    email: str = Field(default="", max_length=MAX_EMAIL_LENGTH, examples=["crew@example.com"])
    code: str = Field(
        default="",
        max_length=32,
        description="The 6-digit code received by email",
        examples=["123456"],
    )


class VerifyOTPResponse(BaseModel):
    """Response after a successful verification."""

    success: bool = True
    token: str = Field(description="Single-use custom token to exchange for a session")
