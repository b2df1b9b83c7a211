"""
Core schemas - shared Pydantic models for API responses.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str = Field(..., description="Stable error code, e.g. 'permission-denied'")
    detail: str = Field(..., description="Human-readable error message")

    model_config = {
        "json_schema_extra": {"example": {"code": "permission-denied", "detail": "Incorrect code."}}
    }


class SuccessResponse(BaseModel):
    """Acknowledgement with no payload."""

    success: bool = True
