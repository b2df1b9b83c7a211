"""
Django Ninja API configuration.
"""

from django.http import HttpRequest, HttpResponse
from ninja import NinjaAPI
from ninja.errors import AuthenticationError, ValidationError

from apps.accounts.api import router as auth_router
from apps.core.errors import CallableError, ErrorCode
from apps.core.logging import get_logger
from apps.otp.api import router as otp_router

logger = get_logger(__name__)

api = NinjaAPI(
    title="Crewvar Auth API",
    version="1.0.0",
    description="Passwordless email sign-in for Crewvar: one-time codes, token exchange and profile.",
    openapi_extra={
        "info": {
            "contact": {"name": "API Support"},
        },
        "tags": [
            {
                "name": "otp",
                "description": "Email one-time code issue and verification",
            },
            {
                "name": "auth",
                "description": "Token exchange, profile and session management",
            },
            {
                "name": "health",
                "description": "Service health and readiness checks",
            },
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "bearerFormat": "JWT",
                    "description": "Session token obtained from /auth/token/exchange. Include as: Authorization: Bearer <access_token>",
                }
            }
        },
    },
)

# Register routers
api.add_router("/auth/otp", otp_router)
api.add_router("/auth", auth_router)


@api.exception_handler(CallableError)
def callable_error_handler(request: HttpRequest, exc: CallableError) -> HttpResponse:
    """Render domain errors as {"code", "detail"} with the mapped HTTP status."""
    return api.create_response(
        request,
        {"code": str(exc.code), "detail": exc.message},
        status=exc.status_code,
    )


@api.exception_handler(ValidationError)
def validation_error_handler(request: HttpRequest, exc: ValidationError) -> HttpResponse:
    """Malformed request bodies are reported as invalid-argument."""
    logger.info("request_validation_failed", path=request.path, errors=len(exc.errors))
    return api.create_response(
        request,
        {"code": str(ErrorCode.INVALID_ARGUMENT), "detail": "Invalid request."},
        status=400,
    )


@api.exception_handler(AuthenticationError)
def authentication_error_handler(request: HttpRequest, exc: AuthenticationError) -> HttpResponse:
    return api.create_response(
        request,
        {"code": str(ErrorCode.UNAUTHENTICATED), "detail": "Not authenticated."},
        status=401,
    )


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
