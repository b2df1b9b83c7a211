"""
HTTP client for the Crewvar auth backend.

Wraps an httpx.AsyncClient. Non-2xx responses are raised as CallableError
carrying the server's ``code`` and ``detail`` unchanged; network failures are
raised as ``unavailable``.
"""

from datetime import datetime
from typing import Any

import httpx
import structlog
from pydantic import BaseModel

from crewvar_client.exceptions import CallableError

logger = structlog.get_logger(__name__)

# Used when an error response has no callable code in its body
CODE_BY_STATUS = {
    400: "invalid-argument",
    401: "unauthenticated",
    403: "permission-denied",
    404: "not-found",
    429: "resource-exhausted",
    503: "unavailable",
    504: "deadline-exceeded",
}


class SessionGrant(BaseModel):
    """Result of exchanging a custom token."""

    uid: str
    email: str
    display_name: str = ""
    email_verified: bool = False
    access_token: str
    expires_at: datetime


class CrewvarAPI:
    """Async client for the backend's auth endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
        access_token: str | None = None,
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else None

        try:
            response = await self._client.request(method, path, json=json_data, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("api_request_failed", method=method, path=path, error=str(exc))
            raise CallableError("unavailable", "Could not reach the server.") from exc

        if response.is_success:
            try:
                data = response.json()
            except ValueError:
                data = None
            if not isinstance(data, dict):
                logger.warning("api_unexpected_response", method=method, path=path, status=response.status_code)
                raise CallableError("internal", "Unexpected response from the server.", status_code=response.status_code)
            return data

        code = CODE_BY_STATUS.get(response.status_code, "internal")
        message = response.reason_phrase or "Request failed."
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("code") or code
            message = body.get("detail") or message

        logger.info("api_error_response", method=method, path=path, status=response.status_code, code=code)
        raise CallableError(code, message, status_code=response.status_code)

    async def request_otp(self, email: str) -> None:
        """Ask the backend to email a login code."""
        await self._request("POST", "/auth/otp/request", json_data={"email": email})

    async def verify_otp(self, email: str, code: str) -> str:
        """Verify a login code and return the custom token."""
        data = await self._request("POST", "/auth/otp/verify", json_data={"email": email, "code": code})
        return data["token"]

    async def exchange_token(self, token: str) -> SessionGrant:
        data = await self._request("POST", "/auth/token/exchange", json_data={"token": token})
        return SessionGrant.model_validate(data)

    async def get_profile(self, access_token: str) -> dict[str, Any]:
        return await self._request("GET", "/auth/me", access_token=access_token)

    async def update_profile(self, access_token: str, changes: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PATCH", "/auth/me/profile", json_data=changes, access_token=access_token)

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/auth/sign-out", access_token=access_token)
