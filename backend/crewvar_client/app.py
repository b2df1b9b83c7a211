"""
Application root.

CrewvarApp constructs and owns the HTTP client, auth SDK, session store and
session manager. Create one per process and use it as an async context
manager, or call init() and shutdown() explicitly.
"""

import time
from collections.abc import Callable

import httpx
import structlog

from crewvar_client.api import CrewvarAPI
from crewvar_client.auth import AuthClient
from crewvar_client.config import ClientSettings
from crewvar_client.models import AuthUser
from crewvar_client.session import SessionManager
from crewvar_client.session_store import SessionStore
from crewvar_client.storage import FilePreferences, Preferences

logger = structlog.get_logger(__name__)


class CrewvarApp:
    """
    Wires the client components together.

    Args:
        settings: Client settings; read from the environment when omitted
        preferences: Device storage; a JSON file at settings.storage_path by default
        transport: httpx transport override, used by tests
        clock: Epoch-seconds clock for the session store
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        preferences: Preferences | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or ClientSettings()
        self.api = CrewvarAPI(
            self.settings.api_base_url,
            timeout_seconds=self.settings.http_timeout_seconds,
            transport=transport,
        )
        self.auth = AuthClient(self.api)
        self.store = SessionStore(
            preferences or FilePreferences(self.settings.storage_path),
            self.settings.integrity_key.get_secret_value(),
            max_age_days=self.settings.max_session_age_days,
            token_lifetime_seconds=self.settings.token_lifetime_seconds,
            refresh_margin_seconds=self.settings.token_refresh_margin_seconds,
            clock=clock,
        )
        self.session = SessionManager(self.auth, self.api, self.store, self.settings)
        self._started = False

    async def init(self) -> None:
        if self._started:
            return
        self._started = True
        logger.info(
            "crewvar_app_init",
            native_session_persistence=self.settings.native_session_persistence,
            email_verification_enabled=self.settings.email_verification_enabled,
            oauth_enabled=self.settings.oauth_enabled,
        )
        await self.session.start()

    async def shutdown(self) -> None:
        if not self._started:
            return
        self._started = False
        await self.session.stop()
        await self.auth.wait_for_listeners()
        await self.api.aclose()
        logger.info("crewvar_app_shutdown")

    async def __aenter__(self) -> "CrewvarApp":
        await self.init()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    @property
    def sign_in_methods(self) -> list[str]:
        """Sign-in methods offered by this build."""
        methods = ["email_otp"]
        if self.settings.oauth_enabled:
            methods.append("oauth")
        return methods

    async def request_code(self, email: str) -> None:
        """Email a login code."""
        await self.api.request_otp(email)

    async def sign_in_with_code(self, email: str, code: str) -> AuthUser:
        """
        Verify a login code and sign in with the resulting custom token.

        Raises:
            CallableError: The server rejected the code or the token
        """
        token = await self.api.verify_otp(email, code)
        return await self.auth.sign_in_with_custom_token(token)

    async def sign_out(self) -> None:
        await self.session.sign_out()
