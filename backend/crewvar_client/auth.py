"""
In-process auth SDK.

Holds the signed-in user in memory only; nothing survives a process
restart. Listeners are notified asynchronously: on subscribe with the
current user, and again on every sign-in or sign-out.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable

import structlog

from crewvar_client.api import CrewvarAPI
from crewvar_client.exceptions import CallableError
from crewvar_client.models import AuthUser

logger = structlog.get_logger(__name__)

AuthListener = Callable[[AuthUser | None], Awaitable[None] | None]


class AuthClient:
    """Live identity for this process."""

    def __init__(self, api: CrewvarAPI) -> None:
        self.api = api
        self._user: AuthUser | None = None
        self._listeners: list[AuthListener] = []
        self._pending: set[asyncio.Task] = set()

    @property
    def current_user(self) -> AuthUser | None:
        return self._user

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """
        Register a listener and schedule a notification with the current user.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)
        self._schedule(listener, self._user)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_in_with_custom_token(self, token: str) -> AuthUser:
        """
        Exchange a custom token for a session and make it the live user.

        Raises:
            CallableError: Token rejected or backend unreachable
        """
        grant = await self.api.exchange_token(token)
        user = AuthUser(
            uid=grant.uid,
            email=grant.email,
            display_name=grant.display_name or None,
            email_verified=grant.email_verified,
            id_token=grant.access_token,
            token_expires_at=grant.expires_at,
        )
        logger.info("auth_signed_in", uid=user.uid)
        self._set_user(user)
        return user

    async def sign_out(self) -> None:
        """Clear the live user. The backend is told on a best-effort basis."""
        user = self._user
        if user is None:
            return

        if user.id_token:
            try:
                await self.api.sign_out(user.id_token)
            except CallableError as e:
                logger.warning("auth_remote_sign_out_failed", uid=user.uid, code=e.code)

        logger.info("auth_signed_out", uid=user.uid)
        self._set_user(None)

    async def get_id_token(self) -> str | None:
        return self._user.id_token if self._user else None

    async def wait_for_listeners(self) -> None:
        """Wait until every scheduled notification has been delivered."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _set_user(self, user: AuthUser | None) -> None:
        self._user = user
        for listener in list(self._listeners):
            self._schedule(listener, user)

    def _schedule(self, listener: AuthListener, user: AuthUser | None) -> None:
        task = asyncio.get_running_loop().create_task(self._notify(listener, user))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _notify(self, listener: AuthListener, user: AuthUser | None) -> None:
        try:
            result = listener(user)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("auth_listener_failed")
