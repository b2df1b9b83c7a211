"""
Session manager.

Drives the reconciliation table with real events: loads the stored session
at startup, listens to the auth SDK, fetches and persists the profile for a
newly effective user, evaluates account status and erases the stored session
on sign-out.

Events are not serialised against slow fetches. Every identity change bumps
a generation counter, and work started for an older generation is dropped
after each await instead of overwriting newer state.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import ValidationError

from crewvar_client.api import CrewvarAPI
from crewvar_client.auth import AuthClient
from crewvar_client.config import ClientSettings
from crewvar_client.exceptions import CallableError, ProfileFetchFailed, StorageError
from crewvar_client.models import AccountStatus, AuthUser, BanInfo, UserProfile
from crewvar_client.reconciler import (
    Action,
    AuthEvent,
    AuthState,
    LiveAuthChanged,
    LoadingTimedOut,
    SignedOut,
    StoredSessionLoaded,
    Transition,
    reconcile,
)
from crewvar_client.session_store import SessionStore

logger = structlog.get_logger(__name__)

DELETED_MESSAGE = "Your account has been deleted by an administrator."
BANNED_MESSAGE = "Your account has been banned. Please contact support for more information."
DEACTIVATED_MESSAGE = "Your account has been deactivated. Please contact support."


@dataclass(frozen=True)
class SessionSnapshot:
    """What the UI observes."""

    user: AuthUser | None
    profile: UserProfile | None
    loading: bool
    status: AccountStatus
    ban_info: BanInfo | None


SnapshotListener = Callable[[SessionSnapshot], None]


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def normalize_profile(data: dict[str, Any], user: AuthUser, email_verification_enabled: bool) -> UserProfile:
    """
    Build a complete profile from a server document.

    Missing fields fall back to the auth identity or to defaults. Both
    snake_case and camelCase keys are accepted.
    """
    if email_verification_enabled:
        is_email_verified = bool(user.email_verified or _first(data, "is_email_verified", "isEmailVerified"))
    else:
        is_email_verified = False

    def flag(snake: str, camel: str, default: bool) -> bool:
        value = data.get(snake, data.get(camel))
        return default if value is None else bool(value)

    return UserProfile(
        id=_first(data, "id", "uid") or user.uid,
        email=_first(data, "email") or user.email or "",
        display_name=_first(data, "display_name", "displayName") or user.display_name or "",
        profile_photo=_first(data, "profile_photo", "profilePhoto") or "",
        bio=_first(data, "bio") or "",
        department_id=_first(data, "department_id", "departmentId") or "",
        role_id=_first(data, "role_id", "roleId") or "",
        current_ship_id=_first(data, "current_ship_id", "currentShipId") or "",
        is_email_verified=is_email_verified,
        is_active=flag("is_active", "isActive", True),
        is_admin=flag("is_admin", "isAdmin", False),
        is_online=flag("is_online", "isOnline", False),
        is_banned=flag("is_banned", "isBanned", False),
        ban_reason=_first(data, "ban_reason", "banReason") or "",
        ban_expires_at=_first(data, "ban_expires_at", "banExpiresAt"),
        is_deleted=flag("is_deleted", "isDeleted", False),
        delete_reason=_first(data, "delete_reason", "deleteReason") or "",
        deleted_at=_first(data, "deleted_at", "deletedAt"),
        created_at=_first(data, "created_at", "createdAt"),
        updated_at=_first(data, "updated_at", "updatedAt"),
    )


def evaluate_account_status(profile: UserProfile | None) -> tuple[AccountStatus, BanInfo | None]:
    """Deleted takes precedence over banned, banned over deactivated."""
    if profile is None:
        return AccountStatus.ACTIVE, None
    if profile.is_deleted:
        return AccountStatus.DELETED, BanInfo(
            reason="Account deleted",
            message=profile.delete_reason or DELETED_MESSAGE,
            expires_at=profile.deleted_at,
        )
    if profile.is_banned:
        return AccountStatus.BANNED, BanInfo(
            reason=profile.ban_reason or "Account banned",
            message=BANNED_MESSAGE,
            expires_at=profile.ban_expires_at,
        )
    if not profile.is_active:
        return AccountStatus.DEACTIVATED, BanInfo(reason="Account deactivated", message=DEACTIVATED_MESSAGE)
    return AccountStatus.ACTIVE, None


class SessionManager:
    """
    Owns the effective identity for the app.

    Reconciliation errors (storage, profile fetch) are logged and degrade to
    the safest state; they are never raised to callers of start() or to
    snapshot listeners.
    """

    def __init__(
        self,
        auth: AuthClient,
        api: CrewvarAPI,
        store: SessionStore,
        settings: ClientSettings,
    ) -> None:
        self.auth = auth
        self.api = api
        self.store = store
        self.settings = settings

        self._state = AuthState()
        self._generation = 0
        self._profile: UserProfile | None = None
        self._restored_profile: UserProfile | None = None
        self._status = AccountStatus.ACTIVE
        self._ban_info: BanInfo | None = None
        self._listeners: list[SnapshotListener] = []
        self._unsubscribe_auth: Callable[[], None] | None = None
        self._timeout_task: asyncio.Task | None = None

    @property
    def persistence_enabled(self) -> bool:
        return self.settings.native_session_persistence

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user(self) -> AuthUser | None:
        return self._state.effective_user

    @property
    def profile(self) -> UserProfile | None:
        return self._profile

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def status(self) -> AccountStatus:
        return self._status

    @property
    def ban_info(self) -> BanInfo | None:
        return self._ban_info

    @property
    def is_blocked(self) -> bool:
        return self._status != AccountStatus.ACTIVE

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            user=self.user,
            profile=self._profile,
            loading=self.loading,
            status=self._status,
            ban_info=self._ban_info,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener called with a snapshot after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(self) -> None:
        """
        Begin reconciliation.

        Subscribes to the auth SDK first so early notifications are held by
        the table, then runs the stored-session lookup.
        """
        self._timeout_task = asyncio.get_running_loop().create_task(self._loading_timeout())
        self._unsubscribe_auth = self.auth.subscribe(self._on_auth_changed)

        restored = await self._load_stored_user()
        await self.dispatch(StoredSessionLoaded(restored))

    async def stop(self) -> None:
        if self._unsubscribe_auth is not None:
            self._unsubscribe_auth()
            self._unsubscribe_auth = None
        if self._timeout_task is not None:
            self._timeout_task.cancel()
            try:
                await self._timeout_task
            except asyncio.CancelledError:
                pass
            self._timeout_task = None

    async def sign_out(self) -> None:
        """Sign out explicitly, overriding any restored session."""
        await self.dispatch(SignedOut())
        await self.auth.sign_out()

    async def update_profile(self, changes: dict[str, Any]) -> UserProfile:
        """
        Update the signed-in user's profile on the server.

        Raises:
            CallableError: No user signed in, or the server rejected the update
        """
        user = self.user
        if user is None or not user.id_token:
            raise CallableError("unauthenticated", "No user logged in")

        generation = self._generation
        data = await self.api.update_profile(user.id_token, changes)
        profile = normalize_profile(data, user, self.settings.email_verification_enabled)
        if generation != self._generation:
            return profile

        self._profile = profile
        if self.persistence_enabled:
            try:
                await self.store.save_session(user, profile)
            except StorageError as e:
                logger.error("session_save_failed", uid=user.uid, error=str(e))
        self._notify()
        return profile

    async def on_app_state_change(self, is_active: bool) -> None:
        """Record activity when the app returns to the foreground."""
        if not is_active or self.user is None or not self.persistence_enabled:
            return

        await self.store.touch()
        live = self.auth.current_user
        if live is not None and live.uid == self.user.uid and await self.store.needs_token_refresh():
            await self.store.refresh_token(live)

    async def dispatch(self, event: AuthEvent) -> None:
        """Run one event through the decision table and apply its action."""
        transition = reconcile(self._state, event)
        previous = self._state
        self._state = transition.state

        if transition.action in (Action.RESTORE, Action.ESTABLISH, Action.CLEAR):
            self._generation += 1

        logger.debug(
            "auth_event_reconciled",
            auth_event=type(event).__name__,
            action=str(transition.action),
            uid=self.user.uid if self.user else None,
        )

        await self._apply(transition, self._generation)
        if transition.action in (Action.NONE, Action.DEFER, Action.IGNORE) and previous.loading != self.loading:
            self._notify()

        if transition.replay is not None:
            await self.dispatch(transition.replay)

    async def _apply(self, transition: Transition, generation: int) -> None:
        action = transition.action
        user = transition.state.effective_user

        if action == Action.RESTORE:
            self._profile = self._restored_profile
            self._set_status(self._profile)
            logger.info("session_restored", uid=user.uid if user else None)
            self._notify()
        elif action == Action.ESTABLISH and user is not None:
            await self._establish(user, generation)
        elif action == Action.CLEAR:
            await self._clear()

    async def _establish(self, user: AuthUser, generation: int) -> None:
        try:
            profile = await self._fetch_profile(user)
        except ProfileFetchFailed as e:
            logger.warning("profile_fetch_failed", uid=user.uid, error=str(e))
            if generation == self._generation:
                self._profile = None
                self._status, self._ban_info = AccountStatus.ACTIVE, None
                self._notify()
            return

        if generation != self._generation:
            logger.info("stale_profile_discarded", uid=user.uid)
            return
        self._profile = profile

        if self.persistence_enabled:
            try:
                await self.store.save_session(user, profile)
            except StorageError as e:
                logger.error("session_save_failed", uid=user.uid, error=str(e))
            if generation != self._generation:
                return

        self._set_status(profile)
        if self._status == AccountStatus.DELETED:
            logger.info("deleted_account_signed_out", uid=user.uid)
            await self.sign_out()
            return

        self._notify()

    async def _clear(self) -> None:
        self._profile = None
        self._restored_profile = None
        # Keep the reason a deleted account was signed out until the next sign-in
        if self._status != AccountStatus.DELETED:
            self._status, self._ban_info = AccountStatus.ACTIVE, None
        if self.persistence_enabled:
            await self.store.clear()
        self._notify()

    async def _fetch_profile(self, user: AuthUser) -> UserProfile:
        if not user.id_token:
            raise ProfileFetchFailed("No access token for profile fetch")
        try:
            data = await self.api.get_profile(user.id_token)
        except CallableError as e:
            raise ProfileFetchFailed(f"{e.code}: {e.message}") from e
        try:
            return normalize_profile(data, user, self.settings.email_verification_enabled)
        except ValidationError as e:
            raise ProfileFetchFailed(f"Malformed profile: {e.error_count()} invalid fields") from e

    async def _load_stored_user(self) -> AuthUser | None:
        if not self.persistence_enabled:
            return None

        session = await self.store.get_session()
        profile = await self.store.get_profile()
        if session is None or profile is None:
            return None

        self._restored_profile = profile
        return session.to_user()

    def _set_status(self, profile: UserProfile | None) -> None:
        self._status, self._ban_info = evaluate_account_status(profile)

    async def _on_auth_changed(self, user: AuthUser | None) -> None:
        await self.dispatch(LiveAuthChanged(user))

    async def _loading_timeout(self) -> None:
        await asyncio.sleep(self.settings.loading_timeout_seconds)
        if self.loading:
            logger.warning("auth_loading_timeout", timeout_seconds=self.settings.loading_timeout_seconds)
            await self.dispatch(LoadingTimedOut())

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("session_listener_failed")
