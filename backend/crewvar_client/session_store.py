"""
Persisted session for the device.

The auth SDK keeps its user in memory only, so the last signed-in identity
is stored in device preferences and used to restore the user on cold start.

Four keys make up a session:
- the session snapshot (JSON)
- the cached profile (JSON)
- the time the session was last written or touched
- an HMAC-SHA256 tag over the exact session JSON

The tag is re-checked on every read. A missing or mismatched tag, or a
session older than the maximum age, erases all four keys.
"""

import hashlib
import hmac
import json
import secrets
import time
from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from pydantic import BaseModel, ValidationError

from crewvar_client.exceptions import IntegrityCheckFailed, SessionExpired, StorageError
from crewvar_client.models import AuthUser, UserProfile
from crewvar_client.storage import Preferences

logger = structlog.get_logger(__name__)

SESSION_KEY = "crewvar_user_session"
USER_PROFILE_KEY = "crewvar_user_profile"
SESSION_TIMESTAMP_KEY = "crewvar_session_timestamp"
SECURITY_KEY = "crewvar_security_hash"
# Generated integrity key; survives sign-out
DEVICE_KEY = "crewvar_device_key"

SESSION_KEYS = (SESSION_KEY, USER_PROFILE_KEY, SESSION_TIMESTAMP_KEY, SECURITY_KEY)

DAY_MS = 24 * 60 * 60 * 1000


class StoredSession(BaseModel):
    """Identity snapshot saved on the device. Times are epoch milliseconds."""

    uid: str
    email: str | None = None
    display_name: str | None = None
    email_verified: bool = False
    access_token: str | None = None
    expires_at: int | None = None
    timestamp: int
    last_activity: int

    def to_user(self) -> AuthUser:
        """Identity restored from this snapshot."""
        return AuthUser(
            uid=self.uid,
            email=self.email,
            display_name=self.display_name,
            email_verified=self.email_verified,
            id_token=self.access_token,
            token_expires_at=datetime.fromtimestamp(self.expires_at / 1000, tz=UTC)
            if self.expires_at
            else None,
        )


# The cached profile has the same shape as the normalised profile
StoredUserProfile = UserProfile


def _canonical(session: StoredSession) -> str:
    return json.dumps(session.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))


class SessionStore:
    """
    Read and write the persisted session.

    Args:
        preferences: Key/value backend
        integrity_key: HMAC key; when empty a per-device key is generated
        max_age_days: Sessions older than this are discarded
        token_lifetime_seconds: Assumed token lifetime when the SDK gives none
        refresh_margin_seconds: needs_token_refresh() window before expiry
        clock: Returns the current time in epoch seconds
    """

    def __init__(
        self,
        preferences: Preferences,
        integrity_key: str | bytes | None = None,
        *,
        max_age_days: int = 30,
        token_lifetime_seconds: int = 3600,
        refresh_margin_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.preferences = preferences
        if isinstance(integrity_key, str):
            integrity_key = integrity_key.encode()
        self._key: bytes | None = integrity_key or None
        self.max_age_ms = max_age_days * DAY_MS
        self.token_lifetime_ms = token_lifetime_seconds * 1000
        self.refresh_margin_ms = refresh_margin_seconds * 1000
        self.clock = clock

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    async def _signing_key(self) -> bytes:
        if self._key is None:
            stored = await self.preferences.get(DEVICE_KEY)
            if not stored:
                stored = secrets.token_hex(32)
                await self.preferences.set_many({DEVICE_KEY: stored})
            self._key = stored.encode()
        return self._key

    async def _tag(self, payload: str) -> str:
        return hmac.new(await self._signing_key(), payload.encode(), hashlib.sha256).hexdigest()

    async def _write_session(self, session: StoredSession, profile: UserProfile | None = None) -> None:
        payload = _canonical(session)
        values = {
            SESSION_KEY: payload,
            SESSION_TIMESTAMP_KEY: str(self._now_ms()),
            SECURITY_KEY: await self._tag(payload),
        }
        if profile is not None:
            values[USER_PROFILE_KEY] = profile.model_dump_json()
        await self.preferences.set_many(values)

    async def save_session(self, user: AuthUser, profile: UserProfile | None = None) -> StoredSession:
        """
        Persist the identity (and optionally its profile), replacing any
        previous session.

        Raises:
            StorageError: If the preferences backend fails
        """
        now = self._now_ms()
        expires_at = None
        if user.id_token:
            if user.token_expires_at is not None:
                expires_at = int(user.token_expires_at.timestamp() * 1000)
            else:
                expires_at = now + self.token_lifetime_ms

        session = StoredSession(
            uid=user.uid,
            email=user.email,
            display_name=user.display_name,
            email_verified=user.email_verified,
            access_token=user.id_token,
            expires_at=expires_at,
            timestamp=now,
            last_activity=now,
        )
        await self._write_session(session, profile)
        logger.info("session_saved", uid=user.uid, has_profile=profile is not None)
        return session

    async def load_session(self) -> StoredSession | None:
        """
        Read and validate the stored session.

        Returns None when nothing is stored.

        Raises:
            IntegrityCheckFailed: Tag missing or does not match
            SessionExpired: Session older than the maximum age
            StorageError: If the preferences backend fails
        """
        payload = await self.preferences.get(SESSION_KEY)
        if not payload:
            return None

        stored_tag = await self.preferences.get(SECURITY_KEY)
        expected_tag = await self._tag(payload)
        if not stored_tag or not hmac.compare_digest(stored_tag.encode(), expected_tag.encode()):
            raise IntegrityCheckFailed("Stored session integrity tag mismatch")

        try:
            session = StoredSession.model_validate_json(payload)
        except ValidationError as e:
            raise IntegrityCheckFailed("Stored session is malformed") from e

        now = self._now_ms()
        if session.timestamp < now - self.max_age_ms:
            raise SessionExpired("Stored session is older than the maximum age")

        if session.expires_at is not None and session.expires_at < now:
            # Token is advisory; the session stays valid but needs a refresh
            session = session.model_copy(update={"access_token": None, "expires_at": None})

        return session

    async def get_session(self) -> StoredSession | None:
        """
        Get the stored session, or None if absent or invalid.

        Invalid sessions are erased. Storage failures are logged and reported
        as no session.
        """
        try:
            return await self.load_session()
        except IntegrityCheckFailed as e:
            logger.warning("stored_session_integrity_failed", error=str(e))
        except SessionExpired:
            logger.info("stored_session_expired")
        except StorageError as e:
            logger.error("stored_session_read_failed", error=str(e))
            return None

        await self.clear()
        return None

    async def get_profile(self) -> UserProfile | None:
        """Get the cached profile, or None if absent or unreadable."""
        try:
            payload = await self.preferences.get(USER_PROFILE_KEY)
        except StorageError as e:
            logger.error("stored_profile_read_failed", error=str(e))
            return None
        if not payload:
            return None

        try:
            return UserProfile.model_validate_json(payload)
        except ValidationError:
            logger.warning("stored_profile_malformed")
            return None

    async def clear(self) -> None:
        """Erase the session, profile, timestamp and tag in one write."""
        try:
            await self.preferences.remove_many(SESSION_KEYS)
        except StorageError as e:
            logger.error("stored_session_clear_failed", error=str(e))
            return
        logger.info("session_cleared")

    async def has_valid_session(self) -> bool:
        return await self.get_session() is not None

    async def touch(self) -> None:
        """Record foreground activity on the stored session."""
        session = await self.get_session()
        if session is None:
            return
        session.last_activity = self._now_ms()
        try:
            await self._write_session(session)
        except StorageError as e:
            logger.error("session_touch_failed", error=str(e))

    async def refresh_token(self, user: AuthUser) -> None:
        """Store a fresh access token for the same user."""
        session = await self.get_session()
        if session is None or session.uid != user.uid or not user.id_token:
            return

        now = self._now_ms()
        session.access_token = user.id_token
        session.expires_at = (
            int(user.token_expires_at.timestamp() * 1000)
            if user.token_expires_at is not None
            else now + self.token_lifetime_ms
        )
        session.last_activity = now
        try:
            await self._write_session(session)
        except StorageError as e:
            logger.error("session_token_refresh_failed", error=str(e))
            return
        logger.info("session_token_refreshed", uid=user.uid)

    async def needs_token_refresh(self) -> bool:
        """
        Check whether the stored token is missing or expires within the
        refresh margin.

        False when there is no valid session.
        """
        session = await self.get_session()
        if session is None:
            return False
        if session.access_token is None or session.expires_at is None:
            return True
        return session.expires_at < self._now_ms() + self.refresh_margin_ms
