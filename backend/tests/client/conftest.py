"""
Fixtures for client library tests.
"""

from datetime import UTC, datetime

import pytest

from crewvar_client.models import AuthUser
from crewvar_client.session_store import SessionStore
from crewvar_client.storage import MemoryPreferences

START = 1_760_000_000.0
DAY = 24 * 60 * 60


class FakeClock:
    """Settable epoch-seconds clock."""

    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_user(uid: str = "uid-1", **kwargs) -> AuthUser:
    defaults = {
        "email": f"{uid}@example.com",
        "display_name": uid,
        "email_verified": True,
        "id_token": f"token-{uid}",
        "token_expires_at": datetime.fromtimestamp(START + 3600, tz=UTC),
    }
    defaults.update(kwargs)
    return AuthUser(uid=uid, **defaults)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def preferences() -> MemoryPreferences:
    return MemoryPreferences()


@pytest.fixture
def store(preferences: MemoryPreferences, clock: FakeClock) -> SessionStore:
    return SessionStore(preferences, "test-integrity-key", clock=clock)
