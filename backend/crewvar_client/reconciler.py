"""
Session reconciliation decision table.

Two sources report who is signed in: the session restored from the device
and the auth SDK's live stream. ``reconcile`` decides, for each event, what
the effective user becomes and what side effect the caller should run. It
performs no I/O.

Rules for a live notification, once the stored-session lookup is done:

a. live user is None, a restored user is in effect: ignore
b. live user differs from the restored user: ignore
c. live user matches the restored user: corroborated, apply it
d. otherwise: apply it (None means signed out)

Live notifications arriving before the lookup finishes are held (latest
wins) and handed back as ``replay`` once it completes.
"""

from dataclasses import dataclass, replace
from enum import StrEnum

from crewvar_client.models import AuthUser


@dataclass(frozen=True)
class AuthState:
    effective_user: AuthUser | None = None
    # A restored user not yet corroborated by the live stream
    session_restored: bool = False
    session_check_complete: bool = False
    live_event_seen: bool = False
    loading: bool = True
    has_pending_live: bool = False
    pending_live: AuthUser | None = None


@dataclass(frozen=True)
class StoredSessionLoaded:
    """Result of the startup lookup; ``user`` is None without a valid session."""

    user: AuthUser | None


@dataclass(frozen=True)
class LiveAuthChanged:
    user: AuthUser | None


@dataclass(frozen=True)
class SignedOut:
    """Explicit sign-out by the user or for a deleted account."""


@dataclass(frozen=True)
class LoadingTimedOut:
    pass


AuthEvent = StoredSessionLoaded | LiveAuthChanged | SignedOut | LoadingTimedOut


class Action(StrEnum):
    NONE = "none"
    DEFER = "defer"
    IGNORE = "ignore"
    # Restored user is now effective; use the cached profile
    RESTORE = "restore"
    # Live user is now effective; fetch profile and persist
    ESTABLISH = "establish"
    # No user; erase the stored session
    CLEAR = "clear"


@dataclass(frozen=True)
class Transition:
    state: AuthState
    action: Action
    replay: LiveAuthChanged | None = None


def _same_user(a: AuthUser, b: AuthUser) -> bool:
    return a.uid == b.uid


def _on_stored_session(state: AuthState, event: StoredSessionLoaded) -> Transition:
    if state.session_check_complete:
        return Transition(state, Action.NONE)

    replay = LiveAuthChanged(state.pending_live) if state.has_pending_live else None
    cleared = replace(state, session_check_complete=True, has_pending_live=False, pending_live=None)

    if event.user is not None:
        restored = replace(cleared, effective_user=event.user, session_restored=True, loading=False)
        return Transition(restored, Action.RESTORE, replay=replay)

    return Transition(replace(cleared, loading=not cleared.live_event_seen), Action.NONE, replay=replay)


def _on_live(state: AuthState, event: LiveAuthChanged) -> Transition:
    live = event.user

    if not state.session_check_complete:
        deferred = replace(state, live_event_seen=True, has_pending_live=True, pending_live=live)
        return Transition(deferred, Action.DEFER)

    state = replace(state, live_event_seen=True, loading=False)
    current = state.effective_user

    if state.session_restored and current is not None:
        if live is None or not _same_user(live, current):
            return Transition(state, Action.IGNORE)
        state = replace(state, session_restored=False)

    if live is None:
        return Transition(replace(state, effective_user=None, session_restored=False), Action.CLEAR)
    return Transition(replace(state, effective_user=live), Action.ESTABLISH)


def reconcile(state: AuthState, event: AuthEvent) -> Transition:
    """Apply one event to the auth state."""
    if isinstance(event, StoredSessionLoaded):
        return _on_stored_session(state, event)
    if isinstance(event, LiveAuthChanged):
        return _on_live(state, event)
    if isinstance(event, SignedOut):
        signed_out = replace(state, effective_user=None, session_restored=False, loading=False)
        return Transition(signed_out, Action.CLEAR)
    if isinstance(event, LoadingTimedOut):
        return Transition(replace(state, loading=False), Action.NONE)
    raise TypeError(f"Unknown auth event: {event!r}")
