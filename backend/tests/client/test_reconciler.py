"""
Tests for the session reconciliation decision table.
"""

import pytest

from crewvar_client.reconciler import (
    Action,
    AuthState,
    LiveAuthChanged,
    LoadingTimedOut,
    SignedOut,
    StoredSessionLoaded,
    reconcile,
)
from tests.client.conftest import make_user

ALICE = make_user("alice")
BOB = make_user("bob")


def restored_state() -> AuthState:
    return reconcile(AuthState(), StoredSessionLoaded(ALICE)).state


def checked_state() -> AuthState:
    return reconcile(AuthState(), StoredSessionLoaded(None)).state


class TestStoredSession:
    """Tests for the startup stored-session lookup."""

    def test_restores_stored_user(self):
        transition = reconcile(AuthState(), StoredSessionLoaded(ALICE))

        assert transition.action == Action.RESTORE
        assert transition.state.effective_user == ALICE
        assert transition.state.session_restored is True
        assert transition.state.session_check_complete is True
        assert transition.state.loading is False
        assert transition.replay is None

    def test_no_stored_user_keeps_loading_until_live_event(self):
        transition = reconcile(AuthState(), StoredSessionLoaded(None))

        assert transition.action == Action.NONE
        assert transition.state.effective_user is None
        assert transition.state.loading is True

    def test_second_lookup_is_ignored(self):
        state = restored_state()

        transition = reconcile(state, StoredSessionLoaded(BOB))

        assert transition.action == Action.NONE
        assert transition.state.effective_user == ALICE


class TestLiveAfterRestore:
    """Tests for live notifications while a restored user is in effect."""

    def test_null_live_user_keeps_restored_user(self):
        transition = reconcile(restored_state(), LiveAuthChanged(None))

        assert transition.action == Action.IGNORE
        assert transition.state.effective_user == ALICE
        assert transition.state.session_restored is True

    def test_different_live_user_is_ignored(self):
        transition = reconcile(restored_state(), LiveAuthChanged(BOB))

        assert transition.action == Action.IGNORE
        assert transition.state.effective_user == ALICE

    def test_matching_live_user_corroborates(self):
        live = make_user("alice", id_token="fresh-token")

        transition = reconcile(restored_state(), LiveAuthChanged(live))

        assert transition.action == Action.ESTABLISH
        assert transition.state.effective_user == live
        assert transition.state.session_restored is False

    def test_null_then_match(self):
        state = reconcile(restored_state(), LiveAuthChanged(None)).state

        transition = reconcile(state, LiveAuthChanged(ALICE))

        assert transition.action == Action.ESTABLISH
        assert transition.state.effective_user == ALICE

    def test_null_after_corroboration_signs_out(self):
        state = reconcile(restored_state(), LiveAuthChanged(ALICE)).state

        transition = reconcile(state, LiveAuthChanged(None))

        assert transition.action == Action.CLEAR
        assert transition.state.effective_user is None


class TestLiveWithoutRestore:
    """Tests for live notifications with no restored user."""

    def test_live_user_is_established(self):
        transition = reconcile(checked_state(), LiveAuthChanged(BOB))

        assert transition.action == Action.ESTABLISH
        assert transition.state.effective_user == BOB
        assert transition.state.loading is False

    def test_null_live_user_clears(self):
        transition = reconcile(checked_state(), LiveAuthChanged(None))

        assert transition.action == Action.CLEAR
        assert transition.state.loading is False

    def test_switching_users(self):
        state = reconcile(checked_state(), LiveAuthChanged(ALICE)).state

        transition = reconcile(state, LiveAuthChanged(BOB))

        assert transition.action == Action.ESTABLISH
        assert transition.state.effective_user == BOB


class TestDeferral:
    """Tests for live notifications that arrive before the lookup completes."""

    def test_live_event_before_lookup_is_deferred(self):
        transition = reconcile(AuthState(), LiveAuthChanged(BOB))

        assert transition.action == Action.DEFER
        assert transition.state.effective_user is None
        assert transition.state.pending_live == BOB
        assert transition.state.live_event_seen is True

    def test_latest_deferred_event_wins(self):
        state = reconcile(AuthState(), LiveAuthChanged(BOB)).state
        state = reconcile(state, LiveAuthChanged(None)).state

        transition = reconcile(state, StoredSessionLoaded(None))

        assert transition.replay == LiveAuthChanged(None)
        assert transition.state.has_pending_live is False

    def test_deferred_event_is_replayed_against_restored_user(self):
        state = reconcile(AuthState(), LiveAuthChanged(None)).state

        loaded = reconcile(state, StoredSessionLoaded(ALICE))
        replayed = reconcile(loaded.state, loaded.replay)

        assert loaded.action == Action.RESTORE
        assert replayed.action == Action.IGNORE
        assert replayed.state.effective_user == ALICE

    def test_lookup_without_user_after_live_event_stops_loading(self):
        state = reconcile(AuthState(), LiveAuthChanged(None)).state

        transition = reconcile(state, StoredSessionLoaded(None))

        assert transition.state.loading is False


class TestSignOutAndTimeout:
    """Tests for explicit sign-out and the loading timeout."""

    def test_sign_out_overrides_restored_user(self):
        transition = reconcile(restored_state(), SignedOut())

        assert transition.action == Action.CLEAR
        assert transition.state.effective_user is None
        assert transition.state.session_restored is False

    def test_timeout_only_stops_loading(self):
        transition = reconcile(AuthState(), LoadingTimedOut())

        assert transition.action == Action.NONE
        assert transition.state.loading is False
        assert transition.state.session_check_complete is False

    def test_unknown_event(self):
        with pytest.raises(TypeError):
            reconcile(AuthState(), object())
