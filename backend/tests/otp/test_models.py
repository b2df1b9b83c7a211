"""
Tests for the OTPRequest model.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.otp.models import OTPRequest
from tests.otp.factories import OTPRequestFactory


@pytest.mark.django_db
class TestOTPRequestState:
    """Tests for the derived lifecycle state."""

    def test_new_record_is_active(self):
        assert OTPRequestFactory.create().state == OTPRequest.State.ACTIVE

    def test_past_expiry_is_expired_before_being_marked(self):
        otp = OTPRequestFactory.create(created_at=timezone.now() - timedelta(minutes=6))

        assert otp.is_expired
        assert otp.state == OTPRequest.State.EXPIRED

    def test_mark_used_is_terminal(self):
        otp = OTPRequestFactory.create()
        otp.mark_used()
        otp.refresh_from_db()

        assert otp.used is True
        assert otp.state == OTPRequest.State.EXPIRED

    def test_mark_verified_stamps_time(self):
        otp = OTPRequestFactory.create()
        otp.mark_verified()
        otp.refresh_from_db()

        assert otp.used is True
        assert otp.verified_at is not None
        assert otp.state == OTPRequest.State.VERIFIED

    def test_exhausted_attempts_state(self):
        otp = OTPRequestFactory.create(attempts=5, used=True)

        assert otp.state == OTPRequest.State.ATTEMPTS_EXHAUSTED

    def test_attempt_cap_is_exhausted_before_being_marked(self):
        otp = OTPRequestFactory.create(attempts=5)

        assert otp.used is False
        assert otp.state == OTPRequest.State.ATTEMPTS_EXHAUSTED

    def test_attempts_below_cap_stay_active(self):
        assert OTPRequestFactory.create(attempts=4).state == OTPRequest.State.ACTIVE

    def test_str_does_not_include_hash(self):
        otp = OTPRequestFactory.create()

        assert otp.otp_hash not in str(otp)
