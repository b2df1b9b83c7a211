"""
Management command to purge old OTP requests and sign-in tokens.

Used and expired records are kept as history for cooldown checks and
auditing; this removes them once they fall outside the retention window.
Example: ./manage.py purge_otp_requests --days 30
"""

from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.accounts.models import SignInToken
from apps.accounts.services import purge_sign_in_tokens
from apps.otp.models import OTPRequest
from apps.otp.services import purge_otp_requests


class Command(BaseCommand):
    help = "Delete OTP requests and sign-in tokens created more than the given number of days ago"

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=settings.OTP_RETENTION_DAYS,
            help=f"Delete records older than this many days (default: {settings.OTP_RETENTION_DAYS})",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be deleted without actually deleting",
        )

    def handle(self, *args, **options):
        days = options["days"]

        if options["dry_run"]:
            cutoff = timezone.now() - timedelta(days=days)
            otp_count = OTPRequest.objects.filter(created_at__lt=cutoff).count()
            token_count = SignInToken.objects.filter(created_at__lt=cutoff).count()
            self.stdout.write(
                self.style.WARNING(
                    f"[DRY RUN] Would delete {otp_count} OTP requests and {token_count} sign-in tokens"
                )
            )
            return

        otp_deleted = purge_otp_requests(older_than_days=days)
        tokens_deleted = purge_sign_in_tokens(timedelta(days=days))
        self.stdout.write(
            self.style.SUCCESS(
                f"Successfully deleted {otp_deleted} OTP requests and {tokens_deleted} sign-in tokens"
            )
        )
