"""
Custom type definitions for the application.

These types help mypy understand custom attributes added by middleware.
"""

from typing import TYPE_CHECKING

from django.http import HttpRequest

if TYPE_CHECKING:
    from apps.accounts.models import User


class AuthenticatedHttpRequest(HttpRequest):
    """
    HttpRequest with the identity resolved by SessionTokenAuthMiddleware.

    ``auth_user`` is None when no bearer token was sent or it did not verify.
    ``auth_failed`` distinguishes a rejected token from an anonymous call.
    """

    auth_user: "User | None"
    auth_failed: bool
