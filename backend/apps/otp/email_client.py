"""
Amazon SES email client wrapper.

Uses the boto3 sesv2 API to deliver login codes.
"""

from functools import lru_cache
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from apps.core.logging import get_logger

logger = get_logger(__name__)


class EmailError(Exception):
    """Exception raised when email sending fails."""


@lru_cache(maxsize=1)
def get_email_client() -> Any:
    """
    Get the SES v2 client.

    Uses lru_cache to reuse the client instance. Credentials come from the
    environment or the task's IAM role.
    """
    return boto3.client("sesv2", region_name=settings.AWS_SES_REGION)


def send_email(to_address: str, subject: str, text: str, html: str | None = None) -> dict[str, Any]:
    """
    Send a plain-text (and optionally HTML) email.

    Returns:
        Dict with message_id and success flag

    Raises:
        EmailError: If sending fails or no sender is configured
    """
    if settings.OTP_EMAIL_CONSOLE_FALLBACK:
        # Local development without SES
        logger.warning("email_console_fallback", email=to_address, subject=subject)
        logger.debug("email_console_body", body=text)
        return {"message_id": "console", "success": True}

    if not settings.AWS_SES_FROM_EMAIL:
        logger.error("email_sender_not_configured")
        raise EmailError("Email service not configured")

    body: dict[str, Any] = {"Text": {"Data": text, "Charset": "UTF-8"}}
    if html is not None:
        body["Html"] = {"Data": html, "Charset": "UTF-8"}

    try:
        response = get_email_client().send_email(
            FromEmailAddress=settings.AWS_SES_FROM_EMAIL,
            Destination={"ToAddresses": [to_address]},
            Content={
                "Simple": {
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": body,
                }
            },
        )
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        error_message = e.response.get("Error", {}).get("Message", str(e))
        logger.error("ses_client_error", error_code=error_code, error=error_message)
        raise EmailError(f"Failed to send email: {error_message}") from e
    except BotoCoreError as e:
        logger.error("ses_botocore_error", error=str(e))
        raise EmailError(f"Email service error: {e}") from e

    logger.info("email_sent", email=to_address, message_id=response.get("MessageId"))
    return {"message_id": response.get("MessageId"), "success": True}


def send_otp_email(email: str, code: str, ttl_minutes: int) -> dict[str, Any]:
    """Send the login code email."""
    app_name = settings.OTP_EMAIL_APP_NAME
    return send_email(
        email,
        subject=f"Your {app_name} login code",
        text=f"Your login code is {code}. It expires in {ttl_minutes} minutes.",
        html=f"<p>Your login code is <b>{code}</b>. It expires in {ttl_minutes} minutes.</p>",
    )
