"""
Email service using SendGrid for account emails.
"""

import logging
from typing import Optional
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content

from golfcompete.services import settings_service

logger = logging.getLogger(__name__)

DEFAULT_FROM_EMAIL = "noreply@golfcompete.app"


def is_enabled() -> bool:
    """Email is on unless ENABLE_EMAIL says otherwise."""
    return settings_service.get_bool_env("ENABLE_EMAIL", default=True)


async def send_password_reset_email(
    to_email: str, reset_link: str, first_name: Optional[str] = None
) -> bool:
    """
    Send a password reset link via SendGrid.

    Args:
        to_email: Recipient address
        reset_link: URL carrying the single-use reset token
        first_name: Optional greeting name

    Returns:
        bool: True if the email was sent (or sending is disabled), False on failure
    """
    if not is_enabled():
        logger.info("Email sending is disabled. Password reset email skipped.")
        return True

    api_key = settings_service.get_setting("SENDGRID_API_KEY")
    if not api_key:
        logger.warning("SENDGRID_API_KEY not configured. Password reset email skipped.")
        return True

    from_email = settings_service.get_setting("SENDGRID_FROM_EMAIL", DEFAULT_FROM_EMAIL)

    try:
        greeting = f"Hi {first_name}," if first_name else "Hi,"
        body_lines = [
            greeting,
            "",
            "We received a request to reset your GolfCompete password.",
            "Use the link below to choose a new one:",
            "",
            reset_link,
            "",
            "If you did not ask for this, you can ignore this email.",
            "",
            "---",
            "This is an automated message from GolfCompete.",
        ]

        message = Mail(
            from_email=Email(from_email),
            to_emails=To(to_email),
            subject="Reset your GolfCompete password",
            plain_text_content=Content("text/plain", "\n".join(body_lines)),
        )

        sg = SendGridAPIClient(api_key)
        response = sg.send(message)

        if 200 <= response.status_code < 300:
            logger.info(f"Password reset email sent to {to_email}")
            return True
        logger.error(f"SendGrid returned status {response.status_code}: {response.body}")
        return False

    except Exception as e:
        logger.error(f"Failed to send password reset email: {str(e)}", exc_info=True)
        return False
