"""
Email Service

Delivers one-time login codes over SMTP.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from authcore.core.config import settings


logger = logging.getLogger(__name__)


def get_login_code_email_html(otp_code: str, expires_minutes: int) -> str:
    """Generate HTML content for the login code email."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <style>
            body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 0; background-color: #f5f5f5; }}
            .container {{ max-width: 600px; margin: 40px auto; background: white; border-radius: 12px; overflow: hidden; }}
            .content {{ padding: 40px; }}
            .otp-code {{ font-size: 36px; font-weight: bold; letter-spacing: 8px; font-family: monospace; text-align: center; margin: 30px 0; }}
            p {{ color: #374151; line-height: 1.6; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="content">
                <p>Use the code below to sign in to {settings.EMAIL_FROM_NAME}:</p>
                <div class="otp-code">{otp_code}</div>
                <p>This code expires in <strong>{expires_minutes} minutes</strong> and can be used once.</p>
                <p>If you didn't try to sign in, you can safely ignore this email.</p>
            </div>
        </div>
    </body>
    </html>
    """


def get_login_code_email_text(otp_code: str, expires_minutes: int) -> str:
    """Generate plain text content for the login code email."""
    return f"""
Your one-time login code is: {otp_code}

This code expires in {expires_minutes} minutes and can be used once.

If you didn't try to sign in, you can safely ignore this email.
    """


def _deliver(message: MIMEMultipart, to_email: str) -> None:
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT) as server:
        server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.sendmail(settings.EMAIL_FROM_ADDRESS, to_email, message.as_string())


async def send_login_code(to_email: str, otp_code: str) -> bool:
    """
    Send a one-time login code.

    The SMTP exchange runs in a worker thread so a slow mail server never
    blocks the event loop.

    Args:
        to_email: Recipient email address.
        otp_code: The plaintext code. Never logged.

    Returns:
        bool: True if the email was handed to the SMTP server (or delivery is
            skipped in development), False otherwise.
    """
    if not settings.SMTP_USER:
        if settings.is_development:
            logger.warning("[DEV MODE] SMTP not configured, skipped login code email to %s", to_email)
            return True
        logger.error("SMTP not configured, login code for %s was not delivered", to_email)
        return False

    expires_minutes = max(1, settings.OTP_EXPIRE_SECONDS // 60)
    msg = MIMEMultipart("alternative")
    msg["Subject"] = f"Your {settings.EMAIL_FROM_NAME} login code"
    msg["From"] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
    msg["To"] = to_email
    msg.attach(MIMEText(get_login_code_email_text(otp_code, expires_minutes), "plain"))
    msg.attach(MIMEText(get_login_code_email_html(otp_code, expires_minutes), "html"))

    try:
        await asyncio.to_thread(_deliver, msg, to_email)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send login code email to %s: %s", to_email, type(e).__name__)
        return False

    logger.info("Login code email sent to %s", to_email)
    return True
