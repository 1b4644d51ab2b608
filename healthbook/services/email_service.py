"""
Outbound email for notifications.

Uses plain SMTP. In dev mode (no SMTP host configured, or EMAIL_DEV_MODE set)
messages are logged instead of sent.
"""
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Optional
import asyncio
import logging
import smtplib
import ssl

from ..core.config import settings

logger = logging.getLogger(__name__)

class EmailError(Exception):
    """Raised when an email could not be delivered."""

def build_message(to: str, subject: str, text: str, html: Optional[str] = None) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to
    msg["Message-ID"] = make_msgid(domain=settings.EMAIL_FROM.split("@")[-1])
    msg.attach(MIMEText(text, "plain"))
    msg.attach(MIMEText(html or text, "html"))
    return msg

def _send_via_smtp(msg: MIMEMultipart, to: str) -> None:
    host = settings.SMTP_HOST
    port = settings.SMTP_PORT

    if port == 465:
        server = smtplib.SMTP_SSL(host, port, context=ssl.create_default_context(), timeout=30)
    else:
        server = smtplib.SMTP(host, port, timeout=30)

    try:
        if port != 465 and settings.SMTP_USE_TLS:
            server.starttls(context=ssl.create_default_context())
        if settings.SMTP_USER:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD or "")
        server.sendmail(settings.EMAIL_FROM, [to], msg.as_string())
        server.quit()
    finally:
        server.close()

async def send_email(to: str, subject: str, text: str, html: Optional[str] = None) -> str:
    """
    Send one email.

    Returns:
        A message identifier ("dev-mode-email" when only logged)

    Raises:
        EmailError: if the SMTP exchange fails
    """
    msg = build_message(to, subject, text, html)

    if settings.email_dev_mode:
        logger.info(f"Email notification (development mode) to {to}: {subject} - {text}")
        return "dev-mode-email"

    try:
        await asyncio.to_thread(_send_via_smtp, msg, to)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Error sending email to {to}: {e}")
        raise EmailError(str(e)) from e

    logger.info(f"Email sent to {to} via {settings.SMTP_HOST}")
    return msg["Message-ID"]
