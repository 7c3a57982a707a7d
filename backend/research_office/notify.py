import smtplib
from email.message import EmailMessage

from . import config
from .logging_config import get_logger

logger = get_logger(__name__)

EMAIL_OUTBOX: list[tuple[str, str, str]] = []


def send_email(to_email: str, subject: str, message: str):
    if config.TESTING:
        EMAIL_OUTBOX.append((to_email, subject, message))
        return
    server = config.SMTP_SERVER
    if not server:
        logger.debug("email_skipped_no_smtp", to=to_email, subject=subject)
        return
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = config.EMAIL_FROM
    msg["To"] = to_email
    msg.set_content(message)
    try:
        with smtplib.SMTP(server) as s:
            s.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("email_delivery_failed", to=to_email, subject=subject, error=str(exc))


def workflow_recipients(*addresses: str | None) -> list[str]:
    """De-duplicated, non-empty recipient list preserving order."""
    seen: list[str] = []
    for address in addresses:
        if address and address.strip() and address.strip() not in seen:
            seen.append(address.strip())
    return seen


def send_status_change_email(
    recipients: list[str],
    *,
    kind: str,
    number: str,
    title: str,
    status_from: str,
    status_to: str,
):
    subject = f"{kind.upper()} {number}: status changed to {status_to}"
    message = (
        f"The {kind.upper()} application \"{title}\" ({number}) moved "
        f"from {status_from} to {status_to}."
    )
    for recipient in recipients:
        send_email(recipient, subject, message)
