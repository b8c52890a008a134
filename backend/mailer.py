import logging
import smtplib
from email.message import EmailMessage

from errors import MailError

logger = logging.getLogger(__name__)


def build_message(settings, subject: str, html: str, text: str) -> EmailMessage:
    # Bcc is kept off the headers; it only goes on the SMTP envelope.
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.email_user
    msg["To"] = settings.email_to
    msg.set_content(text or "")
    msg.add_alternative(html, subtype="html")
    return msg


def envelope_recipients(settings) -> list[str]:
    recipients = [settings.email_to]
    if settings.email_bcc and settings.email_bcc not in recipients:
        recipients.append(settings.email_bcc)
    return recipients


def send_mail(settings, subject: str, html: str, text: str = "") -> None:
    """
    Send one email over SMTP (STARTTLS, or implicit TLS when smtp_ssl is set).
    Any transport failure is raised as MailError.
    """
    msg = build_message(settings, subject, html, text)
    recipients = envelope_recipients(settings)

    try:
        if settings.smtp_ssl:
            smtp = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=settings.http_timeout)
        else:
            smtp = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.http_timeout)
        with smtp:
            if not settings.smtp_ssl:
                smtp.starttls()
            smtp.login(settings.email_user, settings.email_pass)
            smtp.send_message(msg, from_addr=settings.email_user, to_addrs=recipients)
    except (smtplib.SMTPException, OSError) as exc:
        raise MailError(f"Failed to send email via {settings.smtp_host}: {exc}") from exc

    logger.info("Email sent: %r to %s", subject, settings.email_to)
