"""SMTP delivery of magic-link e-mails."""

from __future__ import annotations

import asyncio
import html
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from audio_memory.config.settings import MailConfig, settings

logger = logging.getLogger(__name__)


class EmailServiceError(RuntimeError):
    """Raised when the email service cannot deliver a message."""


def render_link_html(intro: str, link: str, label: str, footer: str) -> str:
    """HTML alternative for a message whose point is a single link."""

    href = html.escape(link, quote=True)
    return (
        '<div style="font-family:sans-serif;max-width:480px">'
        f"<p>{html.escape(intro)}</p>"
        f'<p><a href="{href}" style="display:inline-block;padding:12px 20px;'
        'background:#111827;color:#fff;border-radius:8px;text-decoration:none">'
        f"{html.escape(label)}</a></p>"
        f'<p style="color:#6b7280;font-size:13px">{html.escape(footer)}</p>'
        "</div>"
    )


def build_message(
    mail_settings: MailConfig,
    *,
    recipient: str,
    subject: str,
    body: str,
    html_body: str | None = None,
) -> EmailMessage:
    message = EmailMessage()
    message["From"] = formataddr((mail_settings.sender_name, mail_settings.sender_address))
    message["To"] = recipient
    message["Subject"] = subject
    message["Message-ID"] = make_msgid(domain=mail_settings.sender_address.rpartition("@")[2])
    if mail_settings.reply_to:
        message["Reply-To"] = mail_settings.reply_to
    message.set_content(body)
    if html_body is not None:
        message.add_alternative(html_body, subtype="html")
    return message


async def send_email(
    *,
    recipient: str,
    subject: str,
    body: str,
    html_body: str | None = None,
) -> None:
    """Send a plain text email, optionally with an HTML alternative."""

    mail_settings = settings.mail
    if not mail_settings.is_configured():
        raise EmailServiceError("SMTP settings are not configured.")

    message = build_message(
        mail_settings,
        recipient=recipient,
        subject=subject,
        body=body,
        html_body=html_body,
    )
    password = (
        mail_settings.password.get_secret_value()
        if mail_settings.password is not None
        else None
    )

    def _send_sync() -> None:
        context = ssl.create_default_context()
        if mail_settings.use_ssl:
            with smtplib.SMTP_SSL(
                mail_settings.host,
                mail_settings.port,
                context=context,
            ) as client:
                if mail_settings.username and password:
                    client.login(mail_settings.username, password)
                client.send_message(message)
            return

        with smtplib.SMTP(mail_settings.host, mail_settings.port) as client:
            if mail_settings.use_tls:
                client.starttls(context=context)
            if mail_settings.username and password:
                client.login(mail_settings.username, password)
            client.send_message(message)

    try:
        await asyncio.to_thread(_send_sync)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("SMTP delivery to %s via %s failed: %s", recipient, mail_settings.host, exc)
        raise EmailServiceError("Failed to send email.") from exc


__all__ = ["EmailServiceError", "build_message", "render_link_html", "send_email"]
