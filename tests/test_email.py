"""Magic-link e-mail composition and SMTP hand-off."""

from __future__ import annotations

import smtplib

import pytest

from audio_memory.config.settings import MailConfig
from audio_memory.services.email import (
    EmailServiceError,
    build_message,
    render_link_html,
    send_email,
)


class FakeSMTP:
    sent: list = []

    def __init__(self, host, port):
        self.host = host
        self.port = port
        self.tls = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def starttls(self, context=None):
        self.tls = True

    def login(self, username, password):
        raise AssertionError("no credentials are configured in tests")

    def send_message(self, message):
        FakeSMTP.sent.append((self.host, self.tls, message))


class BrokenSMTP(FakeSMTP):
    def send_message(self, message):
        raise smtplib.SMTPRecipientsRefused({})


def test_message_headers_and_alternative():
    config = MailConfig(
        host="smtp.example.com",
        sender_name="Grandma's Jar",
        sender_address="memories@example.com",
        reply_to="help@example.com",
    )

    message = build_message(
        config,
        recipient="visitor@example.com",
        subject="Sign in",
        body="plain",
        html_body="<p>rich</p>",
    )

    assert message["From"] == "Grandma's Jar <memories@example.com>"
    assert message["Reply-To"] == "help@example.com"
    assert message["Message-ID"].endswith("@example.com>")
    assert message.get_body(("plain",)).get_content().strip() == "plain"
    assert message.get_body(("html",)).get_content().strip() == "<p>rich</p>"


def test_link_html_escapes_values():
    markup = render_link_html("Hi <you>", "http://x/cb?a=1&b=2", "Sign in", "Bye")

    assert 'href="http://x/cb?a=1&amp;b=2"' in markup
    assert "Hi &lt;you&gt;" in markup


async def test_send_email_uses_starttls(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)

    await send_email(recipient="visitor@example.com", subject="Sign in", body="plain")

    [(host, tls, message)] = FakeSMTP.sent
    assert host == "smtp.example.com"
    assert tls is True
    assert message["To"] == "visitor@example.com"
    assert message["From"] == "Audio Memory <no-reply@localhost>"


async def test_smtp_failure_is_wrapped(monkeypatch):
    monkeypatch.setattr(smtplib, "SMTP", BrokenSMTP)

    with pytest.raises(EmailServiceError):
        await send_email(recipient="visitor@example.com", subject="Sign in", body="plain")
