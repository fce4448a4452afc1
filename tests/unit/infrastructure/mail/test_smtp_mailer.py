"""
Tests for SmtpMailer (smtplib is patched, no relay needed).
"""

import smtplib
from unittest.mock import patch

import pytest

from talk_proposals.application.ports.mailer import MailMessage
from talk_proposals.domain.shared.exceptions import TransientInfraError
from talk_proposals.infrastructure.mail import SmtpMailer

MESSAGE = MailMessage(
    to="sam@example.com",
    subject="Proposal Status Updated: Async",
    text_body="plain",
    html_body="<p>html</p>",
)


def test_build_multipart_message():
    msg = SmtpMailer("smtp.local", from_addr="cfp@example.com").build(MESSAGE)

    assert msg["To"] == "sam@example.com"
    assert msg["From"] == "cfp@example.com"
    assert msg.is_multipart()
    assert [part.get_content_type() for part in msg.iter_parts()] == [
        "text/plain",
        "text/html",
    ]


def test_build_text_only_message():
    msg = SmtpMailer("smtp.local").build(
        MailMessage(to="a@example.com", subject="s", text_body="plain")
    )

    assert not msg.is_multipart()


def test_send_with_tls_and_login():
    mailer = SmtpMailer(
        "smtp.local", port=587, username="user", password="secret", use_tls=True
    )

    with patch("talk_proposals.infrastructure.mail.smtp_mailer.smtplib.SMTP") as smtp:
        mailer.send(MESSAGE)

    smtp.assert_called_once_with("smtp.local", 587, timeout=10.0)
    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("user", "secret")
    server.send_message.assert_called_once()


def test_send_plain_relay_skips_tls_and_login():
    with patch("talk_proposals.infrastructure.mail.smtp_mailer.smtplib.SMTP") as smtp:
        SmtpMailer("smtp.local").send(MESSAGE)

    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_not_called()
    server.login.assert_not_called()


@pytest.mark.parametrize(
    "error", [smtplib.SMTPServerDisconnected("gone"), ConnectionRefusedError("refused")]
)
def test_transport_errors_become_transient(error):
    with patch(
        "talk_proposals.infrastructure.mail.smtp_mailer.smtplib.SMTP", side_effect=error
    ):
        with pytest.raises(TransientInfraError) as exc_info:
            SmtpMailer("smtp.local").send(MESSAGE)

    assert "Mail relay unavailable" in exc_info.value.message
