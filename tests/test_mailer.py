"""Tests for email delivery and templates."""
from __future__ import annotations

import smtplib
from unittest.mock import MagicMock, patch

import requests

from jobnado.mailer import (
    RESEND_URL,
    EmailPayload,
    ResendSender,
    SmtpSender,
    render_alert_email,
    render_confirmation_email,
)

PAYLOAD = EmailPayload(from_addr="JobNado <noreply@example.com>", to="u@example.com",
                       subject="Hello", html="<p>Hi<br>there</p>")


@patch("jobnado.mailer.smtplib.SMTP")
def test_smtp_send(smtp):
    server = smtp.return_value.__enter__.return_value
    ok, info = SmtpSender("smtp.example.com", 587, "bot@example.com", "pw").send(PAYLOAD)
    assert ok and info == "Email sent"
    smtp.assert_called_once_with("smtp.example.com", 587, timeout=20.0)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("bot@example.com", "pw")
    envelope_from, to, _ = server.sendmail.call_args.args
    assert envelope_from == "noreply@example.com"
    assert to == ["u@example.com"]


@patch("jobnado.mailer.smtplib.SMTP")
def test_smtp_failure_returns_false(smtp):
    smtp.return_value.__enter__.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad creds")
    ok, info = SmtpSender("smtp.example.com", 587, "bot@example.com", "pw").send(PAYLOAD)
    assert not ok
    assert "535" in info


def test_resend_send():
    session = MagicMock()
    session.post.return_value = MagicMock(ok=True, status_code=200)
    ok, _ = ResendSender("re_key", session=session).send(PAYLOAD)
    assert ok
    url = session.post.call_args.args[0]
    kwargs = session.post.call_args.kwargs
    assert url == RESEND_URL
    assert kwargs["headers"] == {"Authorization": "Bearer re_key"}
    assert kwargs["json"]["to"] == "u@example.com"
    assert kwargs["json"]["html"] == PAYLOAD.html


def test_resend_rejected_and_network_error():
    session = MagicMock()
    session.post.return_value = MagicMock(ok=False, status_code=422, text="invalid from")
    assert ResendSender("k", session=session).send(PAYLOAD) == (False, "invalid from")
    session.post.side_effect = requests.ConnectionError("offline")
    ok, info = ResendSender("k", session=session).send(PAYLOAD)
    assert not ok and "offline" in info


def test_alert_email_lists_jobs_and_escapes():
    html = render_alert_email("Data <Analyst>", "Canada", [
        {"title": "BI & Analytics", "company": "Acme", "url": "https://acme.example/?a=1&b=2"},
        {"title": "Analyst", "company": "", "url": ""},
    ])
    assert "Found 2 new targets" in html
    assert "BI &amp; Analytics" in html
    assert "Data &lt;Analyst&gt;" in html
    assert 'href="https://acme.example/?a=1&amp;b=2"' in html
    assert "Unknown Company" in html
    assert "<Analyst>" not in html


def test_confirmation_email_escapes_message():
    html = render_confirmation_email("<script>x</script>", "QA", "Spain", "weekly")
    assert "&lt;script&gt;" in html
    assert "weekly" in html
