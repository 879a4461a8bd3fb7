from __future__ import annotations

import smtplib

import pytest

from activity_tracker.core.config import Settings
from activity_tracker.services import mailer
from activity_tracker.services.mailer import EmailService, password_reset_email


class _FakeSMTP:
    instances: list["_FakeSMTP"] = []
    fail_starttls = False

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        self.closed = False
        _FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def starttls(self):
        if self.fail_starttls:
            raise smtplib.SMTPNotSupportedError("STARTTLS extension not supported by server.")
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, msg):
        self.sent.append(msg)


@pytest.fixture()
def fake_smtp(monkeypatch):
    _FakeSMTP.instances = []
    _FakeSMTP.fail_starttls = False
    monkeypatch.setattr(mailer.smtplib, "SMTP", _FakeSMTP)
    monkeypatch.setattr(mailer.smtplib, "SMTP_SSL", _FakeSMTP)
    return _FakeSMTP


def _config(**overrides) -> Settings:
    fields = {
        "SMTP_HOST": "smtp.example.com",
        "SMTP_PORT": 587,
        "SMTP_USER": "mailer@example.com",
        "SMTP_PASSWORD": "pw",
        "SMTP_FROM": "noreply@example.com",
        "SMTP_USE_SSL": False,
    }
    fields.update(overrides)
    return Settings(**fields)


def test_starttls_send_logs_in_and_sends(fake_smtp) -> None:
    EmailService(_config()).send_email("ola@example.com", "Hi", "<p>Hi</p>")

    [server] = fake_smtp.instances
    assert server.started_tls is True
    assert server.logged_in == ("mailer@example.com", "pw")
    assert server.sent[0]["To"] == "ola@example.com"
    assert server.closed is True


def test_ssl_send_skips_starttls(fake_smtp) -> None:
    EmailService(_config(SMTP_USE_SSL=True, SMTP_PORT=465)).send_email("ola@example.com", "Hi", "<p>Hi</p>")

    [server] = fake_smtp.instances
    assert server.started_tls is False
    assert len(server.sent) == 1


def test_failed_starttls_closes_connection(fake_smtp) -> None:
    fake_smtp.fail_starttls = True

    with pytest.raises(smtplib.SMTPNotSupportedError):
        EmailService(_config()).send_email("ola@example.com", "Hi", "<p>Hi</p>")

    [server] = fake_smtp.instances
    assert server.closed is True
    assert server.sent == []


def test_password_reset_email_contains_token() -> None:
    subject, body = password_reset_email("ola", "reset-token-123")

    assert "Reset" in subject
    assert "ola" in body
    assert "reset-token-123" in body
