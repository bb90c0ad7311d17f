import smtplib

import pytest

from neorelis.core.config import Settings
from neorelis.services import email as email_service
from neorelis.services.email import (
    MailConfigurationError,
    MailDeliveryError,
    MailMessage,
    SmtpMailSink,
    build_project_member_added_email,
    build_verification_code_email,
    send_best_effort,
)


class FakeSMTP:
    instances = []
    error = None

    def __init__(self, host, port, timeout=None):
        if FakeSMTP.error:
            raise FakeSMTP.error
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def sendmail(self, from_addr, to_addrs, msg):
        self.sent.append((from_addr, to_addrs, msg))


@pytest.fixture(autouse=True)
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.error = None
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def _settings(**overrides):
    values = dict(
        SMTP_HOST="smtp.example.com",
        SMTP_PORT=2525,
        SMTP_USER="mailer",
        SMTP_PASSWORD="secret",
        SMTP_FROM_EMAIL="noreply@example.com",
        SMTP_FROM_NAME="NeoReLiS",
        SMTP_STARTTLS=True,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def message():
    return build_verification_code_email("ada@example.com", "004211", 30)


def test_send_uses_configured_transport(message):
    SmtpMailSink(_settings()).send(message)

    [server] = FakeSMTP.instances
    assert (server.host, server.port) == ("smtp.example.com", 2525)
    assert server.started_tls
    assert server.logged_in == ("mailer", "secret")
    [(from_addr, to_addrs, raw)] = server.sent
    assert from_addr == "noreply@example.com"
    assert to_addrs == ["ada@example.com"]
    assert "Verify your NeoReLiS account" in raw


def test_login_skipped_without_user(message):
    SmtpMailSink(_settings(SMTP_USER="", SMTP_STARTTLS=False)).send(message)

    [server] = FakeSMTP.instances
    assert server.logged_in is None
    assert not server.started_tls


def test_missing_host_names_the_setting(message):
    with pytest.raises(MailConfigurationError, match="SMTP_HOST"):
        SmtpMailSink(_settings(SMTP_HOST="")).send(message)
    assert FakeSMTP.instances == []


def test_sender_falls_back_to_smtp_user(message):
    SmtpMailSink(_settings(SMTP_FROM_EMAIL="")).send(message)
    assert FakeSMTP.instances[0].sent[0][0] == "mailer"


def test_missing_sender_names_the_setting(message):
    with pytest.raises(MailConfigurationError, match="SMTP_USER"):
        SmtpMailSink(_settings(SMTP_FROM_EMAIL="", SMTP_USER="")).send(message)


def test_connection_errors_become_delivery_errors(message):
    FakeSMTP.error = OSError("connection refused")
    with pytest.raises(MailDeliveryError):
        SmtpMailSink(_settings()).send(message)


def test_auth_errors_become_delivery_errors(message):
    FakeSMTP.error = smtplib.SMTPAuthenticationError(535, b"bad credentials")
    with pytest.raises(MailDeliveryError, match="authentication"):
        SmtpMailSink(_settings()).send(message)


def test_send_best_effort_swallows_failures(message):
    sink = SmtpMailSink(_settings(SMTP_HOST=""))
    assert send_best_effort(sink, message) is False


def test_send_best_effort_reports_success(message):
    assert send_best_effort(SmtpMailSink(_settings()), message) is True


def test_verification_email_contains_code_and_expiry(message):
    assert isinstance(message, MailMessage)
    assert message.to == "ada@example.com"
    assert "004211" in message.text
    assert "004211" in message.html
    assert "30 minutes" in message.text


def test_member_added_email_escapes_html():
    msg = build_project_member_added_email(
        to_email="bob@example.com",
        member_name="Bob <b>",
        project_title="Review & Co",
        role="REVIEWER",
        added_by_name="Ada",
    )
    assert "Review &amp; Co" in msg.html
    assert "Bob &lt;b&gt;" in msg.html
    assert 'Ada added you to the project "Review & Co" as REVIEWER' in msg.text
    assert msg.subject == 'You were added to "Review & Co"'
