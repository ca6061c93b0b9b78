"""Tests for the SMTP mailer."""

from __future__ import annotations

import logging
import smtplib

import pytest

from utils import mailer as mailer_module
from utils.mailer import Mailer


class _FakeSMTP:
    instances: list["_FakeSMTP"] = []
    fail_with: Exception | None = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        _FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def send_message(self, message):
        if _FakeSMTP.fail_with is not None:
            raise _FakeSMTP.fail_with
        self.sent.append(message)


@pytest.fixture()
def fake_smtp(monkeypatch):
    _FakeSMTP.instances = []
    _FakeSMTP.fail_with = None
    monkeypatch.setattr(mailer_module.smtplib, "SMTP", _FakeSMTP)
    return _FakeSMTP


def _mailer(**overrides) -> Mailer:
    options = {
        "server": "smtp.example.com",
        "port": 587,
        "sender": "admin@example.com",
        "username": "mailer",
        "password": "pw",
    }
    options.update(overrides)
    return Mailer(**options)


def test_verification_email_is_rendered_and_sent(app, fake_smtp):
    with app.app_context():
        sent = _mailer().send_verification_email(
            email="ada@example.com",
            first_name="Ada",
            verification_link="http://localhost/auth/verify?token=abc",
        )

    assert sent is True
    smtp = fake_smtp.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.example.com", 587)
    assert smtp.started_tls is True
    assert smtp.logged_in == ("mailer", "pw")
    message = smtp.sent[0]
    assert message["To"] == "ada@example.com"
    assert message["From"] == "admin@example.com"
    html = message.get_body(preferencelist=("html",)).get_content()
    assert "Hi Ada" in html
    assert "http://localhost/auth/verify?token=abc" in html


def test_reset_mail_contains_link(app, fake_smtp):
    with app.app_context():
        assert _mailer(use_tls=False, username=None).send_reset_mail(
            email="ada@example.com",
            first_name="Ada",
            reset_password_link="http://localhost/auth/reset-password?token=xyz",
        )

    smtp = fake_smtp.instances[0]
    assert smtp.started_tls is False
    assert smtp.logged_in is None
    html = smtp.sent[0].get_body(preferencelist=("html",)).get_content()
    assert "reset-password?token=xyz" in html


@pytest.mark.parametrize(
    "error",
    [smtplib.SMTPRecipientsRefused({}), ConnectionRefusedError("no server")],
)
def test_delivery_failure_returns_false(app, fake_smtp, error):
    fake_smtp.fail_with = error

    with app.app_context():
        sent = _mailer().send_reset_mail(
            email="ada@example.com", first_name="Ada", reset_password_link="http://x"
        )

    assert sent is False


def test_suppressed_send_skips_smtp(app, fake_smtp):
    with app.app_context():
        assert _mailer(suppress_send=True).send_verification_email(
            email="ada@example.com", first_name="Ada", verification_link="http://x"
        )

    assert fake_smtp.instances == []


def test_mailer_built_from_config(app):
    mailer = Mailer.from_config(app.config)

    assert mailer.sender == app.config["MAIL_DEFAULT_SENDER"]
    assert mailer.suppress_send is True


def test_delivery_failure_is_logged_by_the_app(app, fake_smtp, caplog):
    fake_smtp.fail_with = ConnectionRefusedError("no server")

    with caplog.at_level(logging.ERROR, logger=app.logger.name):
        with app.app_context():
            _mailer().send_verification_email(
                email="ada@example.com", first_name="Ada", verification_link="http://x"
            )

    failures = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert [r.name for r in failures] == [app.logger.name]
    assert "ada@example.com" in failures[0].getMessage()
