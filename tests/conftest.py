"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.user import User  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET_KEY = "test-jwt-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RATE_LIMIT = "1000 per minute"
    AUTH_RATE_LIMIT = "1000 per minute"
    MAIL_SUPPRESS_SEND = True
    GOOGLE_CLIENT_ID = "google-client"
    GOOGLE_CLIENT_SECRET = "google-secret"
    FACEBOOK_CLIENT_ID = None


class FakeMailer:
    """Records outgoing mail instead of talking to an SMTP server."""

    def __init__(self, result: bool = True):
        self.result = result
        self.verification_emails: list[dict] = []
        self.reset_emails: list[dict] = []

    def send_verification_email(self, **kwargs) -> bool:
        self.verification_emails.append(kwargs)
        return self.result

    def send_reset_mail(self, **kwargs) -> bool:
        self.reset_emails.append(kwargs)
        return self.result


@pytest.fixture()
def app() -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(_BaseTestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def mailer(app: Flask) -> FakeMailer:
    """Swap the application's mailer for a recording fake."""

    fake = FakeMailer()
    app.extensions["mailer"] = fake
    return fake


@pytest.fixture()
def make_user(app: Flask):
    """Return a helper that persists a user and returns its id."""

    def _make_user(
        email: str = "traveller@example.com",
        password: str = "Traveller123",
        *,
        role: str = "requester",
        first_name: str = "Ada",
        last_name: str = "Obi",
        verified: bool = False,
    ) -> int:
        with app.app_context():
            user = User(
                first_name=first_name,
                last_name=last_name,
                email=email,
                role=role,
                is_verified=verified,
            )
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make_user
