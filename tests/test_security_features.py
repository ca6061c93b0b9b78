"""Tests covering security and hardening features."""

from __future__ import annotations

import sys
from pathlib import Path

from flask import Flask

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app
from config import Config


class _SecurityBaseConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAIL_SUPPRESS_SEND = True


def _build_app(**overrides) -> Flask:
    class TestConfig(_SecurityBaseConfig):
        pass

    for key, value in overrides.items():
        setattr(TestConfig, key, value)

    return create_app(TestConfig)


def test_cors_allows_configured_origin():
    app = _build_app(CORS_ORIGINS=["https://client.example"])
    client = app.test_client()

    response = client.get(
        "/health", headers={"Origin": "https://client.example"}
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "https://client.example"
    assert response.headers.get("Access-Control-Allow-Credentials") == "true"
    assert response.headers.get("X-Request-ID")


def test_rate_limit_exceeded_returns_json():
    app = _build_app(RATE_LIMIT="2 per minute")
    client = app.test_client()

    client.get("/health")
    client.get("/health")
    response = client.get("/health")

    assert response.status_code == 429
    payload = response.get_json()
    assert payload["status"] == "error"
    assert payload["error"]["code"] == 429
    assert payload["request_id"]


def test_json_error_shape_for_invalid_request():
    app = _build_app()
    client = app.test_client()

    response = client.post(
        "/auth/login",
        data="not-json",
        content_type="text/plain",
        headers={"X-Request-ID": "req-123"},
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload == {
        "status": "error",
        "error": {
            "code": 400,
            "message": "Request content type must be application/json.",
        },
        "request_id": "req-123",
    }
    assert response.headers["X-Request-ID"] == "req-123"


def test_unknown_route_uses_error_envelope():
    app = _build_app()

    response = app.test_client().get("/nowhere")

    assert response.status_code == 404
    assert response.get_json()["error"]["code"] == 404


def test_unexpected_errors_do_not_leak_details():
    app = _build_app()

    @app.route("/explode")
    def explode():
        raise RuntimeError("database password is hunter2")

    response = app.test_client().get("/explode")

    assert response.status_code == 500
    message = response.get_json()["error"]["message"]
    assert message == "An unexpected error occurred."
    assert "hunter2" not in response.get_data(as_text=True)
