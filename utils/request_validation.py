"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

import re
from typing import Iterable

from flask import Request
from werkzeug.exceptions import BadRequest

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8
SIGNUP_FIELDS = ("firstName", "lastName", "email", "password")


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if not data.get(key)]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(
                    ", ".join(sorted(missing))
                )
            )

    return data


def normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""
    return (raw_email or "").strip().lower()


def validate_email(raw_email: str | None) -> str:
    """Return the normalized email or raise a 400 error."""

    email = normalize_email(raw_email)
    if not email:
        raise BadRequest("Email is required.")
    if not EMAIL_PATTERN.match(email):
        raise BadRequest("Email address is not valid.")
    return email


def validate_password(raw_password: str | None) -> str:
    password = raw_password if isinstance(raw_password, str) else ""
    if not password.strip():
        raise BadRequest("Password is required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )
    return password


def validate_signup(payload: dict) -> dict:
    """Check a signup body and return the cleaned profile fields."""

    missing = [key for key in SIGNUP_FIELDS if not str(payload.get(key) or "").strip()]
    if missing:
        raise BadRequest(
            "Missing required fields: {}.".format(", ".join(sorted(missing)))
        )

    return {
        "first_name": str(payload["firstName"]).strip(),
        "last_name": str(payload["lastName"]).strip(),
        "email": validate_email(payload["email"]),
        "password": validate_password(payload["password"]),
    }
