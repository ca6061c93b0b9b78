"""Signed, time-limited tokens carrying a small claims payload.

Tokens are JWTs minted through Flask-JWT-Extended so they share the
application's ``JWT_SECRET_KEY`` and cookie configuration. The codec only
exposes the claims it knows about; registered JWT claims (``sub``, ``exp``,
``jti`` and friends) stay internal.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Mapping

from flask import current_app
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import ExpiredSignatureError, InvalidTokenError

from errors import InvalidToken, TokenExpired

CLAIM_KEYS = ("id", "email", "role", "firstName", "fingerprint")
PURPOSE_CLAIM = "purpose"

SESSION = "session"
VERIFY_EMAIL = "verify"
PASSWORD_RESET = "reset"


class TokenCodec:
    """Issue and verify tokens for the current application."""

    def __init__(self, default_ttl: timedelta):
        self.default_ttl = default_ttl

    def issue(
        self,
        claims: Mapping[str, Any],
        ttl: timedelta | None = None,
        purpose: str = SESSION,
    ) -> str:
        """Return a signed token embedding ``claims``, its ``purpose`` and an expiry."""

        payload = {key: claims[key] for key in CLAIM_KEYS if claims.get(key) is not None}
        if "id" not in payload:
            raise ValueError("Token claims must include the user id.")
        return create_access_token(
            identity=str(payload["id"]),
            additional_claims={**payload, PURPOSE_CLAIM: purpose},
            expires_delta=ttl or self.default_ttl,
        )

    def verify(self, token: str | None, expected_purpose: str = SESSION) -> dict[str, Any]:
        """Return the claims carried by ``token``.

        Raises ``TokenExpired`` once the lifetime has elapsed and
        ``InvalidToken`` for anything else that fails verification,
        including a token minted for a different purpose.
        """

        if not token:
            raise InvalidToken()
        try:
            decoded = decode_token(token)
        except ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except (InvalidTokenError, JWTExtendedException) as exc:
            raise InvalidToken() from exc
        if decoded.get(PURPOSE_CLAIM) != expected_purpose:
            raise InvalidToken()
        return {key: decoded[key] for key in CLAIM_KEYS if key in decoded}


def get_token_codec() -> TokenCodec:
    return current_app.extensions["token_codec"]
