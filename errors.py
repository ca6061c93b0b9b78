"""Domain exceptions raised by the auth services and routes."""

from __future__ import annotations


class ApiError(Exception):
    """An error with an HTTP status that is safe to show to the client."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class InvalidToken(Exception):
    """The token is missing, malformed or carries a bad signature."""

    default_message = "Invalid Token"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class TokenExpired(InvalidToken):
    """The token was well formed but its lifetime has elapsed."""

    default_message = "Token Expired"


class UserNotFound(LookupError):
    """No user row matched the lookup."""

    def __init__(self, message: str = "Not Found"):
        super().__init__(message)
        self.message = message


class DuplicateEmail(Exception):
    """A user with the given email already exists."""

    def __init__(self, email: str):
        super().__init__(f"A user with email {email!r} already exists.")
        self.email = email
