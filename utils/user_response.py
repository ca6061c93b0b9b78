"""Client-safe projection of a user record."""

from __future__ import annotations

from typing import Any

from models.user import User


class UserResponse:
    """Shape a ``User`` for API responses, leaving out the password hash."""

    def __init__(self, user: User, token: str | None = None):
        self.user = user
        self.token = token

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.user.id,
            "firstName": self.user.first_name,
            "lastName": self.user.last_name,
            "email": self.user.email,
            "role": self.user.role,
            "isVerified": bool(self.user.is_verified),
        }
        if self.token:
            data["token"] = self.token
        return data
