"""Persistence operations on user accounts."""

from __future__ import annotations

from typing import Any, Mapping

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import ApiError, DuplicateEmail, UserNotFound
from models import db
from models.user import ROLES, User
from utils.passwords import hash_password

UPDATABLE_FIELDS = {"first_name", "last_name", "role", "is_verified"}


class UserService:
    """Interface between the auth routes and the ``User`` model."""

    @staticmethod
    def find(email: str | None) -> User | None:
        """Return the user registered with ``email`` (case-insensitive)."""

        if not email:
            return None
        return User.query.filter(func.lower(User.email) == email.strip().lower()).first()

    @staticmethod
    def user_login(email: str | None) -> User | None:
        return UserService.find(email)

    @staticmethod
    def create(data: Mapping[str, Any]) -> User:
        """Persist a new user, hashing the password on the way in.

        Raises ``DuplicateEmail`` if the address is already registered.
        """

        role = data.get("role") or "requester"
        if role not in ROLES:
            raise ValueError(f"Unknown role {role!r}.")

        email = data["email"].strip().lower()
        if UserService.find(email) is not None:
            raise DuplicateEmail(email)

        user = User(
            first_name=data["first_name"],
            last_name=data["last_name"],
            email=email,
            role=role,
        )
        user.set_password(data["password"])

        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise DuplicateEmail(email) from exc
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return user

    @staticmethod
    def update_by_id(fields: Mapping[str, Any], user_id: int | str) -> User:
        """Apply ``fields`` to the user with ``user_id``.

        Raises ``UserNotFound`` if no such user exists.
        """

        try:
            user_id = int(user_id)
        except (TypeError, ValueError) as exc:
            raise UserNotFound() from exc

        user = db.session.get(User, user_id)
        if user is None:
            raise UserNotFound()

        for key, value in fields.items():
            if key not in UPDATABLE_FIELDS:
                raise ValueError(f"Field {key!r} cannot be updated.")
            setattr(user, key, value)

        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return user

    @staticmethod
    def update_password(password: str, email: str) -> int:
        """Store a new password for ``email`` and return the number of rows changed."""

        password_hash = hash_password(password)

        try:
            affected = User.query.filter(func.lower(User.email) == email.strip().lower()).update(
                {User.password_hash: password_hash},
                synchronize_session=False,
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return affected

    @staticmethod
    def social_login(identity: Mapping[str, Any]) -> User:
        """Return the local account matching an externally verified identity.

        Accounts are never created here; users must sign up first.
        """

        emails = identity.get("emails") or []
        email = emails[0].get("value") if emails else None
        if not email:
            raise ApiError(400, "No email address was returned by the identity provider")

        try:
            user = UserService.find(email)
        except SQLAlchemyError as exc:
            current_app.logger.exception("Social login lookup failed for %s", email)
            raise ApiError(500, "Unable to complete social login") from exc

        if user is None:
            raise ApiError(403, "You need to signup to use this feature")
        return user
