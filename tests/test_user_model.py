"""Tests for the User model and password helpers."""

from models import db
from models.user import User
from services.user_service import UserService
from utils.passwords import compare_password, hash_password


def test_password_hashes_are_salted():
    first = hash_password("password123")
    second = hash_password("password123")

    assert first != second
    assert "password123" not in first
    assert compare_password("password123", first)
    assert compare_password("password123", second)
    assert not compare_password("password124", first)


def test_compare_password_without_digest():
    assert compare_password("password123", None) is False
    assert compare_password("", hash_password("password123")) is False


def test_user_defaults_and_verification(app):
    """New users start unverified requesters until they verify."""

    with app.app_context():
        user = User(first_name="Ada", last_name="Obi", email="helper@example.com")
        user.set_password("password123")
        db.session.add(user)
        db.session.commit()

        assert user.role == "requester"
        assert user.is_verified is False
        assert user.check_password("password123")

        UserService.update_by_id({"is_verified": True}, user.id)
        db.session.refresh(user)

        assert user.is_verified is True
