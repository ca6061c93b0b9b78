"""Password hashing helpers."""

from __future__ import annotations

import hashlib

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str) -> str:
    """Return a salted one-way digest of ``password``."""
    return generate_password_hash(password)


def compare_password(password: str, password_hash: str | None) -> bool:
    """Check ``password`` against a stored digest in constant time."""
    if not password or not password_hash:
        return False
    return check_password_hash(password_hash, password)


def password_fingerprint(password_hash: str | None) -> str:
    """Short digest of the stored hash; it changes whenever the password does."""
    return hashlib.sha256((password_hash or "").encode()).hexdigest()[:16]
