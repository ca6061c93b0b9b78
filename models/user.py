"""User model definition."""

from datetime import datetime

from utils.passwords import compare_password, hash_password

from . import db


ROLES = ("requester", "manager", "supplier", "travel_admin", "super_admin")


class User(db.Model):
    """Represents a traveller, supplier or administrator account."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default="requester")
    is_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return compare_password(password, self.password_hash)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
