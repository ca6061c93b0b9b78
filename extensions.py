"""Flask extension instances shared by the factory and the blueprints."""

from flask import current_app
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[lambda: current_app.config.get("RATE_LIMIT", "60 per minute")],
)


def auth_rate_limit() -> str:
    """Limit applied to credential-bearing endpoints."""
    return current_app.config.get("AUTH_RATE_LIMIT", "10 per minute")
