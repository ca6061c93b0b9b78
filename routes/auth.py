"""Authentication blueprint: signup, verification, login, social login,
logout and the password reset handshake."""

from __future__ import annotations

import secrets
from http import HTTPStatus

from flask import Blueprint, current_app, redirect, request, session, url_for
from flask_jwt_extended import set_access_cookies, unset_access_cookies
from werkzeug.exceptions import BadRequest

from errors import ApiError, DuplicateEmail, InvalidToken, UserNotFound
from extensions import auth_rate_limit, limiter
from models.user import User
from services.user_service import UserService
from utils.mailer import get_mailer
from utils.request_validation import (
    normalize_email,
    parse_json_request,
    validate_email,
    validate_password,
    validate_signup,
)
from utils.responses import success_response
from utils.social import IdentityProviderError, get_provider
from utils.passwords import password_fingerprint
from utils.tokens import PASSWORD_RESET, VERIFY_EMAIL, get_token_codec
from utils.user_response import UserResponse

INVALID_LOGIN = "Invalid login details"
ACCOUNT_NOT_FOUND = "User account does not exist"
SOCIAL_AUTH_FAILED = "Social authentication failed"
OAUTH_STATE_KEY = "oauth_state"

auth_bp = Blueprint("auth", __name__)


def _session_token(user: User) -> str:
    return get_token_codec().issue({"email": user.email, "id": user.id, "role": user.role})


def _with_auth_cookie(payload, token: str, status: int = HTTPStatus.OK):
    response, status = success_response(payload, status)
    set_access_cookies(response, token, max_age=current_app.config["AUTH_COOKIE_MAX_AGE"])
    return response, status


def _verification_link(user: User) -> str:
    token = get_token_codec().issue(
        {"id": user.id, "firstName": user.first_name, "role": user.role},
        purpose=VERIFY_EMAIL,
    )
    return url_for("auth.verify_email", token=token, _external=True)


def _sign_up(role: str):
    payload = parse_json_request(request)
    profile = validate_signup(payload)

    try:
        user = UserService.create({**profile, "role": role})
    except DuplicateEmail as exc:
        raise ApiError(HTTPStatus.CONFLICT, "A user with that email already exists.") from exc

    token = _session_token(user)
    user_response = UserResponse(user, token)
    email_sent = get_mailer().send_verification_email(
        email=user.email,
        first_name=user.first_name,
        verification_link=_verification_link(user),
    )
    if not email_sent:
        current_app.logger.warning("Verification email to user %s was not sent", user.id)
    current_app.logger.info("User %s signed up as %s", user.id, role)

    return _with_auth_cookie(
        {**user_response.to_dict(), "emailSent": email_sent},
        token,
        HTTPStatus.CREATED,
    )


@auth_bp.route("/signup/user", methods=["POST"])
@limiter.limit(auth_rate_limit)
def user_signup():
    """Register a requester account."""
    return _sign_up("requester")


@auth_bp.route("/signup/supplier", methods=["POST"])
@limiter.limit(auth_rate_limit)
def supplier_signup():
    """Register a supplier account."""
    return _sign_up("supplier")


@auth_bp.route("/verify", methods=["GET"])
def verify_email():
    """Mark the account named by the query token as verified."""

    try:
        claims = get_token_codec().verify(request.args.get("token"), VERIFY_EMAIL)
        user = UserService.update_by_id({"is_verified": True}, claims.get("id"))
    except InvalidToken as exc:
        raise ApiError(HTTPStatus.BAD_REQUEST, "Invalid token, verification unsuccessful") from exc
    except UserNotFound as exc:
        raise ApiError(HTTPStatus.BAD_REQUEST, "no user found to verify") from exc

    current_app.logger.info("User %s verified their email", user.id)
    return success_response(UserResponse(user).to_dict())


@auth_bp.route("/reset-password", methods=["POST"])
@limiter.limit(auth_rate_limit)
def send_reset_password_email():
    """Email a time-limited password reset link."""

    payload = parse_json_request(request, required_keys=("email",))
    email = validate_email(payload.get("email"))

    user = UserService.find(email)
    if user is None:
        raise ApiError(HTTPStatus.NOT_FOUND, ACCOUNT_NOT_FOUND)

    token = get_token_codec().issue(
        {
            "firstName": user.first_name,
            "id": user.id,
            "email": user.email,
            "fingerprint": password_fingerprint(user.password_hash),
        },
        ttl=current_app.config["RESET_TOKEN_TTL"],
        purpose=PASSWORD_RESET,
    )
    link = url_for("auth.verify_password_reset_link", token=token, _external=True)

    sent = get_mailer().send_reset_mail(
        email=user.email, first_name=user.first_name, reset_password_link=link
    )
    if not sent:
        current_app.logger.warning("Reset email to user %s was not sent", user.id)
        raise ApiError(HTTPStatus.NOT_FOUND, "Password reset link could not be sent")

    current_app.logger.info("Password reset link sent to user %s", user.id)
    return success_response("Password reset link sent successfully")


@auth_bp.route("/reset-password", methods=["GET"])
def verify_password_reset_link():
    """Check a reset link and point the client at the submission endpoint."""

    token = request.args.get("token")
    try:
        claims = get_token_codec().verify(token, PASSWORD_RESET)
    except InvalidToken as exc:
        raise ApiError(HTTPStatus.BAD_REQUEST, f"Verification unsuccessful, {exc.message}") from exc

    email = claims.get("email")
    if not email:
        raise ApiError(HTTPStatus.BAD_REQUEST, "Verification unsuccessful, Invalid Token")

    url = url_for("auth.reset_password", email=email, token=token, _external=True)
    return success_response(f"Goto {url} using POST Method")


@auth_bp.route("/password/reset/<email>", methods=["POST"])
@limiter.limit(auth_rate_limit)
def reset_password(email: str):
    """Store a new password for the account the reset token was issued to."""

    payload = parse_json_request(request, required_keys=("password",))
    password = validate_password(payload.get("password"))

    try:
        claims = get_token_codec().verify(request.args.get("token"), PASSWORD_RESET)
    except InvalidToken as exc:
        raise ApiError(HTTPStatus.BAD_REQUEST, f"Verification unsuccessful, {exc.message}") from exc

    if normalize_email(claims.get("email")) != normalize_email(email):
        raise ApiError(
            HTTPStatus.BAD_REQUEST,
            "Verification unsuccessful, reset link does not match this account",
        )

    user = UserService.find(email)
    if user is None:
        raise ApiError(HTTPStatus.NOT_FOUND, ACCOUNT_NOT_FOUND)
    # A changed password invalidates every reset link issued before it.
    if claims.get("fingerprint") != password_fingerprint(user.password_hash):
        raise ApiError(
            HTTPStatus.BAD_REQUEST,
            "Verification unsuccessful, reset link has already been used",
        )

    if UserService.update_password(password, email) != 1:
        raise ApiError(HTTPStatus.NOT_FOUND, ACCOUNT_NOT_FOUND)

    current_app.logger.info("Password changed for user %s", claims.get("id"))
    return success_response("Password has been changed successfully")


@auth_bp.route("/login", methods=["POST"])
@limiter.limit(auth_rate_limit)
def login_user():
    """Authenticate with email and password and set the auth cookie."""

    payload = parse_json_request(request)
    email = normalize_email(payload.get("email"))
    password = payload.get("password") or ""

    if not email or not password:
        raise BadRequest("Email and password are required.")

    # Unknown email and wrong password must be indistinguishable.
    user = UserService.user_login(email)
    if user is None or not user.check_password(password):
        raise ApiError(HTTPStatus.UNAUTHORIZED, INVALID_LOGIN)

    token = _session_token(user)
    current_app.logger.info("User %s logged in", user.id)
    return _with_auth_cookie(UserResponse(user, token).to_dict(), token)


def _require_provider(name: str):
    provider = get_provider(name)
    if provider is None:
        raise ApiError(HTTPStatus.NOT_FOUND, f"{name.title()} login is not enabled")
    return provider


def _social_callback_url(provider: str) -> str:
    return url_for("auth.social_login", provider=provider, _external=True)


@auth_bp.route("/<any(google, facebook):provider>", methods=["GET"])
def social_authorize(provider: str):
    """Send the browser to the identity provider's consent screen."""

    oauth = _require_provider(provider)
    state = secrets.token_urlsafe(24)
    session[OAUTH_STATE_KEY] = state
    return redirect(oauth.authorization_url(_social_callback_url(provider), state))


@auth_bp.route("/<any(google, facebook):provider>/callback", methods=["GET"])
def social_login(provider: str):
    """Finish the provider handshake and log in the matching local account."""

    oauth = _require_provider(provider)
    expected_state = session.pop(OAUTH_STATE_KEY, None)
    if not expected_state or request.args.get("state") != expected_state:
        raise ApiError(HTTPStatus.UNAUTHORIZED, SOCIAL_AUTH_FAILED)
    if request.args.get("error"):
        raise ApiError(HTTPStatus.UNAUTHORIZED, SOCIAL_AUTH_FAILED)

    try:
        identity = oauth.fetch_identity(request.args.get("code"), _social_callback_url(provider))
    except IdentityProviderError as exc:
        current_app.logger.warning("%s login failed: %s", provider, exc)
        raise ApiError(HTTPStatus.UNAUTHORIZED, SOCIAL_AUTH_FAILED) from exc

    user = UserService.social_login(identity)
    token = _session_token(user)
    current_app.logger.info("User %s logged in with %s", user.id, provider)
    return _with_auth_cookie(UserResponse(user, token).to_dict(), token)


@auth_bp.route("/logout", methods=["GET"])
def logout():
    """Clear the auth cookie."""

    response, status = success_response({"message": "You have been successfully logged out"})
    unset_access_cookies(response)
    return response, status
