"""OAuth 2.0 clients for the social login providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import urlencode

import requests
from flask import current_app


class IdentityProviderError(Exception):
    """The provider handshake failed or returned no usable identity."""


@dataclass(frozen=True)
class OAuthProvider:
    """Authorization-code flow against a single identity provider."""

    name: str
    client_id: str
    client_secret: str
    authorize_url: str
    token_url: str
    userinfo_url: str
    scope: str
    userinfo_params: Mapping[str, str] | None = None
    timeout: float = 10

    def authorization_url(self, redirect_uri: str, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    def fetch_identity(self, code: str, redirect_uri: str) -> dict[str, Any]:
        """Exchange ``code`` for an access token and return the user's identity.

        The identity mirrors the profile shape most OAuth libraries produce:
        ``{"provider", "id", "emails": [{"value": ...}], "name": {...}}``.
        """

        if not code:
            raise IdentityProviderError("Authorization code is missing.")

        try:
            token_response = requests.post(
                self.token_url,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "redirect_uri": redirect_uri,
                    "grant_type": "authorization_code",
                },
                timeout=self.timeout,
            )
            if token_response.status_code != 200:
                raise IdentityProviderError(
                    f"{self.name} token exchange failed with status {token_response.status_code}."
                )
            access_token = token_response.json().get("access_token")
            if not access_token:
                raise IdentityProviderError(f"{self.name} returned no access token.")

            profile_response = requests.get(
                self.userinfo_url,
                params=dict(self.userinfo_params or {}),
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.timeout,
            )
            if profile_response.status_code != 200:
                raise IdentityProviderError(
                    f"{self.name} profile request failed with status {profile_response.status_code}."
                )
            profile = profile_response.json()
        except (requests.RequestException, ValueError) as exc:
            raise IdentityProviderError(f"{self.name} handshake failed: {exc}") from exc

        return self._to_identity(profile)

    def _to_identity(self, profile: Mapping[str, Any]) -> dict[str, Any]:
        email = profile.get("email")
        if profile.get("email_verified") is False:
            email = None
        return {
            "provider": self.name,
            "id": profile.get("sub") or profile.get("id"),
            "emails": [{"value": email}] if email else [],
            "name": {
                "givenName": profile.get("given_name") or profile.get("first_name"),
                "familyName": profile.get("family_name") or profile.get("last_name"),
            },
        }


def load_providers(config: Mapping[str, Any]) -> dict[str, OAuthProvider]:
    """Build a provider for every client id present in ``config``."""

    timeout = float(config.get("OAUTH_TIMEOUT", 10))
    providers: dict[str, OAuthProvider] = {}

    if config.get("GOOGLE_CLIENT_ID"):
        providers["google"] = OAuthProvider(
            name="google",
            client_id=config["GOOGLE_CLIENT_ID"],
            client_secret=config.get("GOOGLE_CLIENT_SECRET") or "",
            authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
            token_url="https://oauth2.googleapis.com/token",
            userinfo_url="https://openidconnect.googleapis.com/v1/userinfo",
            scope="openid email profile",
            timeout=timeout,
        )

    if config.get("FACEBOOK_CLIENT_ID"):
        providers["facebook"] = OAuthProvider(
            name="facebook",
            client_id=config["FACEBOOK_CLIENT_ID"],
            client_secret=config.get("FACEBOOK_CLIENT_SECRET") or "",
            authorize_url="https://www.facebook.com/v19.0/dialog/oauth",
            token_url="https://graph.facebook.com/v19.0/oauth/access_token",
            userinfo_url="https://graph.facebook.com/me",
            scope="email",
            userinfo_params={"fields": "id,email,first_name,last_name"},
            timeout=timeout,
        )

    return providers


def get_provider(name: str) -> OAuthProvider | None:
    return current_app.extensions["oauth_providers"].get(name)
