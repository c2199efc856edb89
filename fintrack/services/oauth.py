"""Authorization-code sign-in with Google and GitHub."""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx
from flask import current_app, session

from ..models import User
from . import store

log = logging.getLogger(__name__)

STATE_KEY = "oauth_state"


class OAuthError(Exception):
    pass


@dataclass(frozen=True)
class Provider:
    name: str
    label: str
    authorize_url: str
    token_url: str
    userinfo_url: str
    scope: str
    emails_url: str | None = None


PROVIDERS = {
    "google": Provider(
        name="google",
        label="Google",
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        userinfo_url="https://openidconnect.googleapis.com/v1/userinfo",
        scope="openid email profile",
    ),
    "github": Provider(
        name="github",
        label="GitHub",
        authorize_url="https://github.com/login/oauth/authorize",
        token_url="https://github.com/login/oauth/access_token",
        userinfo_url="https://api.github.com/user",
        scope="read:user user:email",
        emails_url="https://api.github.com/user/emails",
    ),
}


@dataclass
class Profile:
    subject: str
    email: str
    name: str


def _credentials(provider: Provider) -> tuple[str, str]:
    prefix = provider.name.upper()
    client_id = current_app.config.get(f"{prefix}_CLIENT_ID")
    client_secret = current_app.config.get(f"{prefix}_CLIENT_SECRET")
    if not client_id or not client_secret:
        raise OAuthError(f"{provider.label} sign-in is not configured")
    return client_id, client_secret


def get_provider(name: str) -> Provider:
    provider = PROVIDERS.get((name or "").lower())
    if provider is None:
        raise OAuthError(f"Unknown sign-in provider: {name}")
    return provider


def enabled_providers() -> list[Provider]:
    enabled = []
    for provider in PROVIDERS.values():
        prefix = provider.name.upper()
        if current_app.config.get(f"{prefix}_CLIENT_ID") and current_app.config.get(f"{prefix}_CLIENT_SECRET"):
            enabled.append(provider)
    return enabled


def authorization_url(name: str, redirect_uri: str) -> str:
    provider = get_provider(name)
    client_id, _ = _credentials(provider)
    state = secrets.token_urlsafe(24)
    session[STATE_KEY] = f"{provider.name}:{state}"
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": provider.scope,
        "state": state,
    }
    return f"{provider.authorize_url}?{urlencode(params)}"


def _request(method: str, url: str, **kwargs) -> dict | list:
    timeout = current_app.config.get("OAUTH_TIMEOUT", 10)
    try:
        response = httpx.request(method, url, timeout=timeout, **kwargs)
    except httpx.RequestError as exc:
        raise OAuthError(f"Could not reach the sign-in provider: {exc}") from exc
    if response.status_code >= 400:
        raise OAuthError(f"Sign-in provider answered with status {response.status_code}")
    try:
        return response.json()
    except ValueError as exc:
        raise OAuthError("Sign-in provider returned an invalid response") from exc


def _exchange_code(provider: Provider, code: str, redirect_uri: str) -> str:
    client_id, client_secret = _credentials(provider)
    payload = _request(
        "POST",
        provider.token_url,
        data={
            "client_id": client_id,
            "client_secret": client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        },
        headers={"Accept": "application/json"},
    )
    token = payload.get("access_token") if isinstance(payload, dict) else None
    if not token:
        raise OAuthError("Sign-in provider did not return an access token")
    return token


def _fetch_profile(provider: Provider, access_token: str) -> Profile:
    headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
    info = _request("GET", provider.userinfo_url, headers=headers)
    if not isinstance(info, dict):
        raise OAuthError("Sign-in provider returned an invalid profile")

    if provider.name == "google":
        subject = info.get("sub")
        email = info.get("email") if info.get("email_verified", True) else None
        name = info.get("name")
    else:
        subject = info.get("id")
        email = info.get("email")
        name = info.get("name") or info.get("login")
        if not email and provider.emails_url:
            emails = _request("GET", provider.emails_url, headers=headers)
            email = next(
                (e.get("email") for e in emails if isinstance(e, dict) and e.get("primary") and e.get("verified")),
                None,
            )

    if not subject or not email:
        raise OAuthError(f"{provider.label} did not share a verified e-mail address")
    return Profile(subject=str(subject), email=email.strip().lower(), name=name or "User")


def _find_or_create_user(provider: Provider, profile: Profile) -> User:
    user = User.query.filter_by(oauth_provider=provider.name, oauth_subject=profile.subject).first()
    if user is not None:
        return user

    user = User.query.filter_by(email=profile.email).first()
    try:
        if user is not None:
            log.info("Linking %s identity to existing user %s", provider.label, user.id)
            return store.update_fields(
                user,
                oauth_provider=provider.name,
                oauth_subject=profile.subject,
                email_verified=True,
            )
        user = User(
            name=profile.name,
            email=profile.email,
            oauth_provider=provider.name,
            oauth_subject=profile.subject,
            email_verified=True,
        )
        store.insert(user)
    except store.StoreError as exc:
        raise OAuthError("Could not save your account") from exc
    log.info("Created user %s from %s sign-in", user.id, provider.label)
    return user


def complete_login(name: str, code: str | None, state: str | None, redirect_uri: str) -> User:
    provider = get_provider(name)
    expected = session.pop(STATE_KEY, None)
    if not state or expected != f"{provider.name}:{state}":
        raise OAuthError("Sign-in session expired, please try again")
    if not code:
        raise OAuthError("Sign-in was cancelled")
    access_token = _exchange_code(provider, code, redirect_uri)
    profile = _fetch_profile(provider, access_token)
    return _find_or_create_user(provider, profile)
