from __future__ import annotations

import pytest

from fintrack import create_app
from fintrack.config import TestingConfig
from fintrack.extensions import db
from fintrack.models import User
from fintrack.services import oauth


EMAIL = "maria@example.com"
PASSWORD = "super-secret-password"
VALID_CPF = "52998224725"


@pytest.fixture()
def app():
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def ctx(app):
    """Request context for calling services directly (no test client requests inside)."""
    with app.test_request_context():
        yield


def create_user(app, name="Maria Silva", email=EMAIL, password=PASSWORD, cpf=VALID_CPF) -> int:
    with app.app_context():
        user = User(name=name, email=email, cpf=cpf)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user.id


@pytest.fixture()
def user_id(app) -> int:
    return create_user(app)


@pytest.fixture()
def logged_in(client, user_id):
    response = client.post(
        "/auth/login",
        data={"email": EMAIL, "password": PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 302
    return client


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeProvider:
    """Stands in for ``httpx.request`` and records the calls made."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        result = self.routes[(method, url)]
        if isinstance(result, Exception):
            raise result
        return result


GOOGLE = oauth.PROVIDERS["google"]
GITHUB = oauth.PROVIDERS["github"]


def google_routes(profile=None):
    return {
        ("POST", GOOGLE.token_url): FakeResponse(payload={"access_token": "g-token"}),
        ("GET", GOOGLE.userinfo_url): FakeResponse(
            payload=profile or {"sub": "g-123", "email": "New.User@example.com", "email_verified": True, "name": "New User"}
        ),
    }


