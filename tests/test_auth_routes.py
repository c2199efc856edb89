from urllib.parse import parse_qs, urlparse

from fintrack.models import User
from fintrack.services import identity, oauth
from fintrack.services.mailer import MailError

from conftest import EMAIL, VALID_CPF, FakeProvider, google_routes


def test_landing_page_for_anonymous_user(client):
    response = client.get("/")
    assert response.status_code == 200
    assert b"FinTrack" in response.data


def test_protected_pages_redirect_to_login(client):
    for path in ("/dashboard/", "/transactions/", "/profile/", "/dashboard/summary.json"):
        response = client.get(path, follow_redirects=False)
        assert response.status_code == 302
        assert "/auth/login" in response.headers["Location"]


def test_register_then_login(app, client):
    response = client.post(
        "/auth/register",
        data={"name": "Ana", "email": "ana@example.com", "password": "secret123", "confirm": "secret123", "cpf": "529.982.247-25"},
        follow_redirects=False,
    )
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/auth/login")
    assert len(app.extensions["fintrack_outbox"]) == 1

    response = client.post(
        "/auth/login",
        data={"email": "ana@example.com", "password": "secret123"},
        follow_redirects=False,
    )
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/dashboard/")


def test_register_with_bad_cpf_shows_error(app, client):
    response = client.post(
        "/auth/register",
        data={"name": "Ana", "email": "ana@example.com", "password": "secret123", "confirm": "secret123", "cpf": "12345678900"},
    )
    assert response.status_code == 200
    assert b"Invalid CPF" in response.data
    with app.app_context():
        assert User.query.count() == 0


def test_register_rejects_mismatched_passwords(app, client):
    response = client.post(
        "/auth/register",
        data={"name": "Ana", "email": "ana@example.com", "password": "secret123", "confirm": "secret124", "cpf": VALID_CPF},
    )
    assert response.status_code == 200
    assert b"Passwords do not match" in response.data
    assert b"ana@example.com" in response.data
    assert app.extensions.get("fintrack_outbox", []) == []
    with app.app_context():
        assert User.query.count() == 0


def test_register_page_lists_configured_providers(client):
    response = client.get("/auth/register")
    assert b'name="confirm"' in response.data
    assert b"Sign in with Google" in response.data
    assert b"Sign in with GitHub" in response.data


def test_login_with_wrong_password(client, user_id):
    response = client.post("/auth/login", data={"email": EMAIL, "password": "nope"})
    assert response.status_code == 200
    assert b"Invalid credentials" in response.data


def test_logout(logged_in):
    response = logged_in.get("/auth/logout", follow_redirects=False)
    assert response.status_code == 302
    assert logged_in.get("/dashboard/", follow_redirects=False).status_code == 302


def test_authenticated_user_skips_landing(logged_in):
    response = logged_in.get("/", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/dashboard/")


def test_forgot_and_reset_password(app, client, user_id):
    response = client.post("/auth/forgot-password", data={"email": EMAIL}, follow_redirects=False)
    assert response.status_code == 302

    body = app.extensions["fintrack_outbox"][-1].get_content()
    link = next(line for line in body.splitlines() if line.startswith("http"))
    path = urlparse(link).path

    response = client.post(path, data={"password": "new-pass-1", "confirm": "different"})
    assert b"Passwords do not match" in response.data

    response = client.post(path, data={"password": "new-pass-1", "confirm": "new-pass-1"}, follow_redirects=False)
    assert response.status_code == 302

    response = client.post("/auth/login", data={"email": EMAIL, "password": "new-pass-1"}, follow_redirects=False)
    assert response.status_code == 302


def test_forgot_password_does_not_reveal_unknown_accounts(app, client):
    response = client.post("/auth/forgot-password", data={"email": "ghost@example.com"}, follow_redirects=True)
    assert b"recovery e-mail is on its way" in response.data
    assert app.extensions.get("fintrack_outbox", []) == []


def test_forgot_password_hides_delivery_failures(app, client, user_id, monkeypatch):
    def broken_mail(*args, **kwargs):
        raise MailError("Could not send e-mail, please try again later")

    monkeypatch.setattr(identity, "send_mail", broken_mail)
    response = client.post("/auth/forgot-password", data={"email": EMAIL}, follow_redirects=True)
    assert b"recovery e-mail is on its way" in response.data
    assert b"Could not send e-mail" not in response.data


def test_verification_link_marks_user_verified(app, client):
    client.post(
        "/auth/register",
        data={"name": "Ana", "email": "ana@example.com", "password": "secret123", "confirm": "secret123", "cpf": VALID_CPF},
    )
    body = app.extensions["fintrack_outbox"][0].get_content()
    link = next(line for line in body.splitlines() if line.startswith("http"))

    response = client.get(urlparse(link).path, follow_redirects=True)
    assert b"E-mail verified" in response.data
    with app.app_context():
        assert User.query.filter_by(email="ana@example.com").one().email_verified is True


def test_resend_verification(app, logged_in):
    response = logged_in.post("/auth/verify/resend", follow_redirects=True)
    assert b"Verification e-mail sent" in response.data
    assert app.extensions["fintrack_outbox"][-1]["To"] == EMAIL


def test_oauth_round_trip(app, client, monkeypatch):
    monkeypatch.setattr(oauth.httpx, "request", FakeProvider(google_routes()))

    response = client.get("/auth/oauth/google", follow_redirects=False)
    assert response.status_code == 302
    state = parse_qs(urlparse(response.headers["Location"]).query)["state"][0]

    response = client.get(f"/auth/oauth/google/callback?code=abc&state={state}", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/dashboard/")
    assert client.get("/dashboard/").status_code == 200


def test_oauth_callback_with_bad_state(client):
    client.get("/auth/oauth/google")
    response = client.get("/auth/oauth/google/callback?code=abc&state=forged", follow_redirects=True)
    assert b"Sign-in session expired" in response.data


def test_oauth_unknown_provider(client):
    response = client.get("/auth/oauth/myspace", follow_redirects=True)
    assert b"Unknown sign-in provider" in response.data


def test_login_page_lists_configured_providers(client):
    response = client.get("/auth/login")
    assert b"Sign in with Google" in response.data
    assert b"Sign in with GitHub" in response.data
