"""Local identity: credentials, sessions, password reset and e-mail verification."""
import logging

from flask import current_app, render_template, url_for
from flask_login import login_user, logout_user
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..models import User
from ..utils.cpf import is_valid_cpf, normalize_cpf
from . import store
from .mailer import MailError, send_mail

log = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
RESET_SALT = "password-reset"
VERIFY_SALT = "email-verify"


class IdentityError(Exception):
    """A user-facing identity failure; ``str(exc)`` is safe to flash."""


class InvalidCredentials(IdentityError):
    def __init__(self, message="Invalid credentials"):
        super().__init__(message)


def normalize_email(email) -> str:
    return (email or "").strip().lower()


def find_user_by_email(email):
    email = normalize_email(email)
    if not email:
        return None
    return User.query.filter_by(email=email).first()


def _serializer(salt):
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=salt)


def _make_token(user, salt):
    # The password hash is part of the payload so a reset link dies once used
    return _serializer(salt).dumps({"uid": user.id, "pw": (user.password_hash or "")[-12:]})


def _load_token(token, salt, max_age):
    try:
        data = _serializer(salt).loads(token, max_age=max_age)
    except SignatureExpired as exc:
        raise IdentityError("This link has expired") from exc
    except BadSignature as exc:
        raise IdentityError("This link is invalid") from exc
    user = store.get(User, data.get("uid"))
    if user is None:
        raise IdentityError("This link is invalid")
    return user, data


def _check_password(password):
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise IdentityError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")


def register(name, email, password, cpf):
    name = (name or "").strip()
    email = normalize_email(email)
    if not all([name, email, password, cpf]):
        raise IdentityError("All fields are required")
    if not is_valid_cpf(cpf):
        raise IdentityError("Invalid CPF")
    _check_password(password)
    if find_user_by_email(email):
        raise IdentityError("Email already registered")

    user = User(name=name, email=email, cpf=normalize_cpf(cpf))
    user.set_password(password)
    try:
        store.insert(user)
    except store.StoreError as exc:
        raise IdentityError("Could not create account") from exc
    log.info("Registered user %s (id=%s)", user.email, user.id)

    try:
        send_email_verification(user)
    except MailError:
        log.warning("Verification e-mail for %s not delivered", user.email)
    return user


def authenticate(email, password):
    user = find_user_by_email(email)
    if user is None or not user.check_password(password or ""):
        log.info("Failed sign-in for %s", normalize_email(email))
        raise InvalidCredentials()
    return user


def sign_in(user, remember=False):
    login_user(user, remember=remember)
    log.info("User %s signed in", user.id)


def sign_out():
    logout_user()


def send_password_reset(email):
    """E-mail a reset link; unknown addresses are ignored without telling the caller."""
    user = find_user_by_email(email)
    if user is None or not user.password_hash:
        log.info("Password reset requested for unknown or OAuth-only account %s", normalize_email(email))
        return None
    token = _make_token(user, RESET_SALT)
    link = url_for("auth.reset_password", token=token, _external=True)
    body = render_template("email/reset_password.txt", user=user, link=link)
    send_mail(user.email, "Reset your FinTrack password", body)
    log.info("Password reset sent to user %s", user.id)
    return token


def reset_password(token, new_password):
    user, data = _load_token(token, RESET_SALT, current_app.config["PASSWORD_RESET_MAX_AGE"])
    if data.get("pw") != (user.password_hash or "")[-12:]:
        raise IdentityError("This link has already been used")
    _check_password(new_password)
    user.set_password(new_password)
    try:
        store.update_fields(user, password_hash=user.password_hash)
    except store.StoreError as exc:
        raise IdentityError("Could not update password") from exc
    log.info("Password reset completed for user %s", user.id)
    return user


def send_email_verification(user):
    if user.email_verified:
        return None
    token = _serializer(VERIFY_SALT).dumps({"uid": user.id, "email": user.email})
    link = url_for("auth.verify_email", token=token, _external=True)
    body = render_template("email/verify_email.txt", user=user, link=link)
    send_mail(user.email, "Confirm your FinTrack e-mail", body)
    return token


def verify_email(token):
    user, data = _load_token(token, VERIFY_SALT, current_app.config["EMAIL_VERIFY_MAX_AGE"])
    if data.get("email") != user.email:
        raise IdentityError("This link is invalid")
    if not user.email_verified:
        try:
            store.update_fields(user, email_verified=True)
        except store.StoreError as exc:
            raise IdentityError("Could not verify e-mail") from exc
        log.info("User %s verified e-mail", user.id)
    return user
