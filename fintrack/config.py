import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


def _flag(name, default="0"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'fintrack.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Display
    CURRENCY_FORMAT = os.getenv("CURRENCY_FORMAT", "R$ {:,.2f}")
    # Rendered as "R$ 1.234,56"
    CURRENCY_DECIMAL_SEP = os.getenv("CURRENCY_DECIMAL_SEP", ",")
    CURRENCY_THOUSANDS_SEP = os.getenv("CURRENCY_THOUSANDS_SEP", ".")
    DATE_FORMAT = os.getenv("DATE_FORMAT", "%d/%m/%Y")

    # Dashboard windows
    UPCOMING_BILLS_DAYS = int(os.getenv("UPCOMING_BILLS_DAYS", "7"))
    RECENT_TRANSACTIONS_LIMIT = int(os.getenv("RECENT_TRANSACTIONS_LIMIT", "5"))
    DASHBOARD_MONTHS = int(os.getenv("DASHBOARD_MONTHS", "4"))

    # Signed links (seconds)
    PASSWORD_RESET_MAX_AGE = int(os.getenv("PASSWORD_RESET_MAX_AGE", "3600"))
    EMAIL_VERIFY_MAX_AGE = int(os.getenv("EMAIL_VERIFY_MAX_AGE", str(3 * 24 * 3600)))

    # Outgoing mail
    MAIL_SERVER = os.getenv("MAIL_SERVER", "")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = _flag("MAIL_USE_TLS", "1")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "FinTrack <no-reply@fintrack.local>")
    # Without an SMTP server messages only go to the log and the in-app outbox
    MAIL_SUPPRESS_SEND = _flag("MAIL_SUPPRESS_SEND", "0") or not MAIL_SERVER

    # OAuth providers
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
    GITHUB_CLIENT_ID = os.getenv("GITHUB_CLIENT_ID", "")
    GITHUB_CLIENT_SECRET = os.getenv("GITHUB_CLIENT_SECRET", "")
    OAUTH_TIMEOUT = float(os.getenv("OAUTH_TIMEOUT", "10"))


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "tests-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    MAIL_SUPPRESS_SEND = True
    GOOGLE_CLIENT_ID = "google-client"
    GOOGLE_CLIENT_SECRET = "google-secret"
    GITHUB_CLIENT_ID = "github-client"
    GITHUB_CLIENT_SECRET = "github-secret"
