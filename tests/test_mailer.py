import smtplib

import pytest

from fintrack.services import mailer


def test_suppressed_mail_goes_to_outbox(app, ctx):
    msg = mailer.send_mail("ana@example.com", "Hello", "Body text")

    assert mailer.outbox() == [msg]
    assert msg["From"] == app.config["MAIL_DEFAULT_SENDER"]
    assert msg.get_content().strip() == "Body text"


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port = host, port
        self.calls = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username))

    def send_message(self, msg):
        FakeSMTP.sent.append((self.host, self.port, self.calls, msg["To"]))


def test_smtp_delivery(app, ctx, monkeypatch):
    app.config.update(MAIL_SUPPRESS_SEND=False, MAIL_SERVER="smtp.example.com", MAIL_PORT=2525,
                      MAIL_USERNAME="bot", MAIL_PASSWORD="pw", MAIL_USE_TLS=True)
    FakeSMTP.sent = []
    monkeypatch.setattr(mailer.smtplib, "SMTP", FakeSMTP)

    mailer.send_mail("ana@example.com", "Hello", "Body")

    assert FakeSMTP.sent == [("smtp.example.com", 2525, ["starttls", ("login", "bot")], "ana@example.com")]
    assert mailer.outbox() == []


def test_smtp_failure_raises_mail_error(app, ctx, monkeypatch):
    app.config.update(MAIL_SUPPRESS_SEND=False, MAIL_SERVER="smtp.example.com")

    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "busy")

    monkeypatch.setattr(mailer.smtplib, "SMTP", refuse)
    with pytest.raises(mailer.MailError):
        mailer.send_mail("ana@example.com", "Hello", "Body")
