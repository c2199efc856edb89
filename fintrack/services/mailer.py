import logging
import smtplib
from email.message import EmailMessage

from flask import current_app

log = logging.getLogger(__name__)


class MailError(Exception):
    pass


def outbox():
    """Messages captured while ``MAIL_SUPPRESS_SEND`` is on."""
    return current_app.extensions.setdefault("fintrack_outbox", [])


def send_mail(to, subject, body):
    cfg = current_app.config
    msg = EmailMessage()
    msg["From"] = cfg["MAIL_DEFAULT_SENDER"]
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)

    if cfg.get("MAIL_SUPPRESS_SEND"):
        outbox().append(msg)
        log.info("Mail to %s suppressed: %s", to, subject)
        return msg

    try:
        with smtplib.SMTP(cfg["MAIL_SERVER"], cfg["MAIL_PORT"], timeout=30) as smtp:
            if cfg.get("MAIL_USE_TLS"):
                smtp.starttls()
            if cfg.get("MAIL_USERNAME"):
                smtp.login(cfg["MAIL_USERNAME"], cfg["MAIL_PASSWORD"])
            smtp.send_message(msg)
    except (OSError, smtplib.SMTPException) as exc:
        log.error("Mail to %s failed: %s", to, exc)
        raise MailError("Could not send e-mail, please try again later") from exc
    log.info("Mail sent to %s: %s", to, subject)
    return msg
