"""Account mail: activation and password reset messages."""

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from app.config import get_settings
from app.models.user import User

logger = logging.getLogger("sample_app")

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "mail"


@dataclass
class MailMessage:
    """A rendered message ready for delivery."""

    to: str
    subject: str
    body: str


class Mailer:
    """Renders account mail and hands it to the configured delivery method.

    Delivery methods:
        - console: log the message (development)
        - smtp: send through ``SMTP_HOST``
        - test: append to ``deliveries`` (tests inspect it)
    """

    def __init__(self, delivery_method: str | None = None) -> None:
        settings = get_settings()
        self.delivery_method = delivery_method or settings.MAIL_DELIVERY_METHOD
        self.deliveries: list[MailMessage] = []
        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def account_activation(self, user: User, token: str) -> MailMessage:
        """Build and deliver the account activation mail."""
        settings = get_settings()
        url = f"{settings.APP_URL}/api/v1/account-activations/{token}?email={quote(user.email)}"
        body = self._env.get_template("account_activation.txt").render(user=user, activation_url=url)
        return self.deliver(MailMessage(to=user.email, subject="Account activation", body=body))

    def password_reset(self, user: User, token: str) -> MailMessage:
        """Build and deliver the password reset mail."""
        settings = get_settings()
        url = f"{settings.APP_URL}/api/v1/password-resets/{token}?email={quote(user.email)}"
        body = self._env.get_template("password_reset.txt").render(
            user=user, reset_url=url, expiry_hours=settings.PASSWORD_RESET_EXPIRY_HOURS
        )
        return self.deliver(MailMessage(to=user.email, subject="Password reset", body=body))

    def deliver(self, message: MailMessage) -> MailMessage:
        if self.delivery_method == "test":
            self.deliveries.append(message)
        elif self.delivery_method == "smtp":
            self._send_smtp(message)
        else:
            logger.info("MAIL to=%s subject=%s\n%s", message.to, message.subject, message.body)
        return message

    def _send_smtp(self, message: MailMessage) -> None:
        settings = get_settings()
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = settings.MAIL_FROM
        msg["To"] = message.to
        msg.set_content(message.body)

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as smtp:
            smtp.starttls()
            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            smtp.send_message(msg)
        logger.info("Sent '%s' mail to %s", message.subject, message.to)


_mailer: Mailer | None = None


def get_mailer() -> Mailer:
    """Get singleton mailer instance."""
    global _mailer
    if _mailer is None:
        _mailer = Mailer()
    return _mailer
