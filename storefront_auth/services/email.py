"""Transactional email: templates plus SMTP or console delivery."""

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from storefront_auth.config import Settings, get_settings

logger = logging.getLogger("storefront_auth")

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"


class EmailTransport(Protocol):
    def send(self, to: str, subject: str, html: str) -> None: ...


class SmtpTransport:
    """Delivers mail through an SMTP relay with STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        timeout: float = 10,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable mail client.")
        message.add_alternative(html, subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            smtp.login(self.username, self.password)
            smtp.send_message(message)
        logger.info("Email '%s' sent to %s", subject, to)


class ConsoleTransport:
    """Logs messages instead of sending them (SMTP not configured). Keeps nothing."""

    def send(self, to: str, subject: str, html: str) -> None:
        logger.info("EMAIL (console preview) to=%s subject=%s", to, subject)


def build_transport(settings: Settings) -> EmailTransport:
    """Pick SMTP when fully configured, otherwise the console transport."""
    if not settings.smtp_configured:
        logger.warning("SMTP not configured - emails will be logged to console")
        return ConsoleTransport()
    return SmtpTransport(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        sender=formataddr((settings.SMTP_FROM_NAME, settings.SMTP_FROM)),
        timeout=settings.SMTP_TIMEOUT_SECONDS,
    )


class EmailService:
    """Renders and sends the account emails."""

    def __init__(self, transport: EmailTransport, settings: Settings | None = None) -> None:
        self.transport = transport
        self.settings = settings or get_settings()
        self.templates = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(["html"]),
        )

    def _render(self, template_name: str, **context) -> str:
        context.setdefault("app_name", self.settings.SMTP_FROM_NAME)
        return self.templates.get_template(template_name).render(**context)

    def reset_link(self, token: str) -> str:
        return f"{self.settings.FRONTEND_URL.rstrip('/')}/reset-password.html?token={token}"

    def send_password_reset_email(self, email: str, token: str) -> None:
        """Send the reset link for a freshly issued token."""
        link = self.reset_link(token)
        if isinstance(self.transport, ConsoleTransport):
            logger.info("PASSWORD RESET for %s: %s", email, link)
        html = self._render(
            "password_reset.html",
            reset_link=link,
            expire_minutes=self.settings.RESET_TOKEN_EXPIRE_MINUTES,
        )
        self.transport.send(email, f"Reset your {self.settings.SMTP_FROM_NAME} password", html)

    def send_welcome_email(self, email: str, first_name: str) -> None:
        """Send the post-registration welcome message."""
        html = self._render(
            "welcome.html",
            # stored names are already HTML-escaped
            first_name=Markup(first_name),
            shop_link=f"{self.settings.FRONTEND_URL.rstrip('/')}/products.html",
        )
        self.transport.send(email, f"Welcome to {self.settings.SMTP_FROM_NAME}", html)
