"""Outbound account emails.

Messages are rendered from the Jinja templates under ``templates/email`` and
delivered over SMTP. Delivery problems are logged and reported as ``False``;
callers decide whether a failed send matters.
"""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import Any, Mapping

from flask import current_app, render_template


class Mailer:
    """Sends verification and password-reset emails."""

    def __init__(
        self,
        server: str,
        port: int,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10,
        suppress_send: bool = False,
    ):
        self.server = server
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.suppress_send = suppress_send

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Mailer":
        return cls(
            server=config["MAIL_SERVER"],
            port=int(config["MAIL_PORT"]),
            sender=config["MAIL_DEFAULT_SENDER"],
            username=config.get("MAIL_USERNAME"),
            password=config.get("MAIL_PASSWORD"),
            use_tls=bool(config.get("MAIL_USE_TLS", True)),
            timeout=float(config.get("MAIL_TIMEOUT", 10)),
            suppress_send=bool(config.get("MAIL_SUPPRESS_SEND", False)),
        )

    def send_verification_email(
        self, *, email: str, first_name: str, verification_link: str
    ) -> bool:
        """Send the account verification link to a newly registered user."""

        html = render_template(
            "email/verify_email.html",
            name=first_name,
            verification_link=verification_link,
        )
        return self._send(email, "Verify your email address", html)

    def send_reset_mail(
        self, *, email: str, first_name: str, reset_password_link: str
    ) -> bool:
        """Send a password reset link."""

        html = render_template(
            "email/reset_password.html",
            name=first_name,
            reset_password_link=reset_password_link,
        )
        return self._send(email, "Reset your password", html)

    def _build_message(self, recipient: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = recipient
        message.set_content("Open this message in an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    def _send(self, recipient: str, subject: str, html: str) -> bool:
        message = self._build_message(recipient, subject, html)

        if self.suppress_send:
            current_app.logger.info("Mail delivery suppressed: %r to %s", subject, recipient)
            return True

        try:
            with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError):
            current_app.logger.exception("Failed to send %r to %s", subject, recipient)
            return False

        current_app.logger.info("Sent %r to %s", subject, recipient)
        return True


def get_mailer() -> Mailer:
    return current_app.extensions["mailer"]
