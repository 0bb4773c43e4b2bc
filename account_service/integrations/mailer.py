"""
SMTP delivery of account notifications (activation links).

When no SMTP host is configured the message is logged instead of sent, which
keeps local development usable without a mail relay.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.mime.text import MIMEText

from ..domain.errors import NotificationFailed

logger = logging.getLogger(__name__)


def redact_email(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class SmtpNotifier:
    def __init__(
        self,
        *,
        host: str,
        port: int = 465,
        user: str = "",
        password: str = "",
        sender: str = "",
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender or user
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.sender)

    def notify(self, *, email: str, subject: str, message: str) -> None:
        """Send a plain-text message, raising ``NotificationFailed`` on any SMTP error."""
        if not self.is_configured:
            logger.info("smtp not configured; %r for %s not sent", subject, redact_email(email))
            return

        msg = MIMEText(message, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = email
        try:
            if self.port == 465:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as server:
                    self._deliver(server, email, msg)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                    server.ehlo()
                    server.starttls(context=ssl.create_default_context())
                    self._deliver(server, email, msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("failed to send %r to %s: %s", subject, redact_email(email), exc)
            raise NotificationFailed(str(exc) or NotificationFailed.default_message) from exc

    def _deliver(self, server: smtplib.SMTP, email: str, msg: MIMEText) -> None:
        if self.user and self.password:
            server.login(self.user, self.password)
        server.sendmail(self.sender, [email], msg.as_string())
