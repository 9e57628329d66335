"""
auth/mail.py -- Outbound notification sink for password reset mail.

The reset flow only needs `send(to, subject, html)`. SmtpMailer is the
production implementation; tests substitute any object with the same method.

Delivery is fire-and-forget: one attempt, no receipt. Connection and
protocol failures surface as UpstreamError so the caller can log them
without caring which transport is behind the interface.
"""

from __future__ import annotations

import html
import logging
import smtplib
from email.message import EmailMessage
from typing import TYPE_CHECKING, Protocol

from auth.errors import UpstreamError

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("shopkeep.auth.mail")

_SMTP_TIMEOUT = 10


class Mailer(Protocol):
    def send(self, to: str, subject: str, html_body: str) -> None: ...


class SmtpMailer:
    """Send HTML mail through the SMTP relay named in Settings."""

    def __init__(self, settings: Settings) -> None:
        self.host = settings.mail_host
        self.port = settings.mail_port
        self.user = settings.mail_user
        self.password = settings.mail_pass
        self.sender = settings.mail_from

    def send(self, to: str, subject: str, html_body: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML-capable mail client.")
        msg.add_alternative(html_body, subtype="html")
        try:
            with smtplib.SMTP(self.host, self.port, timeout=_SMTP_TIMEOUT) as smtp:
                if self.user:
                    smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (OSError, smtplib.SMTPException) as exc:
            raise UpstreamError("Mail relay unavailable.") from exc
        logger.info("Sent '%s' mail", subject)


def make_reset_email(reset_url: str) -> str:
    """Wrap a reset link in the house HTML mail template."""
    link = html.escape(reset_url, quote=True)
    return f"""
<div class="email" style="
border: 1px solid black;
padding: 20px;
font-family: sans-serif;
font-size: 20px;
line-height: 2;
">
<h2>Hello There!</h2>
<p>Your password reset token is here:</p>
<p><a href="{link}">Reset Your Password Now &gt;&gt;</a></p>
<p>This link expires in one hour.</p>
</div>
"""
