"""
SMTP email delivery for verification codes.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from src.app.services.email_service import IEmailService

logger = logging.getLogger(__name__)


class SmtpEmailService(IEmailService):
    """Sends mail through a configured SMTP relay; skips sending when none is set"""

    def __init__(self, config):
        self.host = getattr(config, "SMTP_HOST", "")
        self.port = getattr(config, "SMTP_PORT", 587)
        self.username = getattr(config, "SMTP_USERNAME", "")
        self.password = getattr(config, "SMTP_PASSWORD", "")
        self.use_tls = getattr(config, "SMTP_USE_TLS", True)
        self.sender = getattr(config, "SMTP_FROM", "no-reply@bookit.local")

    async def send_verification_code(self, to_email: str, code: str) -> None:
        if not self.host:
            logger.warning("SMTP is not configured; verification email to %s not sent", to_email)
            return

        msg = MIMEMultipart("alternative")
        msg["From"] = self.sender
        msg["To"] = to_email
        msg["Subject"] = "BookIt - Verify your email"

        text = (
            f"Your BookIt verification code is {code}.\n"
            "It expires in 5 minutes. If you did not sign up, ignore this email."
        )
        msg.attach(MIMEText(text, "plain", "utf-8"))

        # smtplib is blocking; keep it off the event loop
        await asyncio.to_thread(self._send, msg)
        logger.info("Verification email sent to %s", to_email)

    def _send(self, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=10) as server:
            if self.use_tls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)
