"""
Best-effort email notifications (OTP codes, expert contact requests).

Sends through SMTP when SMTP_HOST is configured; otherwise the message body
is written to the DEBUG log instead, so local development works without a
mail server.
"""
from email.message import EmailMessage
from typing import Optional
import logging
import smtplib

import config
from log import mask
from schemas import ContactDetails

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(
        self,
        host: Optional[str] = config.SMTP_HOST,
        port: int = config.SMTP_PORT,
        user: Optional[str] = config.SMTP_USER,
        password: Optional[str] = config.SMTP_PASSWORD,
        sender: str = config.MAIL_FROM,
        expert_address: str = config.EXPERT_EMAIL,
        timeout: float = 15,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.expert_address = expert_address
        self.timeout = timeout

    def send(self, to: str, subject: str, body: str) -> bool:
        """Return False only when a configured SMTP server could not take the message."""
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        if not self.host:
            logger.warning(f"[Mailer] SMTP not configured, logging '{subject}' for {mask(to)} instead")
            logger.debug(f"[Mailer] Message body:\n{body}")
            return True

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                if self.user:
                    server.login(self.user, self.password or "")
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"[Mailer] Failed to send '{subject}' to {mask(to)}: {e}")
            return False

        logger.info(f"[Mailer] Sent '{subject}' to {mask(to)}")
        return True

    def send_otp(self, to: str, code: str, ttl_seconds: int = config.OTP_TTL_SECONDS) -> bool:
        minutes = max(1, ttl_seconds // 60)
        body = (
            f"Your AyurConnect verification code is {code}.\n\n"
            f"It expires in {minutes} minutes. If you did not request it, you can ignore this email."
        )
        return self.send(to, "Your AyurConnect verification code", body)

    def send_contact_request(self, details: ContactDetails) -> bool:
        body = (
            "A user asked to talk to an Ayurvedic doctor.\n\n"
            f"Name: {details.name}\n"
            f"Email: {details.email}\n"
            f"Phone: {details.phone}\n"
        )
        return self.send(self.expert_address, f"New consultation request from {details.name}", body)
