import asyncio
import logging
import os
import smtplib
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid
from typing import Deque, Optional

import resend

from newsletter.core.config import Settings
from newsletter.core.errors import MailError

logger = logging.getLogger(__name__)

CONSOLE_OUTBOX_SIZE = 100
# Implicit TLS from the first byte, no STARTTLS upgrade
SMTPS_PORT = 465


@dataclass(frozen=True)
class OutgoingEmail:
    recipient: str
    subject: str
    html_body: str
    text_body: str


class MailerGateway(ABC):
    """Sends one two-part (text/HTML) email. Raises MailError on any failure."""

    @abstractmethod
    async def send_confirmation(
        self, recipient: str, subject: str, html_body: str, text_body: str
    ) -> None:
        raise NotImplementedError


class SmtpMailer(MailerGateway):
    """Delivers mail through an authenticated SMTP relay, over STARTTLS or implicit TLS."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        timeout: float = 10.0,
        use_ssl: bool = False,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout
        self.use_ssl = use_ssl

    def build_message(self, email: OutgoingEmail) -> MIMEMultipart:
        domain = self.sender.split("@")[-1] if "@" in self.sender else None
        msg = MIMEMultipart("alternative")
        msg["Subject"] = email.subject
        msg["From"] = self.sender
        msg["To"] = email.recipient
        msg["Message-ID"] = make_msgid(domain=domain)
        msg["Date"] = formatdate(usegmt=True)
        # Clients render the last part they understand, so HTML goes last
        msg.attach(MIMEText(email.text_body, "plain", _charset="utf-8"))
        msg.attach(MIMEText(email.html_body, "html", _charset="utf-8"))
        return msg

    def _deliver(self, msg: MIMEMultipart) -> None:
        transport = smtplib.SMTP_SSL if self.use_ssl else smtplib.SMTP
        with transport(self.host, self.port, timeout=self.timeout) as server:
            if not self.use_ssl:
                server.ehlo()
                server.starttls()
                server.ehlo()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)

    async def send_confirmation(
        self, recipient: str, subject: str, html_body: str, text_body: str
    ) -> None:
        msg = self.build_message(OutgoingEmail(recipient, subject, html_body, text_body))
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailError(f"SMTP delivery to {recipient} via {self.host}:{self.port} failed") from e
        logger.info(f"Email sent to {recipient} via SMTP, Message-ID: {msg['Message-ID']}")


class ResendMailer(MailerGateway):
    """Delivers mail through the Resend HTTP API."""

    def __init__(self, api_key: str, sender: str):
        self.sender = sender
        resend.api_key = api_key

    async def send_confirmation(
        self, recipient: str, subject: str, html_body: str, text_body: str
    ) -> None:
        params: resend.Emails.SendParams = {
            "from": self.sender,
            "to": [recipient],
            "subject": subject,
            "html": html_body,
            "text": text_body,
        }
        try:
            email_result = await asyncio.to_thread(resend.Emails.send, params)
        except Exception as e:
            raise MailError(f"Resend delivery to {recipient} failed") from e
        logger.info(f"Email sent to {recipient}, ID: {email_result.get('id')}")


class ConsoleMailer(MailerGateway):
    """Development mailer: prints the message and keeps the most recent ones in memory."""

    def __init__(self, keep_last: int = CONSOLE_OUTBOX_SIZE):
        self.outbox: Deque[OutgoingEmail] = deque(maxlen=keep_last)

    async def send_confirmation(
        self, recipient: str, subject: str, html_body: str, text_body: str
    ) -> None:
        self.outbox.append(OutgoingEmail(recipient, subject, html_body, text_body))
        print(f"CONFIRMATION EMAIL - To: {recipient}")
        print(text_body)
        logger.info(f"Test mode: Email '{subject}' would be sent to {recipient}")

    @property
    def last_email(self) -> Optional[OutgoingEmail]:
        return self.outbox[-1] if self.outbox else None


def build_mailer(settings: Settings) -> MailerGateway:
    """Pick the mail backend from settings; TESTING always gets the console mailer."""
    if os.getenv("TESTING") or settings.MAIL_BACKEND == "console":
        return ConsoleMailer()
    if settings.MAIL_BACKEND == "resend":
        return ResendMailer(settings.RESEND_API_KEY, settings.MAIL_FROM)
    return SmtpMailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USERNAME,
        password=settings.SMTP_PASSWORD.get_secret_value(),
        sender=settings.MAIL_FROM,
        timeout=settings.SMTP_TIMEOUT_SECONDS,
        use_ssl=settings.SMTP_USE_SSL or settings.SMTP_PORT == SMTPS_PORT,
    )
