"""
Login code delivery.

Two mailers share one interface: SMTPMailer sends a plain-text email through
the configured relay, LoggingMailer writes the code to the log for local
development. get_mailer() picks one from settings.
"""

import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from datetime import datetime
from email.message import EmailMessage
from email.utils import format_datetime
from functools import lru_cache

from starlette.concurrency import run_in_threadpool

from lyric.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_FROM = "no-reply@localhost"
SUBJECT = "Your login code"


class MailerError(Exception):
    """Raised when a login code could not be delivered."""


class Mailer(ABC):
    """Interface for login code delivery."""

    @abstractmethod
    async def send_otp(self, email: str, code: str, expires_at: datetime) -> None:
        """
        Deliver a login code.

        Raises:
            MailerError: when the code could not be delivered
        """


class LoggingMailer(Mailer):
    def __init__(self, from_addr: str = ""):
        self.from_addr = from_addr.strip() or DEFAULT_FROM

    async def send_otp(self, email: str, code: str, expires_at: datetime) -> None:
        logger.info(
            "[mailer] OTP code=%s to=%s from=%s expires_at=%s",
            code,
            email,
            self.from_addr,
            expires_at.isoformat(timespec="seconds"),
        )


class SMTPMailer(Mailer):
    """
    Sends login codes over SMTP with STARTTLS when the relay offers it.

    smtplib is blocking, so delivery runs in the threadpool.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        from_addr: str = "",
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_addr = from_addr.strip() or username.strip()
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPMailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_addr=settings.smtp_from,
        )

    def build_message(self, email: str, code: str, expires_at: datetime) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_addr
        message["To"] = email
        message["Subject"] = SUBJECT
        message.set_content(
            f"Your login code is {code}. It expires at {format_datetime(expires_at)}."
        )
        return message

    async def send_otp(self, email: str, code: str, expires_at: datetime) -> None:
        if not email.strip():
            raise MailerError("recipient email is required")
        if not self.from_addr:
            raise MailerError("from address is required")

        message = self.build_message(email, code, expires_at)
        try:
            await run_in_threadpool(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailerError(f"send mail: {exc}") from exc

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(message)


@lru_cache()
def get_mailer() -> Mailer:
    """
    Mailer dependency.

    SMTP is used only in production with a host and sender configured;
    every other environment logs the code instead.
    """
    settings = get_settings()
    if settings.use_smtp:
        return SMTPMailer.from_settings(settings)
    return LoggingMailer(settings.smtp_from)
