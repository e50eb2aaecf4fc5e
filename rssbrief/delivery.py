"""
Delivery Adapter - send rendered digests by email.

``DeliveryAdapter`` is the seam the digest scheduler talks to. The SMTP
implementation runs ``smtplib`` in a worker thread so a slow mail server
never blocks the event loop, and bounds the whole send with a timeout.
"""

import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage as MIMEMessage
from email.utils import formatdate, make_msgid

from .exceptions import DeliveryError
from .results import Ok, Err

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    """A plain-text email to send."""
    to: str
    from_addr: str
    subject: str
    text: str


class DeliveryAdapter(ABC):
    """Abstract base class for digest delivery."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> str:
        """
        Send a message.

        Returns:
            Provider delivery ID

        Raises:
            DeliveryError: the message could not be sent
        """
        pass

    async def safe_send(self, message: EmailMessage) -> Ok[str] | Err[DeliveryError]:
        """Send, returning Err instead of raising."""
        try:
            return Ok(await self.send(message))
        except DeliveryError as e:
            return Err(e)


class SMTPDeliveryAdapter(DeliveryAdapter):
    """Sends email through an SMTP server (STARTTLS + login when configured)."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def build_message(self, message: EmailMessage) -> MIMEMessage:
        mime = MIMEMessage()
        mime["From"] = message.from_addr
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime["Date"] = formatdate(localtime=False)
        mime["Message-ID"] = make_msgid(domain=self._sender_domain(message.from_addr))
        mime.set_content(message.text)
        return mime

    def _sender_domain(self, from_addr: str) -> str | None:
        address = from_addr.rsplit("<", 1)[-1].rstrip(">")
        return address.split("@", 1)[1] if "@" in address else None

    def _send_sync(self, mime: MIMEMessage):
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(mime)

    async def send(self, message: EmailMessage) -> str:
        mime = self.build_message(message)
        loop = asyncio.get_running_loop()
        try:
            await asyncio.wait_for(
                loop.run_in_executor(None, self._send_sync, mime),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise DeliveryError(f"SMTP send timed out after {self.timeout}s")
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP send failed: {e}") from e

        logger.info(f"Sent '{message.subject}' to {message.to}")
        return mime["Message-ID"]
