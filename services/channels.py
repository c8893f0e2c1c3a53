"""Outbound transports: SMTP email and the Telegram admin chat."""

from __future__ import annotations

import asyncio
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr
from typing import Callable, Optional, TYPE_CHECKING

from aiogram import Bot
from aiogram.enums import ParseMode

from core import get_logger
from core.constants import MailDefaults, TelegramLimits
from core.exceptions import TransportFailure
from utils.validators import clip_html

if TYPE_CHECKING:
    from aiogram.types import InlineKeyboardMarkup

logger = get_logger(__name__)


class EmailChannel:
    """Sends plain-text (optionally HTML) mail through an SMTP relay."""

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        user: Optional[str] = None,
        password: Optional[str] = None,
        secure: bool = False,
        timeout: int = MailDefaults.SMTP_TIMEOUT,
    ):
        """Initialize email channel.

        Args:
            host: SMTP server host
            port: SMTP server port (465 with ``secure``, 587 otherwise)
            user: Login, also used as the sender address
            password: Login password (app password for Gmail)
            secure: Use implicit TLS instead of STARTTLS
            timeout: Socket timeout in seconds
        """
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.secure = secure
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.host and self.user)

    def sender(self, display_name: Optional[str] = None) -> str:
        if display_name:
            return formataddr((display_name, self.user or ""))
        return self.user or ""

    async def send(
        self,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
        sender_name: Optional[str] = None,
    ) -> None:
        """Send one message.

        Raises:
            TransportFailure: If SMTP is not configured or delivery fails
        """
        if not self.configured:
            raise TransportFailure("SMTP is not configured")
        if not to:
            raise TransportFailure("Email recipient is not set")

        message = EmailMessage()
        message["From"] = self.sender(sender_name)
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        if html:
            message.add_alternative(html, subtype="html")

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportFailure(f"Email delivery failed: {e}") from e

        logger.info(f"Email sent to {to}", extra={"subject": subject})

    def _deliver(self, message: EmailMessage) -> None:
        context = ssl.create_default_context()
        if self.secure:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context) as smtp:
                self._login_and_send(smtp, message)
            return

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls(context=context)
                smtp.ehlo()
            self._login_and_send(smtp, message)

    def _login_and_send(self, smtp: smtplib.SMTP, message: EmailMessage) -> None:
        if self.password:
            smtp.login(self.user, self.password)
        smtp.send_message(message)


def _default_bot_factory(token: str) -> Bot:
    return Bot(token=token)


class TelegramChannel:
    """Posts HTML messages to the admin chat through the Bot API.

    Without a bot token or chat id the channel is disabled and ``send`` does
    nothing.
    """

    def __init__(
        self,
        bot_token: Optional[str],
        chat_id: Optional[str],
        bot_factory: Callable[[str], Bot] = _default_bot_factory,
    ):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self._bot_factory = bot_factory

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def send(self, text: str, markup: Optional[InlineKeyboardMarkup] = None) -> bool:
        """Send ``text`` to the admin chat.

        Returns:
            True if a message was sent, False if the channel is disabled
        """
        if not self.configured:
            return False

        text = clip_html(text, TelegramLimits.MESSAGE_MAX_LENGTH)

        # A short-lived bot keeps the HTTP session bound to the calling loop
        async with self._bot_factory(self.bot_token) as bot:
            await bot.send_message(
                chat_id=self.chat_id,
                text=text,
                parse_mode=ParseMode.HTML,
                reply_markup=markup,
            )
        logger.info("Telegram notification sent", extra={"chat_id": self.chat_id})
        return True
