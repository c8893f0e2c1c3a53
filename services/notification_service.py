"""Best-effort admin notifications for new submissions."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.text_decorations import html_decoration

from core import get_logger
from core.constants import NotificationChannel, NotificationEventType, ReservationMethod, TelegramLimits
from database.models import ChatInquiry, PaymentRequest, Reservation
from utils.performance import monitor
from utils.validators import clip_html

from .channels import EmailChannel, TelegramChannel

logger = get_logger(__name__)

ALL_CHANNELS: FrozenSet[NotificationChannel] = frozenset(
    {NotificationChannel.EMAIL, NotificationChannel.CHAT}
)


@dataclass(frozen=True)
class NotificationEvent:
    """A rendered notification, ready for every channel it targets."""

    event_type: NotificationEventType
    subject: str
    email_text: str
    chat_text: str
    chat_markup: Optional[InlineKeyboardMarkup] = None
    channels: FrozenSet[NotificationChannel] = field(default=ALL_CHANNELS)


def _q(value: Any) -> str:
    return html_decoration.quote(str(value if value is not None else ""))


def _dump(record: Dict[str, Any]) -> str:
    return json.dumps(record, indent=2, ensure_ascii=False, default=str)


def _attachment_markup(attachment_url: Optional[str]) -> Optional[InlineKeyboardMarkup]:
    if not attachment_url:
        return None
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text="🧾 Transfer screenshot", url=attachment_url)]]
    )


def payment_submitted(
    request: PaymentRequest, attachment_url: Optional[str] = None
) -> NotificationEvent:
    chat_text = (
        "<b>💳 New payment request</b>\n"
        f"National ID: {_q(request.national_id)}\n"
        f"Seat number: {_q(request.seat_number)}\n"
        f"Phone: {_q(request.phone)}\n"
        f"Email: {_q(request.email)}"
    )
    return NotificationEvent(
        event_type=NotificationEventType.PAYMENT_SUBMITTED,
        subject="New payment request",
        email_text=f"New payment request:\n{_dump(request.to_document())}",
        chat_text=chat_text,
        chat_markup=_attachment_markup(attachment_url),
    )


def reservation_submitted(
    reservation: Reservation, attachment_url: Optional[str] = None
) -> NotificationEvent:
    if reservation.method == ReservationMethod.PHONE:
        title = "📞 New reservation by phone"
    else:
        title = "📝 New reservation"
    chat_text = (
        f"<b>{title}</b>\n"
        f"National ID: {_q(reservation.national_id)}\n"
        f"Phone: {_q(reservation.phone)}\n"
        f"Email: {_q(reservation.email)}\n"
        f"Sender phone: {_q(reservation.sender_phone)}"
    )
    return NotificationEvent(
        event_type=NotificationEventType.RESERVATION_SUBMITTED,
        subject=title,
        email_text=f"{title}:\n{_dump(reservation.to_document())}",
        chat_text=chat_text,
        chat_markup=_attachment_markup(attachment_url),
    )


def chat_inquiry_received(inquiry: ChatInquiry) -> NotificationEvent:
    info = inquiry.user_data
    message = clip_html(_q(inquiry.message), TelegramLimits.INQUIRY_TEXT_MAX_LENGTH)
    chat_text = (
        "<b>💬 New chat inquiry</b>\n"
        f"👤 <b>Name:</b> {_q(info.display('name'))}\n"
        f"📞 <b>Phone:</b> {_q(info.display('phone'))}\n"
        f"📧 <b>Email:</b> {_q(info.display('email'))}\n\n"
        f"💭 <b>Message:</b>\n{message}\n\n"
        f"🆔 <b>Inquiry:</b> {_q(inquiry.id)}"
    )
    return NotificationEvent(
        event_type=NotificationEventType.CHAT_INQUIRY_RECEIVED,
        subject="New chat inquiry",
        email_text=f"New chat inquiry:\n{_dump(inquiry.to_summary())}",
        chat_text=chat_text,
        channels=frozenset({NotificationChannel.CHAT}),
    )


class NotificationDispatcher:
    """Fans an event out to the admin's email and Telegram chat.

    Delivery is fire-and-forget: each channel is tried once, and a failing
    channel is logged and counted but never raised to the caller.
    """

    def __init__(
        self,
        email: EmailChannel,
        chat: TelegramChannel,
        admin_email: Optional[str] = None,
    ):
        """Initialize notification dispatcher.

        Args:
            email: SMTP transport
            chat: Telegram transport
            admin_email: Recipient of admin notification emails
        """
        self.email = email
        self.chat = chat
        self.admin_email = admin_email

    def channel_status(self) -> Dict[str, bool]:
        return {
            NotificationChannel.EMAIL.value: self.email.configured and bool(self.admin_email),
            NotificationChannel.CHAT.value: self.chat.configured,
        }

    async def notify(self, event: NotificationEvent) -> None:
        """Deliver ``event`` on each of its channels, absorbing failures."""
        if NotificationChannel.EMAIL in event.channels:
            await self._deliver(NotificationChannel.EMAIL, event, self._send_email)
        if NotificationChannel.CHAT in event.channels:
            await self._deliver(NotificationChannel.CHAT, event, self._send_chat)

    async def _send_email(self, event: NotificationEvent) -> bool:
        await self.email.send(
            to=self.admin_email or "",
            subject=event.subject,
            text=event.email_text,
        )
        return True

    async def _send_chat(self, event: NotificationEvent) -> bool:
        return await self.chat.send(event.chat_text, markup=event.chat_markup)

    async def _deliver(self, channel: NotificationChannel, event: NotificationEvent, sender) -> None:
        context = {"channel": channel.value, "event": event.event_type.value}
        try:
            delivered = await sender(event)
        except Exception as e:
            monitor.record_notification(channel.value, event.event_type.value, delivered=False)
            logger.error(
                f"Failed to send {event.event_type.value} notification via {channel.value}: {e}",
                exc_info=True,
                extra=context,
            )
            return

        if delivered:
            monitor.record_notification(channel.value, event.event_type.value, delivered=True)
        else:
            logger.debug(f"{channel.value} channel disabled, skipping notification", extra=context)
