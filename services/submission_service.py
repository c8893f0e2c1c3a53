"""Submission lifecycle: creation, payment confirmation and admin replies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from markupsafe import escape

from core import get_logger
from core.constants import MailDefaults, ReservationMethod
from core.exceptions import (
    IncompleteSubmission,
    InquiryNotFound,
    MissingAttachment,
    RequestNotFound,
    ResultNotFound,
)
from database.models import (
    AdminMessage,
    ChatInquiry,
    PaymentRequest,
    Reservation,
    SubmitterInfo,
    result_payload,
)
from database.repositories import SubmissionStore
from utils.performance import monitor
from utils.validators import clean_text, missing_fields, normalize_phone, optional_text

from .attachment_service import AttachmentIngester
from .channels import EmailChannel
from .notification_service import (
    NotificationDispatcher,
    chat_inquiry_received,
    payment_submitted,
    reservation_submitted,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class Attachment:
    """An uploaded file as received from the client."""
    payload: Optional[bytes]
    filename: Optional[str] = None

    def __bool__(self) -> bool:
        return bool(self.payload)


def _require_attachment(attachment: Optional[Attachment]) -> Attachment:
    if attachment is None or not attachment:
        raise MissingAttachment()
    return attachment


class SubmissionService:
    """Creates submissions and applies the admin-driven state transitions."""

    def __init__(
        self,
        store: SubmissionStore,
        attachments: AttachmentIngester,
        notifications: NotificationDispatcher,
        mailer: EmailChannel,
        mail_from_name: str = MailDefaults.FROM_NAME,
        reply_subject: str = MailDefaults.REPLY_SUBJECT,
        public_base_url: Optional[str] = None,
    ):
        """Initialize submission service.

        Args:
            store: Record persistence
            attachments: Upload storage
            notifications: Admin notification fan-out
            mailer: Transport for admin replies to users
            mail_from_name: Display name on admin replies
            reply_subject: Subject line of admin replies
            public_base_url: Absolute site URL used for links in notifications
        """
        self.store = store
        self.attachments = attachments
        self.notifications = notifications
        self.mailer = mailer
        self.mail_from_name = mail_from_name
        self.reply_subject = reply_subject
        self.public_base_url = public_base_url

    def _absolute_attachment_url(self, reference: Optional[str]) -> Optional[str]:
        path = self.attachments.resolve_url(reference)
        if not path or not self.public_base_url:
            return None
        return f"{self.public_base_url}{path}"

    async def submit_payment(
        self,
        national_id: Any,
        seat_number: Any,
        phone: Any,
        email: Any,
        attachment: Optional[Attachment],
    ) -> PaymentRequest:
        """Store a payment request with its transfer screenshot.

        Only the attachment is mandatory; other fields are stored as given,
        with the phone reduced to its digits.

        Raises:
            MissingAttachment: If no screenshot was uploaded
        """
        attachment = _require_attachment(attachment)
        reference = await self.attachments.store(attachment.payload, attachment.filename)

        request = await self.store.add_request(
            PaymentRequest(
                national_id=optional_text(national_id),
                seat_number=optional_text(seat_number),
                phone=normalize_phone(clean_text(phone)),
                email=optional_text(email),
                screenshot=reference,
            )
        )
        monitor.record_submission("payment")
        logger.info(
            f"Payment request {request.id} created",
            extra={"request_id": request.id, "seat_number": request.seat_number},
        )

        await self.notifications.notify(
            payment_submitted(request, self._absolute_attachment_url(reference))
        )
        return request

    async def submit_reservation(
        self,
        national_id: Any,
        phone: Any,
        email: Any,
        sender_phone: Any,
        attachment: Optional[Attachment],
        method: ReservationMethod = ReservationMethod.ONLINE,
    ) -> Reservation:
        """Store a reservation made online or by phone.

        Raises:
            IncompleteSubmission: If any of the text fields is empty
            MissingAttachment: If no screenshot was uploaded
        """
        missing = missing_fields(
            nationalId=national_id, phone=phone, email=email, senderPhone=sender_phone
        )
        if missing:
            raise IncompleteSubmission(f"Missing required fields: {', '.join(missing)}")
        attachment = _require_attachment(attachment)

        reference = await self.attachments.store(attachment.payload, attachment.filename)
        reservation = await self.store.add_reservation(
            Reservation(
                national_id=clean_text(national_id),
                phone=normalize_phone(clean_text(phone)),
                email=clean_text(email),
                sender_phone=normalize_phone(clean_text(sender_phone)),
                screenshot=reference,
                method=ReservationMethod(method),
            )
        )
        monitor.record_submission(f"reservation_{reservation.method.value}")
        logger.info(
            f"Reservation {reservation.id} created",
            extra={"reservation_id": reservation.id, "method": reservation.method.value},
        )

        await self.notifications.notify(
            reservation_submitted(reservation, self._absolute_attachment_url(reference))
        )
        return reservation

    async def submit_chat_inquiry(self, message: Any, user_data: Any = None) -> ChatInquiry:
        """Store a question sent from the site chat widget.

        Raises:
            IncompleteSubmission: If the message is empty
        """
        text = clean_text(message)
        if not text:
            raise IncompleteSubmission("Message is required")

        inquiry = await self.store.add_inquiry(
            ChatInquiry(message=text, user_data=SubmitterInfo.from_payload(user_data))
        )
        monitor.record_submission("chat_inquiry")
        logger.info(f"Chat inquiry {inquiry.id} received", extra={"inquiry_id": inquiry.id})

        await self.notifications.notify(chat_inquiry_received(inquiry))
        return inquiry

    async def mark_inquiry_read(self, inquiry_id: str) -> None:
        """Move a chat inquiry from ``new`` to ``read``.

        Raises:
            InquiryNotFound: If the inquiry does not exist
        """
        if not await self.store.mark_inquiry_read(inquiry_id):
            raise InquiryNotFound()
        logger.info(f"Chat inquiry {inquiry_id} marked read", extra={"inquiry_id": inquiry_id})

    async def open_result(self, seat_number: Any) -> None:
        """Confirm payment for a seat number and attach its result.

        The first request and the first result stored for the seat number
        are used. ``paid``, ``result`` and ``openedAt`` are written in one
        conditional update; if another admin opened the same request in
        between, that update is kept and this one is dropped. No
        notification is sent.

        Raises:
            IncompleteSubmission: If no seat number was given
            RequestNotFound: If no payment request has this seat number
            ResultNotFound: If no result has this seat number
        """
        seat = clean_text(seat_number)
        if not seat:
            raise IncompleteSubmission("Seat number is required")

        request = await self.store.find_request_by_seat(seat)
        if request is None:
            raise RequestNotFound()

        result = await self.store.find_result_by_seat(seat)
        if result is None:
            raise ResultNotFound()

        opened = await self.store.open_request(request.id, request.paid, result_payload(result))
        if not opened:
            logger.warning(
                f"Request {request.id} changed while opening its result; keeping the concurrent update",
                extra={"request_id": request.id, "seat_number": seat},
            )
            return

        logger.info(
            f"Result opened for seat {seat}",
            extra={"request_id": request.id, "seat_number": seat, "result_id": result.id},
        )

    async def send_admin_reply(self, email: Any, message: Any, sent_by: Optional[str] = None) -> AdminMessage:
        """Email a reply from the admin to a user and log it.

        Raises:
            IncompleteSubmission: If the address or message is empty
            TransportFailure: If the email could not be sent
        """
        address = clean_text(email)
        text = clean_text(message)
        if not address or not text:
            raise IncompleteSubmission("Email and message are required")

        await self.mailer.send(
            to=address,
            subject=self.reply_subject,
            text=text,
            html=f"<p>{escape(text)}</p>",
            sender_name=self.mail_from_name,
        )

        logged = await self.store.add_admin_message(
            AdminMessage(email=address, message=text, sent_by=sent_by)
        )
        logger.info(f"Admin reply sent to {address}", extra={"admin_message_id": logged.id})
        return logged
