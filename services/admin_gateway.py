"""Token-guarded admin operations.

Every public method verifies the bearer token before it reads or writes
anything, then delegates to the submission service or the store.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from core import get_logger
from core.exceptions import RecordNotFound
from database.models import AdminMessage, PaymentRequest, Reservation
from database.repositories import SubmissionStore

from .attachment_service import AttachmentIngester
from .credential_gate import CredentialGate, TokenClaims
from .submission_service import SubmissionService

logger = get_logger(__name__)


class AdminGateway:
    def __init__(
        self,
        gate: CredentialGate,
        submissions: SubmissionService,
        store: SubmissionStore,
        attachments: AttachmentIngester,
    ):
        self.gate = gate
        self.submissions = submissions
        self.store = store
        self.attachments = attachments

    def _authorize(self, token: Optional[str]) -> TokenClaims:
        return self.gate.verify(token)

    def _with_id(self, record_id: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
        return {"id": record_id, **data}

    def _request_view(self, request: PaymentRequest) -> Dict[str, Any]:
        data = self._with_id(request.id, request.to_document())
        data["screenshot"] = self.attachments.resolve_url(request.screenshot)
        return data

    def _reservation_view(self, reservation: Reservation) -> Dict[str, Any]:
        data = self._with_id(reservation.id, reservation.to_document())
        data["screenshot"] = self.attachments.resolve_url(reservation.screenshot)
        return data

    # Payment requests

    async def list_requests(self, token: Optional[str]) -> List[Dict[str, Any]]:
        self._authorize(token)
        return [self._request_view(r) for r in await self.store.list_requests()]

    async def get_request(self, token: Optional[str], request_id: str) -> Dict[str, Any]:
        self._authorize(token)
        request = await self.store.get_request(request_id)
        if request is None:
            raise RecordNotFound("Request not found")
        return self._request_view(request)

    async def delete_request(self, token: Optional[str], request_id: str) -> None:
        claims = self._authorize(token)
        await self.store.delete_request(request_id)
        logger.info(
            f"Request {request_id} deleted",
            extra={"request_id": request_id, "username": claims.username},
        )

    # Reservations

    async def list_reservations(self, token: Optional[str]) -> List[Dict[str, Any]]:
        self._authorize(token)
        return [self._reservation_view(r) for r in await self.store.list_reservations()]

    async def get_reservation(self, token: Optional[str], reservation_id: str) -> Dict[str, Any]:
        self._authorize(token)
        reservation = await self.store.get_reservation(reservation_id)
        if reservation is None:
            raise RecordNotFound("Reservation not found")
        return self._reservation_view(reservation)

    async def delete_reservation(self, token: Optional[str], reservation_id: str) -> None:
        claims = self._authorize(token)
        await self.store.delete_reservation(reservation_id)
        logger.info(
            f"Reservation {reservation_id} deleted",
            extra={"reservation_id": reservation_id, "username": claims.username},
        )

    # Chat inquiries

    async def list_chat_inquiries(self, token: Optional[str]) -> List[Dict[str, Any]]:
        self._authorize(token)
        return [inquiry.to_summary() for inquiry in await self.store.list_inquiries()]

    async def get_chat_inquiry(self, token: Optional[str], inquiry_id: str) -> Dict[str, Any]:
        self._authorize(token)
        inquiry = await self.store.get_inquiry(inquiry_id)
        if inquiry is None:
            raise RecordNotFound("Chat inquiry not found")
        return inquiry.to_summary()

    async def delete_chat_inquiry(self, token: Optional[str], inquiry_id: str) -> None:
        claims = self._authorize(token)
        await self.store.delete_inquiry(inquiry_id)
        logger.info(
            f"Chat inquiry {inquiry_id} deleted",
            extra={"inquiry_id": inquiry_id, "username": claims.username},
        )

    async def mark_chat_read(self, token: Optional[str], inquiry_id: str) -> None:
        self._authorize(token)
        await self.submissions.mark_inquiry_read(inquiry_id)

    # Results and replies

    async def list_results(self, token: Optional[str]) -> List[Dict[str, Any]]:
        self._authorize(token)
        return [doc.to_dict() for doc in await self.store.list_results()]

    async def list_admin_messages(self, token: Optional[str]) -> List[Dict[str, Any]]:
        self._authorize(token)
        return [doc.to_dict() for doc in await self.store.list_admin_messages()]

    async def open_result(self, token: Optional[str], seat_number: Any) -> None:
        claims = self._authorize(token)
        await self.submissions.open_result(seat_number)
        logger.info(
            "Open result requested by admin",
            extra={"seat_number": seat_number, "username": claims.username},
        )

    async def send_admin_reply(self, token: Optional[str], email: Any, message: Any) -> AdminMessage:
        claims = self._authorize(token)
        return await self.submissions.send_admin_reply(email, message, sent_by=claims.username)
