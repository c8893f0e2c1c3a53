"""Repositories over the document store, one section per record kind."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from core import get_logger
from core.constants import Collections, InquiryStatus

from .document_store import Document, DocumentStore
from .models import AdminMessage, ChatInquiry, PaymentRequest, Reservation, utc_now_iso

logger = get_logger(__name__)


class SubmissionStore:
    """Persistence for payment requests, reservations, chat inquiries,
    results and the admin message log.

    The store owns every record: methods return fresh objects and callers
    write back through the methods below, never by holding on to a copy.
    """

    def __init__(self, documents: DocumentStore) -> None:
        self.documents = documents

    @property
    def backend(self) -> str:
        return self.documents.backend

    # ------------------------------------------------------------------
    # Payment requests
    # ------------------------------------------------------------------

    async def add_request(self, request: PaymentRequest) -> PaymentRequest:
        doc_id = await self.documents.add(Collections.REQUESTS, request.to_document())
        return replace(request, id=doc_id)

    async def get_request(self, request_id: str) -> Optional[PaymentRequest]:
        doc = await self.documents.get(Collections.REQUESTS, request_id)
        return PaymentRequest.from_document(doc) if doc else None

    async def list_requests(self) -> List[PaymentRequest]:
        docs = await self.documents.get_all(Collections.REQUESTS)
        return [PaymentRequest.from_document(doc) for doc in docs]

    async def find_request_by_seat(self, seat_number: str) -> Optional[PaymentRequest]:
        doc = await self.documents.first(Collections.REQUESTS, "seatNumber", seat_number)
        return PaymentRequest.from_document(doc) if doc else None

    async def find_request_by_phone(self, phone: str) -> Optional[PaymentRequest]:
        doc = await self.documents.first(Collections.REQUESTS, "phone", phone)
        return PaymentRequest.from_document(doc) if doc else None

    async def delete_request(self, request_id: str) -> None:
        await self.documents.delete(Collections.REQUESTS, request_id)

    async def open_request(
        self,
        request_id: str,
        observed_paid: bool,
        result: Mapping[str, Any],
    ) -> bool:
        """Flip ``paid`` and attach ``result`` in one conditional write.

        Returns False when the request vanished or its ``paid`` flag changed
        since it was read.
        """
        return await self.documents.update_if(
            Collections.REQUESTS,
            request_id,
            expected={"paid": observed_paid},
            fields={"paid": True, "result": dict(result), "openedAt": utc_now_iso()},
        )

    async def attach_result(self, request_id: str, result: Mapping[str, Any]) -> bool:
        """Memoize a joined result on a paid request that has none yet."""
        return await self.documents.update_if(
            Collections.REQUESTS,
            request_id,
            expected={"paid": True, "result": None},
            fields={"result": dict(result)},
        )

    # ------------------------------------------------------------------
    # Reservations
    # ------------------------------------------------------------------

    async def add_reservation(self, reservation: Reservation) -> Reservation:
        doc_id = await self.documents.add(Collections.RESERVATIONS, reservation.to_document())
        return replace(reservation, id=doc_id)

    async def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        doc = await self.documents.get(Collections.RESERVATIONS, reservation_id)
        return Reservation.from_document(doc) if doc else None

    async def list_reservations(self) -> List[Reservation]:
        docs = await self.documents.get_all(Collections.RESERVATIONS)
        return [Reservation.from_document(doc) for doc in docs]

    async def delete_reservation(self, reservation_id: str) -> None:
        await self.documents.delete(Collections.RESERVATIONS, reservation_id)

    # ------------------------------------------------------------------
    # Chat inquiries
    # ------------------------------------------------------------------

    async def add_inquiry(self, inquiry: ChatInquiry) -> ChatInquiry:
        doc_id = await self.documents.add(Collections.CHAT_INQUIRIES, inquiry.to_document())
        return replace(inquiry, id=doc_id)

    async def get_inquiry(self, inquiry_id: str) -> Optional[ChatInquiry]:
        doc = await self.documents.get(Collections.CHAT_INQUIRIES, inquiry_id)
        return ChatInquiry.from_document(doc) if doc else None

    async def list_inquiries(self) -> List[ChatInquiry]:
        docs = await self.documents.get_all(
            Collections.CHAT_INQUIRIES, order_by="created_at", descending=True
        )
        return [ChatInquiry.from_document(doc) for doc in docs]

    async def mark_inquiry_read(self, inquiry_id: str) -> bool:
        return await self.documents.update(
            Collections.CHAT_INQUIRIES, inquiry_id, {"status": InquiryStatus.READ.value}
        )

    async def delete_inquiry(self, inquiry_id: str) -> None:
        await self.documents.delete(Collections.CHAT_INQUIRIES, inquiry_id)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    async def list_results(self) -> List[Document]:
        return await self.documents.get_all(Collections.RESULTS)

    async def find_result_by_seat(self, seat_number: str) -> Optional[Document]:
        return await self.documents.first(Collections.RESULTS, "seatNumber", seat_number)

    async def import_results(self, records: Iterable[Mapping[str, Any]]) -> int:
        """Bulk-load result rows; rows without a seat number are skipped."""
        rows: List[Dict[str, Any]] = []
        for record in records:
            seat_number = str(record.get("seatNumber") or "").strip()
            if not seat_number:
                logger.warning("Skipping result row without seatNumber", extra={"row": dict(record)})
                continue
            rows.append({**record, "seatNumber": seat_number})
        await self.documents.add_many(Collections.RESULTS, rows)
        logger.info(f"Imported {len(rows)} results")
        return len(rows)

    # ------------------------------------------------------------------
    # Admin message log
    # ------------------------------------------------------------------

    async def add_admin_message(self, message: AdminMessage) -> AdminMessage:
        doc_id = await self.documents.add(Collections.ADMIN_MESSAGES, message.to_document())
        return replace(message, id=doc_id)

    async def list_admin_messages(self) -> List[Document]:
        return await self.documents.get_all(
            Collections.ADMIN_MESSAGES, order_by="sentAt", descending=True
        )
