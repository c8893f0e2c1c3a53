"""Record types kept in the document store.

Field names on the stored documents follow the public JSON contract
(``nationalId``, ``seatNumber``, ``created_at``...), the dataclasses use
Python names and convert at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.constants import UNKNOWN, InquiryStatus, ReservationMethod

from .document_store import Document


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(slots=True)
class PaymentRequest:
    national_id: Optional[str]
    seat_number: Optional[str]
    phone: str
    email: Optional[str]
    screenshot: Optional[str]
    paid: bool = False
    result: Optional[Dict[str, Any]] = None
    opened_at: Optional[str] = None
    created_at: str = field(default_factory=utc_now_iso)
    id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "nationalId": self.national_id,
            "seatNumber": self.seat_number,
            "phone": self.phone,
            "email": self.email,
            "screenshot": self.screenshot,
            "paid": self.paid,
            "created_at": self.created_at,
        }
        if self.result is not None:
            data["result"] = self.result
        if self.opened_at is not None:
            data["openedAt"] = self.opened_at
        return data

    @classmethod
    def from_document(cls, doc: Document) -> "PaymentRequest":
        return cls(
            id=doc.id,
            national_id=doc.get("nationalId"),
            seat_number=doc.get("seatNumber"),
            phone=doc.get("phone") or "",
            email=doc.get("email"),
            screenshot=doc.get("screenshot") or None,
            paid=bool(doc.get("paid", False)),
            result=doc.get("result") or None,
            opened_at=doc.get("openedAt"),
            created_at=doc.get("created_at") or "",
        )


@dataclass(slots=True)
class Reservation:
    national_id: str
    phone: str
    email: str
    sender_phone: str
    screenshot: Optional[str]
    method: ReservationMethod = ReservationMethod.ONLINE
    reserved_at: str = field(default_factory=utc_now_iso)
    id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "nationalId": self.national_id,
            "phone": self.phone,
            "email": self.email,
            "senderPhone": self.sender_phone,
            "screenshot": self.screenshot,
            "method": self.method.value,
            "reserved_at": self.reserved_at,
        }

    @classmethod
    def from_document(cls, doc: Document) -> "Reservation":
        try:
            method = ReservationMethod(doc.get("method") or ReservationMethod.ONLINE.value)
        except ValueError:
            method = ReservationMethod.ONLINE
        return cls(
            id=doc.id,
            national_id=doc.get("nationalId") or "",
            phone=doc.get("phone") or "",
            email=doc.get("email") or "",
            sender_phone=doc.get("senderPhone") or "",
            screenshot=doc.get("screenshot") or None,
            method=method,
            reserved_at=doc.get("reserved_at") or "",
        )


@dataclass(slots=True)
class SubmitterInfo:
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "SubmitterInfo":
        if not isinstance(payload, dict):
            return cls()
        return cls(
            name=_text_or_none(payload.get("name")),
            phone=_text_or_none(payload.get("phone")),
            email=_text_or_none(payload.get("email")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in (("name", self.name), ("phone", self.phone), ("email", self.email))
            if value is not None
        }

    def display(self, attr: str) -> str:
        return getattr(self, attr) or UNKNOWN


@dataclass(slots=True)
class ChatInquiry:
    message: str
    user_data: SubmitterInfo = field(default_factory=SubmitterInfo)
    status: InquiryStatus = InquiryStatus.NEW
    created_at: str = field(default_factory=utc_now_iso)
    id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "userData": self.user_data.to_document(),
            "created_at": self.created_at,
            "status": self.status.value,
        }

    @classmethod
    def from_document(cls, doc: Document) -> "ChatInquiry":
        try:
            status = InquiryStatus(doc.get("status") or InquiryStatus.NEW.value)
        except ValueError:
            status = InquiryStatus.NEW
        return cls(
            id=doc.id,
            message=doc.get("message") or "",
            user_data=SubmitterInfo.from_payload(doc.get("userData")),
            status=status,
            created_at=doc.get("created_at") or "",
        )

    def to_summary(self) -> Dict[str, Any]:
        """Flat representation used by the admin console."""
        return {
            "id": self.id,
            "message": self.message,
            "userName": self.user_data.display("name"),
            "userPhone": self.user_data.display("phone"),
            "userEmail": self.user_data.display("email"),
            "created_at": self.created_at,
            "status": self.status.value,
        }


@dataclass(slots=True)
class AdminMessage:
    email: str
    message: str
    sent_by: Optional[str] = None
    sent_at: str = field(default_factory=utc_now_iso)
    id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "message": self.message,
            "sentBy": self.sent_by,
            "sentAt": self.sent_at,
        }


def result_payload(doc: Document) -> Dict[str, Any]:
    """Result fields as embedded into a payment request (no store id)."""
    return dict(doc.data)


def _text_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
