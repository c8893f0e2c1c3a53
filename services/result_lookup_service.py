"""End-user result lookup behind the payment gate."""

from __future__ import annotations

from typing import Any, Dict, Optional

from core import get_logger
from core.exceptions import NotFound, PaymentRequired, ResultUnavailable
from database.models import PaymentRequest, result_payload
from database.repositories import SubmissionStore
from utils.validators import clean_text, normalize_phone

logger = get_logger(__name__)


class ResultLookupService:
    """Resolves a result for a payment request found by seat number or phone.

    A paid request without an embedded result is joined against the results
    collection once; the joined result is written back onto the request so
    later lookups return it directly.
    """

    def __init__(self, store: SubmissionStore):
        self.store = store

    async def _find_request(self, phone: Any, seat_number: Any) -> Optional[PaymentRequest]:
        seat = clean_text(seat_number)
        if seat:
            return await self.store.find_request_by_seat(seat)
        digits = normalize_phone(clean_text(phone))
        if digits:
            return await self.store.find_request_by_phone(digits)
        return None

    async def lookup(self, phone: Any = None, seat_number: Any = None) -> Dict[str, Any]:
        """Return the result for a paid request.

        The seat number takes precedence over the phone when both are given.

        Raises:
            NotFound: If no payment request matches
            PaymentRequired: If the matched request is not paid yet
            ResultUnavailable: If payment is confirmed but no result exists yet
        """
        request = await self._find_request(phone, seat_number)
        if request is None:
            raise NotFound("No request found for this phone or seat number")

        if not request.paid:
            raise PaymentRequired()

        if request.result:
            return request.result

        if not request.seat_number:
            raise ResultUnavailable()

        result = await self.store.find_result_by_seat(request.seat_number)
        if result is None:
            raise ResultUnavailable()

        payload = result_payload(result)
        if not await self.store.attach_result(request.id, payload):
            logger.warning(
                f"Result for request {request.id} was attached concurrently",
                extra={"request_id": request.id},
            )
        else:
            logger.info(
                f"Result joined onto request {request.id}",
                extra={"request_id": request.id, "seat_number": request.seat_number},
            )
        return payload
