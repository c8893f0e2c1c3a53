"""Public endpoints: admin login, submissions and result lookup."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, jsonify, request

from core import get_logger
from core.constants import ReservationMethod
from services import Attachment, run_coroutine_sync
from utils.performance import monitor
from web.context import get_services

logger = get_logger(__name__)

public_bp = Blueprint("public", __name__)

SCREENSHOT_FIELD = "screenshot"


def _payload() -> Dict[str, Any]:
    """Request fields from a JSON body or a form, whichever was sent."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _attachment() -> Attachment:
    upload = request.files.get(SCREENSHOT_FIELD)
    if upload is None:
        return Attachment(payload=None)
    return Attachment(payload=upload.read(), filename=upload.filename)


@public_bp.route("/login", methods=["POST"])
def login():
    data = _payload()
    issued = get_services().gate.login(data.get("username", ""), data.get("password", ""))
    return jsonify({"success": True, "token": issued.token, "expiresIn": issued.expires_in})


@public_bp.route("/pay", methods=["POST"])
def pay():
    form = request.form
    with monitor.track("submit_payment"):
        payment = run_coroutine_sync(
            get_services().submissions.submit_payment(
                national_id=form.get("nationalId"),
                seat_number=form.get("seatNumber"),
                phone=form.get("phone"),
                email=form.get("email"),
                attachment=_attachment(),
            )
        )
    return jsonify({
        "success": True,
        "message": "Your request has been recorded; payment will be confirmed shortly.",
        "id": payment.id,
    })


def _reserve(method: ReservationMethod):
    form = request.form
    with monitor.track("submit_reservation"):
        reservation = run_coroutine_sync(
            get_services().submissions.submit_reservation(
                national_id=form.get("nationalId"),
                phone=form.get("phone"),
                email=form.get("email"),
                sender_phone=form.get("senderPhone"),
                attachment=_attachment(),
                method=method,
            )
        )
    return jsonify({
        "success": True,
        "message": "Your reservation has been recorded.",
        "id": reservation.id,
    })


@public_bp.route("/reserve", methods=["POST"])
def reserve():
    return _reserve(ReservationMethod.ONLINE)


@public_bp.route("/api/reserve-by-phone", methods=["POST"])
def reserve_by_phone():
    return _reserve(ReservationMethod.PHONE)


@public_bp.route("/api/check-result", methods=["POST"])
def check_result():
    data = _payload()
    with monitor.track("lookup_result"):
        result = run_coroutine_sync(
            get_services().lookup.lookup(
                phone=data.get("phone"),
                seat_number=data.get("seatNumber"),
            )
        )
    return jsonify({"success": True, "result": result})


@public_bp.route("/api/chat-inquiries", methods=["POST"])
def create_chat_inquiry():
    data = _payload()
    inquiry = run_coroutine_sync(
        get_services().submissions.submit_chat_inquiry(
            message=data.get("message"),
            user_data=data.get("userData"),
        )
    )
    return jsonify({
        "success": True,
        "id": inquiry.id,
        "message": "Your message has been received; we will reply soon.",
    })
