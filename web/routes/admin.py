"""Admin API blueprint; every view passes the bearer token to the gateway."""
from __future__ import annotations

from flask import Blueprint, jsonify, request

from services import run_coroutine_sync
from utils.performance import monitor
from web.auth import bearer_token
from web.context import get_services


admin_bp = Blueprint("admin", __name__, url_prefix="/api")


def _gateway():
    return get_services().admin


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else request.form.to_dict()


# Payment requests

@admin_bp.route("/requests")
def list_requests():
    requests = run_coroutine_sync(_gateway().list_requests(bearer_token()))
    return jsonify({"requests": requests})


@admin_bp.route("/requests/<request_id>")
def get_request(request_id: str):
    record = run_coroutine_sync(_gateway().get_request(bearer_token(), request_id))
    return jsonify({"request": record})


@admin_bp.route("/requests/<request_id>", methods=["DELETE"])
def delete_request(request_id: str):
    run_coroutine_sync(_gateway().delete_request(bearer_token(), request_id))
    return jsonify({"success": True})


# Reservations

@admin_bp.route("/reservations")
def list_reservations():
    reservations = run_coroutine_sync(_gateway().list_reservations(bearer_token()))
    return jsonify({"reservations": reservations})


@admin_bp.route("/reservations/<reservation_id>")
def get_reservation(reservation_id: str):
    record = run_coroutine_sync(_gateway().get_reservation(bearer_token(), reservation_id))
    return jsonify({"reservation": record})


@admin_bp.route("/reservations/<reservation_id>", methods=["DELETE"])
def delete_reservation(reservation_id: str):
    run_coroutine_sync(_gateway().delete_reservation(bearer_token(), reservation_id))
    return jsonify({"success": True})


# Chat inquiries

@admin_bp.route("/chat-inquiries")
def list_chat_inquiries():
    inquiries = run_coroutine_sync(_gateway().list_chat_inquiries(bearer_token()))
    return jsonify({"inquiries": inquiries})


@admin_bp.route("/chat-inquiries/<inquiry_id>")
def get_chat_inquiry(inquiry_id: str):
    inquiry = run_coroutine_sync(_gateway().get_chat_inquiry(bearer_token(), inquiry_id))
    return jsonify({"inquiry": inquiry})


@admin_bp.route("/chat-inquiries/<inquiry_id>", methods=["DELETE"])
def delete_chat_inquiry(inquiry_id: str):
    run_coroutine_sync(_gateway().delete_chat_inquiry(bearer_token(), inquiry_id))
    return jsonify({"success": True})


@admin_bp.route("/chat-inquiries/<inquiry_id>/read", methods=["PUT"])
def mark_chat_read(inquiry_id: str):
    run_coroutine_sync(_gateway().mark_chat_read(bearer_token(), inquiry_id))
    return jsonify({"success": True})


# Results and replies

@admin_bp.route("/results")
def list_results():
    results = run_coroutine_sync(_gateway().list_results(bearer_token()))
    return jsonify({"results": results})


@admin_bp.route("/admin-messages")
def list_admin_messages():
    messages = run_coroutine_sync(_gateway().list_admin_messages(bearer_token()))
    return jsonify({"messages": messages})


@admin_bp.route("/open-result", methods=["POST"])
def open_result():
    data = _json_body()
    with monitor.track("open_result"):
        run_coroutine_sync(_gateway().open_result(bearer_token(), data.get("seatNumber")))
    return jsonify({"success": True, "message": "Result opened and payment confirmed."})


@admin_bp.route("/send-admin-message", methods=["POST"])
def send_admin_message():
    data = _json_body()
    with monitor.track("send_admin_reply"):
        run_coroutine_sync(
            _gateway().send_admin_reply(bearer_token(), data.get("email"), data.get("message"))
        )
    return jsonify({"success": True, "message": "Message sent."})
