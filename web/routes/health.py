"""Health check blueprint."""

from __future__ import annotations

from flask import Blueprint, jsonify

from utils.performance import monitor
from web.context import get_services


health_bp = Blueprint("health", __name__)


@health_bp.route("/health")
def health_check():
    services = get_services()
    data = {
        "status": "ok",
        "storage": services.store.backend,
        "channels": services.notifications.channel_status(),
        "host": monitor.gather_host_metrics(),
    }
    return jsonify(data)
