"""Access to the service graph stored on the Flask app."""

from __future__ import annotations

from flask import current_app

from services import Services

SERVICES_KEY = "SERVICES"


def get_services() -> Services:
    """Service graph of the application handling the current request."""
    return current_app.config[SERVICES_KEY]
