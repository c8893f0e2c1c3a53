"""Flask application factory with JSON error handling and security defaults."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

from flask import Flask, jsonify, send_from_directory
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from core import ApplicationError, get_logger
from services import Services, build_services
from utils.file_validators import format_file_size
from web.config_middleware import (
    configure_app,
    setup_cors,
    setup_security_headers,
    setup_metrics,
)
from web.context import SERVICES_KEY
from web.routes import register_routes

if TYPE_CHECKING:
    from config import Config

logger = get_logger(__name__)


def create_app(config: Config, services: Optional[Services] = None, testing: bool = False) -> Flask:
    """Create and configure Flask application.

    Args:
        config: Application configuration
        services: Pre-built service graph; built from ``config`` when omitted
        testing: Whether running in testing mode

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    # Configure application
    configure_app(app, config, testing)

    # Setup middleware
    setup_cors(app, config)
    setup_security_headers(app)
    setup_metrics(app)

    app.config[SERVICES_KEY] = services or build_services(config)

    # Register routes
    register_routes(app)

    # Setup additional handlers
    _setup_routes(app, config)
    _setup_error_handlers(app)

    return app


def _setup_routes(app: Flask, config: Config) -> None:
    """Setup basic application routes.

    Args:
        app: Flask application instance
        config: Application configuration
    """
    uploads_dir = Path(config.upload_folder).resolve()

    @app.route('/metrics')
    def metrics():
        """Expose Prometheus metrics."""
        data = generate_latest()
        return data, 200, {'Content-Type': CONTENT_TYPE_LATEST}

    @app.route(f"{config.uploads_url_prefix}/<path:filename>")
    def uploaded_file(filename):
        """Serve uploaded transfer screenshots."""
        return send_from_directory(uploads_dir, filename)


def _setup_error_handlers(app: Flask) -> None:
    """Setup error handlers.

    Args:
        app: Flask application instance
    """
    @app.errorhandler(ApplicationError)
    def application_error(error: ApplicationError):
        """Render domain errors as JSON with their own status."""
        if error.status_code >= 500:
            logger.error(f"{error.error_code}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(error):
        """Handle uploads above MAX_CONTENT_LENGTH."""
        limit = app.config.get("MAX_CONTENT_LENGTH") or 0
        return jsonify({
            "success": False,
            "error": "file_too_large",
            "message": f"Upload is too large. Maximum size: {format_file_size(limit)}.",
        }), 413

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        """Render werkzeug HTTP errors (404, 405...) as JSON."""
        return jsonify({
            "success": False,
            "error": (error.name or "error").lower().replace(" ", "_"),
            "message": error.description,
        }), error.code

    @app.errorhandler(Exception)
    def internal_error(error: Exception):
        """Handle unexpected errors."""
        logger.error(f"Internal server error: {error}", exc_info=True)
        return jsonify({"success": False, "error": "internal_error", "message": str(error)}), 500
