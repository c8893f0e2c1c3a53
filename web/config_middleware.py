"""Flask application configuration and middleware setup."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from flask import Flask, g, request
from flask_cors import CORS
from prometheus_client import Counter, Histogram

from core import get_logger

if TYPE_CHECKING:
    from config import Config

logger = get_logger(__name__)

SLOW_REQUEST_SECONDS = 1.0
# Room for the other multipart fields next to a maximum-size upload
FORM_OVERHEAD_BYTES = 64 * 1024

# Prometheus metrics
REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "HTTP request latency",
    ["method", "path"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)
REQUEST_ERRORS = Counter(
    "http_request_errors_total",
    "Total number of 5xx responses",
    ["method", "path"],
)


def configure_app(app: Flask, config: Config, testing: bool = False) -> None:
    """Configure Flask application settings.

    Args:
        app: Flask application instance
        config: Application configuration
        testing: Whether running in testing mode
    """
    app.config.update(
        SECRET_KEY=config.secret_key,
        MAX_CONTENT_LENGTH=config.max_file_size + FORM_OVERHEAD_BYTES,
        SEND_FILE_MAX_AGE_DEFAULT=3600,
        UPLOAD_FOLDER=config.upload_folder,
        TESTING=testing,
    )
    app.json.ensure_ascii = False

    # Warn if insecure defaults detected
    if config.environment == 'production':
        for name in config.insecure_settings():
            app.logger.warning(f"{name} still uses an insecure default in production")


def setup_cors(app: Flask, config: Config) -> None:
    """Allow the public site and the admin console to call the API.

    Args:
        app: Flask application instance
        config: Application configuration
    """
    CORS(app, resources={r"/*": {"origins": config.cors_origins}})


def setup_security_headers(app: Flask) -> None:
    """Setup security headers middleware.

    Args:
        app: Flask application instance
    """
    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses."""
        response.headers.setdefault('X-Content-Type-Options', 'nosniff')
        response.headers.setdefault('X-Frame-Options', 'DENY')
        response.headers.setdefault('Referrer-Policy', 'same-origin')
        return response


def setup_metrics(app: Flask) -> None:
    """Setup Prometheus metrics middleware.

    Args:
        app: Flask application instance
    """
    @app.before_request
    def before_metrics():
        """Store request start time."""
        g._metrics_start = time.perf_counter()

    @app.after_request
    def after_metrics(response):
        """Record request metrics."""
        start = g.pop('_metrics_start', None)
        path = getattr(request.url_rule, 'rule', None) or 'unmatched'
        if start is not None:
            duration = time.perf_counter() - start
            REQUEST_LATENCY.labels(method=request.method, path=path).observe(duration)
            response.headers['X-Response-Time'] = f"{duration:.3f}s"
            if duration > SLOW_REQUEST_SECONDS:
                logger.warning(f"Slow request: {request.method} {request.path} took {duration:.2f}s")

        # Record 5xx errors
        if response.status_code >= 500:
            REQUEST_ERRORS.labels(method=request.method, path=path).inc()
        return response
