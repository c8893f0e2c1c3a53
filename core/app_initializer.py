"""Application initialization orchestrator."""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import suppress
from pathlib import Path
from typing import Optional

from aiohttp import web as aiohttp_web
from aiohttp_wsgi import WSGIHandler

from config import Config, load_config
from core.exceptions import ConfigurationError
from core.logger import get_logger
from services import Services, build_services

logger = get_logger(__name__)


def create_web_application(flask_app, executor: Executor) -> aiohttp_web.Application:
    """Mount the Flask app on an aiohttp application.

    Views block on coroutines that themselves use the loop's default
    executor, so requests must run on a separate pool.
    """
    wsgi_handler = WSGIHandler(flask_app, executor=executor)

    aio_app = aiohttp_web.Application()
    aio_app.router.add_route("*", "/{path_info:.*}", wsgi_handler)
    return aio_app


class ApplicationInitializer:
    """Orchestrates application initialization and lifecycle."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or load_config()
        self.services: Optional[Services] = None
        self.web_runner = None
        self.wsgi_executor: Optional[ThreadPoolExecutor] = None

    async def initialize(self) -> None:
        """Initialize all application components."""
        self._check_settings()
        self._prepare_directories()

        # Initialize storage and services
        await self._init_services()

        # Initialize web server
        await self._init_web_server()

    async def run(self) -> None:
        """Run the application until cancelled."""
        try:
            logger.info("⚡ Web interface running...")
            while True:
                await asyncio.sleep(3600)
        except asyncio.CancelledError:
            logger.info("Shutting down...")
        finally:
            await self.cleanup()

    async def cleanup(self) -> None:
        """Cleanup resources."""
        with suppress(Exception):
            if self.web_runner:
                await self.web_runner.cleanup()
        with suppress(Exception):
            if self.services:
                await self.services.close()
        if self.wsgi_executor:
            self.wsgi_executor.shutdown(wait=False)

    def _check_settings(self) -> None:
        """Warn about development defaults and disabled channels.

        Raises:
            ConfigurationError: If production runs with a default token secret
        """
        insecure = self.config.insecure_settings()
        if insecure:
            if self.config.environment == "production" and "JWT_SECRET" in insecure:
                raise ConfigurationError("JWT_SECRET must be changed before running in production")
            level = logger.error if self.config.environment == "production" else logger.warning
            level(f"Insecure default values for: {', '.join(insecure)}")
        if not self.config.smtp_configured or not self.config.notification_email:
            logger.warning("SMTP is not fully configured; email notifications will fail")
        if not self.config.telegram_configured:
            logger.info("Telegram notifications disabled (no bot token or chat id)")

    def _prepare_directories(self) -> None:
        for folder in (self.config.upload_folder, self.config.log_folder):
            Path(folder).mkdir(parents=True, exist_ok=True)

    async def _init_services(self) -> None:
        """Build the service graph and open the document store."""
        self.services = build_services(self.config)
        await self.services.documents.initialize()
        logger.info(f"✅ Storage initialized ({self.services.store.backend})")

    async def _init_web_server(self) -> None:
        """Initialize web server."""
        from web import create_app

        flask_app = create_app(self.config, services=self.services)

        self.wsgi_executor = ThreadPoolExecutor(
            max_workers=self.config.web_threads, thread_name_prefix="wsgi"
        )
        aio_app = create_web_application(flask_app, self.wsgi_executor)

        self.web_runner = aiohttp_web.AppRunner(aio_app)
        await self.web_runner.setup()

        host, port = self.config.web_host, self.config.web_port
        site = aiohttp_web.TCPSite(self.web_runner, host, port)
        await site.start()

        logger.info(f"🚀 Web server started on http://{host}:{port}")
