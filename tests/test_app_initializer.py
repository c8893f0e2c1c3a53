"""Tests for application startup and the aiohttp-served Flask app."""

import asyncio
import io
from concurrent.futures import ThreadPoolExecutor

import aiohttp
import pytest
from aiohttp import test_utils

from conftest import make_config, make_email_channel
from core.app_initializer import ApplicationInitializer, create_web_application
from core.exceptions import ConfigurationError
from database import InMemoryDocumentStore
from services import TelegramChannel, build_services, set_main_loop
from web.app import create_app


def test_production_refuses_default_jwt_secret(tmp_path):
    config = make_config(str(tmp_path), environment="production", jwt_secret="change_me")

    with pytest.raises(ConfigurationError):
        ApplicationInitializer(config)._check_settings()


def test_development_only_warns_about_default_jwt_secret(tmp_path):
    config = make_config(str(tmp_path), environment="development", jwt_secret="change_me")

    ApplicationInitializer(config)._check_settings()


def test_production_with_strong_secret_starts(tmp_path):
    config = make_config(str(tmp_path), environment="production")

    ApplicationInitializer(config)._check_settings()


def _payment_form(seat_number: str) -> aiohttp.FormData:
    form = aiohttp.FormData()
    form.add_field("nationalId", "12345")
    form.add_field("seatNumber", seat_number)
    form.add_field("phone", "01001112222")
    form.add_field("email", "a@b.com")
    form.add_field("screenshot", io.BytesIO(b"fake image"), filename="proof.png",
                   content_type="image/png")
    return form


@pytest.mark.asyncio
async def test_concurrent_uploads_complete(tmp_path):
    # Small pools so that sharing one between views and file writes would hang
    loop = asyncio.get_running_loop()
    loop.set_default_executor(ThreadPoolExecutor(max_workers=2))
    set_main_loop(loop)

    config = make_config(str(tmp_path / "uploads"))
    services = build_services(
        config,
        documents=InMemoryDocumentStore(),
        email=make_email_channel(),
        chat=TelegramChannel(None, None),
    )
    flask_app = create_app(config, services=services, testing=True)
    executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="wsgi")

    async def pay(seat_number):
        async with client.post("/pay", data=_payment_form(seat_number)) as response:
            return response.status

    try:
        server = test_utils.TestServer(create_web_application(flask_app, executor))
        async with test_utils.TestClient(server) as client:
            statuses = await asyncio.wait_for(
                asyncio.gather(*(pay(f"S{i}") for i in range(4))), timeout=10
            )
        requests = await services.store.list_requests()
    finally:
        set_main_loop(None)
        executor.shutdown(wait=False)

    assert statuses == [200, 200, 200, 200]
    assert len(requests) == 4
