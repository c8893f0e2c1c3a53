"""Pytest configuration and fixtures."""

import os
import sys
from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest

# Project root on sys.path so tests run without installing the package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config import load_config
from database import InMemoryDocumentStore, SubmissionStore
from services import (
    AdminCredentials,
    AdminGateway,
    AttachmentIngester,
    CredentialGate,
    EmailChannel,
    NotificationDispatcher,
    ResultLookupService,
    SubmissionService,
    TelegramChannel,
)

JWT_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret-pass"
ADMIN_EMAIL = "admin@example.com"
PUBLIC_BASE_URL = "https://results.example.com"


def make_config(upload_folder: str, **overrides):
    """Configuration for tests: in-memory store and known credentials."""
    values = dict(
        environment="testing",
        storage_backend="memory",
        upload_folder=upload_folder,
        jwt_secret=JWT_SECRET,
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        notification_email=ADMIN_EMAIL,
        public_base_url=PUBLIC_BASE_URL,
        telegram_bot_token=None,
        telegram_chat_id=None,
    )
    values.update(overrides)
    return replace(load_config(), **values)


def make_email_channel() -> MagicMock:
    email = MagicMock(spec=EmailChannel)
    email.configured = True
    email.send = AsyncMock(return_value=None)
    return email


def make_bot() -> MagicMock:
    """Stand-in for an aiogram Bot used as an async context manager."""
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.__aenter__ = AsyncMock(return_value=bot)
    bot.__aexit__ = AsyncMock(return_value=False)
    return bot


@pytest.fixture
def documents():
    return InMemoryDocumentStore()


@pytest.fixture
def store(documents):
    return SubmissionStore(documents)


@pytest.fixture
def attachments(tmp_path):
    return AttachmentIngester(tmp_path / "uploads")


@pytest.fixture
def email_channel():
    return make_email_channel()


@pytest.fixture
def bot():
    return make_bot()


@pytest.fixture
def chat_channel(bot):
    return TelegramChannel("123:token", "-100500", bot_factory=lambda token: bot)


@pytest.fixture
def dispatcher(email_channel, chat_channel):
    return NotificationDispatcher(email_channel, chat_channel, admin_email=ADMIN_EMAIL)


@pytest.fixture
def submissions(store, attachments, dispatcher, email_channel):
    return SubmissionService(
        store,
        attachments,
        dispatcher,
        email_channel,
        public_base_url=PUBLIC_BASE_URL,
    )


@pytest.fixture
def lookup(store):
    return ResultLookupService(store)


@pytest.fixture
def gate():
    return CredentialGate(
        AdminCredentials.from_config(ADMIN_USERNAME, ADMIN_PASSWORD),
        secret=JWT_SECRET,
    )


@pytest.fixture
def admin_gateway(gate, submissions, store, attachments):
    return AdminGateway(gate, submissions, store, attachments)


@pytest.fixture
def admin_token(gate):
    return gate.login(ADMIN_USERNAME, ADMIN_PASSWORD).token
