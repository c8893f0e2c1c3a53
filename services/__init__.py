"""Services package."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from database import DocumentStore, SubmissionStore, create_document_store

from .admin_gateway import AdminGateway
from .async_runner import run_coroutine_sync, set_main_loop, start_background_loop, submit_coroutine
from .attachment_service import AttachmentIngester
from .channels import EmailChannel, TelegramChannel
from .credential_gate import AdminCredentials, CredentialGate
from .notification_service import NotificationDispatcher, NotificationEvent
from .result_lookup_service import ResultLookupService
from .submission_service import Attachment, SubmissionService

if TYPE_CHECKING:
    from config import Config


@dataclass
class Services:
    """Wired service graph shared by the web layer and scripts."""
    documents: DocumentStore
    store: SubmissionStore
    attachments: AttachmentIngester
    email: EmailChannel
    chat: TelegramChannel
    notifications: NotificationDispatcher
    gate: CredentialGate
    submissions: SubmissionService
    lookup: ResultLookupService
    admin: AdminGateway

    async def close(self) -> None:
        await self.documents.close()


def build_services(
    config: Config,
    documents: Optional[DocumentStore] = None,
    email: Optional[EmailChannel] = None,
    chat: Optional[TelegramChannel] = None,
) -> Services:
    """Wire every service from configuration.

    Args:
        config: Application configuration
        documents: Store to use instead of the configured backend
        email: Email transport override
        chat: Telegram transport override
    """
    if documents is None:
        documents = create_document_store(
            config.storage_backend,
            config.database_path,
            pool_size=config.db_pool_size,
            busy_timeout_ms=config.db_busy_timeout,
        )
    store = SubmissionStore(documents)

    attachments = AttachmentIngester(
        Path(config.upload_folder),
        url_prefix=config.uploads_url_prefix,
        max_file_size=config.max_file_size,
    )
    if email is None:
        email = EmailChannel(
            host=config.smtp_host,
            port=config.smtp_port,
            user=config.smtp_user,
            password=config.smtp_password,
            secure=config.smtp_secure,
        )
    if chat is None:
        chat = TelegramChannel(config.telegram_bot_token, config.telegram_chat_id)

    notifications = NotificationDispatcher(email, chat, admin_email=config.notification_email)
    gate = CredentialGate(
        AdminCredentials.from_config(config.admin_username, config.admin_password),
        secret=config.jwt_secret,
        ttl_hours=config.admin_token_ttl_hours,
    )
    submissions = SubmissionService(
        store,
        attachments,
        notifications,
        email,
        mail_from_name=config.mail_from_name,
        reply_subject=config.admin_reply_subject,
        public_base_url=config.public_base_url,
    )
    lookup = ResultLookupService(store)
    admin = AdminGateway(gate, submissions, store, attachments)

    return Services(
        documents=documents,
        store=store,
        attachments=attachments,
        email=email,
        chat=chat,
        notifications=notifications,
        gate=gate,
        submissions=submissions,
        lookup=lookup,
        admin=admin,
    )


__all__ = [
    "Services",
    "build_services",
    "set_main_loop",
    "run_coroutine_sync",
    "submit_coroutine",
    "start_background_loop",
    "AdminGateway",
    "AttachmentIngester",
    "Attachment",
    "EmailChannel",
    "TelegramChannel",
    "AdminCredentials",
    "CredentialGate",
    "NotificationDispatcher",
    "NotificationEvent",
    "ResultLookupService",
    "SubmissionService",
]
