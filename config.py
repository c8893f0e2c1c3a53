"""Application configuration module.

Reads settings from environment variables (and an optional ``.env`` file)
with defaults suitable for local development.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from core.constants import FileUploadLimits, MailDefaults, TokenDefaults

load_dotenv()

INSECURE_SECRETS = {"", "change_me", "development_secret_key"}


def _get_bool(name: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _get_int(name: str, default: int) -> int:
    """Get integer from environment variable with fallback."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_str(name: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.getenv(name, default)


def _get_optional(name: str) -> Optional[str]:
    """Get string from environment variable, treating blanks as unset."""
    value = os.getenv(name, "").strip()
    return value or None


@dataclass(frozen=True)
class Config:
    environment: str
    debug: bool
    web_host: str
    web_port: int
    web_threads: int
    secret_key: str
    cors_origins: str

    # Admin authentication
    admin_username: str
    admin_password: str
    jwt_secret: str
    admin_token_ttl_hours: int

    # Storage
    storage_backend: str
    database_path: str
    db_pool_size: int
    db_busy_timeout: int
    upload_folder: str
    uploads_url_prefix: str
    max_file_size: int
    log_folder: str

    # Email transport
    smtp_host: Optional[str]
    smtp_port: int
    smtp_secure: bool
    smtp_user: Optional[str]
    smtp_password: Optional[str]
    notification_email: Optional[str]
    mail_from_name: str
    admin_reply_subject: str

    # Telegram transport
    telegram_bot_token: Optional[str]
    telegram_chat_id: Optional[str]
    public_base_url: Optional[str]

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user)

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    def insecure_settings(self) -> list[str]:
        """Names of settings still carrying development defaults."""
        issues = []
        if self.admin_password in {"", "123456", "admin"}:
            issues.append("ADMIN_PASSWORD")
        if self.jwt_secret in INSECURE_SECRETS:
            issues.append("JWT_SECRET")
        if self.secret_key in INSECURE_SECRETS:
            issues.append("SECRET_KEY")
        return issues


def load_config() -> Config:
    """Load application configuration from environment variables.

    Returns:
        Config: Application configuration with validated values
    """
    return Config(
        environment=_get_str("ENVIRONMENT", "development"),
        debug=_get_bool("DEBUG", False),
        web_host=_get_str("WEB_HOST", "0.0.0.0"),
        web_port=_get_int("PORT", _get_int("WEB_PORT", 3000)),
        web_threads=_get_int("WEB_THREADS", 16),
        secret_key=_get_str("SECRET_KEY", "development_secret_key"),
        cors_origins=_get_str("CORS_ORIGINS", "*"),
        admin_username=_get_str("ADMIN_USER", _get_str("ADMIN_USERNAME", "admin")),
        admin_password=_get_str("ADMIN_PASS", _get_str("ADMIN_PASSWORD", "123456")),
        jwt_secret=_get_str("JWT_SECRET", "change_me"),
        admin_token_ttl_hours=_get_int("ADMIN_TOKEN_TTL_HOURS", TokenDefaults.TTL_HOURS),
        storage_backend=_get_str("STORAGE_BACKEND", "sqlite").lower(),
        database_path=_get_str("DATABASE_PATH", "data/submissions.sqlite"),
        db_pool_size=_get_int("DB_POOL_SIZE", 5),
        db_busy_timeout=_get_int("DB_BUSY_TIMEOUT", 5000),
        upload_folder=_get_str("UPLOAD_FOLDER", "uploads"),
        uploads_url_prefix=_get_str("UPLOADS_URL_PREFIX", "/uploads").rstrip("/"),
        max_file_size=_get_int("MAX_FILE_SIZE", FileUploadLimits.MAX_ATTACHMENT_SIZE),
        log_folder=_get_str("LOG_FOLDER", "logs"),
        smtp_host=_get_optional("SMTP_HOST"),
        smtp_port=_get_int("SMTP_PORT", 587),
        smtp_secure=_get_bool("SMTP_SECURE", False),
        smtp_user=_get_optional("SMTP_USER"),
        smtp_password=_get_optional("SMTP_PASS"),
        notification_email=_get_optional("NOTIFICATION_EMAIL"),
        mail_from_name=_get_str("MAIL_FROM_NAME", MailDefaults.FROM_NAME),
        admin_reply_subject=_get_str("ADMIN_REPLY_SUBJECT", MailDefaults.REPLY_SUBJECT),
        telegram_bot_token=_get_optional("TELEGRAM_BOT_TOKEN"),
        telegram_chat_id=_get_optional("TELEGRAM_CHAT_ID"),
        public_base_url=(_get_optional("PUBLIC_BASE_URL") or "").rstrip("/") or None,
    )
