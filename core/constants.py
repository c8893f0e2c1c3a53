"""Application-wide constants and configuration values."""

from __future__ import annotations

from enum import Enum


class Collections:
    """Document store collection names."""
    REQUESTS = "requests"
    RESERVATIONS = "reservations"
    CHAT_INQUIRIES = "chat_inquiries"
    RESULTS = "results"
    ADMIN_MESSAGES = "admin_messages"


class InquiryStatus(str, Enum):
    """Chat inquiry status."""
    NEW = "new"
    READ = "read"


class ReservationMethod(str, Enum):
    """How a reservation was submitted."""
    ONLINE = "online"
    PHONE = "phone"


class NotificationEventType(str, Enum):
    """Domain events that fan out to the admin."""
    PAYMENT_SUBMITTED = "payment_submitted"
    RESERVATION_SUBMITTED = "reservation_submitted"
    CHAT_INQUIRY_RECEIVED = "chat_inquiry_received"


class NotificationChannel(str, Enum):
    EMAIL = "email"
    CHAT = "chat"


class TelegramLimits:
    """Telegram API limits."""
    MESSAGE_MAX_LENGTH = 4096
    INQUIRY_TEXT_MAX_LENGTH = 3500  # escaped message, leaves room for the markup around it


class FileUploadLimits:
    """File upload limits."""
    MAX_ATTACHMENT_SIZE = 10 * 1024 * 1024  # 10 MB
    ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic", ".bmp", ".pdf"}


class TokenDefaults:
    """Admin token defaults."""
    ALGORITHM = "HS256"
    TTL_HOURS = 24


class MailDefaults:
    FROM_NAME = "gizaresult"
    REPLY_SUBJECT = "gizaresult"
    SMTP_TIMEOUT = 30  # seconds


UNKNOWN = "unknown"
