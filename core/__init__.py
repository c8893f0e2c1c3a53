"""Core application components."""

from core.logger import setup_logger, get_logger
from core.constants import (
    Collections,
    InquiryStatus,
    ReservationMethod,
    NotificationEventType,
    NotificationChannel,
    TelegramLimits,
    FileUploadLimits,
    TokenDefaults,
    MailDefaults,
)
from core.exceptions import (
    ApplicationError,
    ConfigurationError,
    DatabaseError,
    StorageFailure,
    TransportFailure,
    ValidationError,
    MissingAttachment,
    IncompleteSubmission,
    FileValidationError,
    AuthenticationError,
    Unauthenticated,
    InvalidCredentials,
    InvalidToken,
    TokenExpired,
    TokenMalformed,
    NotFound,
    RecordNotFound,
    RequestNotFound,
    ResultNotFound,
    InquiryNotFound,
    ResultUnavailable,
    PaymentRequired,
)

__all__ = [
    # Logging
    'setup_logger',
    'get_logger',
    # Constants
    'Collections',
    'InquiryStatus',
    'ReservationMethod',
    'NotificationEventType',
    'NotificationChannel',
    'TelegramLimits',
    'FileUploadLimits',
    'TokenDefaults',
    'MailDefaults',
    # Exceptions
    'ApplicationError',
    'ConfigurationError',
    'DatabaseError',
    'StorageFailure',
    'TransportFailure',
    'ValidationError',
    'MissingAttachment',
    'IncompleteSubmission',
    'FileValidationError',
    'AuthenticationError',
    'Unauthenticated',
    'InvalidCredentials',
    'InvalidToken',
    'TokenExpired',
    'TokenMalformed',
    'NotFound',
    'RecordNotFound',
    'RequestNotFound',
    'ResultNotFound',
    'InquiryNotFound',
    'ResultUnavailable',
    'PaymentRequired',
]
