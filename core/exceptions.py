"""Application-wide exception classes.

Every error carries the HTTP status it maps to and a short machine-readable
code, so the web layer can render any of them without a lookup table.
"""

from __future__ import annotations

from typing import Optional


class ApplicationError(Exception):
    """Base exception for all application errors."""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or (type(self).__doc__ or self.error_code).strip()
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.error_code, "message": self.message}


class ConfigurationError(ApplicationError):
    """Raised when configuration is invalid."""
    error_code = "configuration_error"


class DatabaseError(ApplicationError):
    """Base exception for database-related errors."""
    error_code = "database_error"


class StorageFailure(DatabaseError):
    """Raised when the document store or file storage fails."""
    error_code = "storage_failure"


class TransportFailure(ApplicationError):
    """Raised when an outbound transport (SMTP, Telegram) fails."""
    error_code = "transport_failure"


class ValidationError(ApplicationError):
    """Raised when data validation fails."""
    status_code = 400
    error_code = "validation_error"


class MissingAttachment(ValidationError):
    """A proof-of-transfer screenshot must be uploaded."""
    error_code = "missing_attachment"


class IncompleteSubmission(ValidationError):
    """Required fields are missing."""
    error_code = "incomplete_submission"


class FileValidationError(ValidationError):
    """Raised when file validation fails."""
    error_code = "invalid_file"


class AuthenticationError(ApplicationError):
    """Raised when authentication fails."""
    status_code = 401
    error_code = "unauthorized"


class Unauthenticated(AuthenticationError):
    """Unauthorized"""
    error_code = "unauthenticated"


class InvalidCredentials(AuthenticationError):
    """Invalid username or password."""
    error_code = "invalid_credentials"


class InvalidToken(ApplicationError):
    """Forbidden"""
    status_code = 403
    error_code = "invalid_token"


class TokenExpired(InvalidToken):
    """Token has expired."""
    error_code = "token_expired"


class TokenMalformed(InvalidToken):
    """Token is not valid."""
    error_code = "token_malformed"


class NotFound(ApplicationError):
    """No matching record was found."""
    status_code = 404
    error_code = "not_found"


class RecordNotFound(NotFound):
    """Record does not exist."""
    error_code = "record_not_found"


class RequestNotFound(NotFound):
    """No payment request was found for this seat number."""
    error_code = "request_not_found"


class ResultNotFound(NotFound):
    """No result was found for this seat number."""
    error_code = "result_not_found"


class InquiryNotFound(NotFound):
    """Chat inquiry does not exist."""
    error_code = "inquiry_not_found"


class ResultUnavailable(ApplicationError):
    """The result is not available yet, please try again later."""
    status_code = 404
    error_code = "result_unavailable"


class PaymentRequired(ApplicationError):
    """Payment has not been confirmed yet."""
    status_code = 402
    error_code = "payment_required"
