"""Validation of uploaded attachment files."""

import logging
import re
from pathlib import PurePosixPath
from typing import Optional

from core.constants import FileUploadLimits
from core.exceptions import FileValidationError, MissingAttachment

logger = logging.getLogger(__name__)

EXTENSION_RE = re.compile(r"\.[a-z0-9]{1,9}")


def get_extension(original_name: Optional[str]) -> str:
    """Lower-cased extension of an uploaded file name, or ``""``.

    Only the final suffix of the last path component is kept, and only when
    it is plain alphanumeric, so path tricks such as ``../../x.png/`` or
    ``shell.php%00.png`` cannot leak into the stored name.
    """
    if not original_name:
        return ""
    suffix = PurePosixPath(original_name.replace("\\", "/")).suffix.lower()
    if suffix and not EXTENSION_RE.fullmatch(suffix):
        logger.warning(f"Suspicious file extension dropped: {suffix!r}")
        return ""
    return suffix


def validate_attachment(
    payload: Optional[bytes],
    original_name: Optional[str],
    max_size: int = FileUploadLimits.MAX_ATTACHMENT_SIZE,
    allowed_extensions: frozenset = frozenset(FileUploadLimits.ALLOWED_EXTENSIONS),
) -> str:
    """Check an uploaded proof-of-transfer file.

    Args:
        payload: Raw file bytes
        original_name: File name as sent by the client
        max_size: Maximum allowed size in bytes
        allowed_extensions: Accepted extensions (with leading dot)

    Returns:
        str: The extension to keep on the stored file (may be empty)

    Raises:
        MissingAttachment: If no bytes were uploaded
        FileValidationError: If the file is too large or of a rejected type
    """
    if not payload:
        raise MissingAttachment()

    if len(payload) > max_size:
        raise FileValidationError(
            f"File is too large ({format_file_size(len(payload))}). "
            f"Maximum size: {format_file_size(max_size)}."
        )

    extension = get_extension(original_name)
    if extension and extension not in allowed_extensions:
        raise FileValidationError(f"Unsupported file type: {extension}")

    return extension


def format_file_size(size_bytes: int) -> str:
    """Human readable file size."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
