"""Storage of uploaded proof-of-transfer attachments."""

from __future__ import annotations

import asyncio
import time
import uuid
from pathlib import Path
from typing import Optional

from core import get_logger
from core.constants import FileUploadLimits
from core.exceptions import StorageFailure
from utils.file_validators import validate_attachment

logger = get_logger(__name__)


class AttachmentIngester:
    """Validates uploaded files and writes them under the upload directory."""

    def __init__(
        self,
        upload_dir: Path,
        url_prefix: str = "/uploads",
        max_file_size: int = FileUploadLimits.MAX_ATTACHMENT_SIZE,
    ):
        """Initialize attachment ingester.

        Args:
            upload_dir: Directory for uploaded files
            url_prefix: Public path under which the directory is served
            max_file_size: Maximum accepted size in bytes
        """
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_file_size = max_file_size

    @staticmethod
    def generate_name(extension: str) -> str:
        """Unique file name: epoch milliseconds plus a random suffix."""
        return f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:12]}{extension}"

    async def store(self, payload: Optional[bytes], original_name: Optional[str]) -> str:
        """Validate and persist an attachment.

        Args:
            payload: Raw file bytes
            original_name: Client-side file name; only its extension is kept

        Returns:
            The stored file name, used as the attachment reference

        Raises:
            MissingAttachment: If no bytes were given
            FileValidationError: If the file is rejected
            StorageFailure: If the file could not be written
        """
        extension = validate_attachment(payload, original_name, max_size=self.max_file_size)
        filename = self.generate_name(extension)
        destination = self.upload_dir / filename

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._write, destination, payload)
        except OSError as e:
            logger.error(f"Failed to store attachment {filename}: {e}", exc_info=True)
            raise StorageFailure(f"Could not store attachment: {e}") from e

        logger.info(
            f"Attachment stored as {filename}",
            extra={"path": destination.as_posix(), "size": len(payload)}
        )
        return filename

    def _write(self, destination: Path, payload: bytes) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        # "xb" refuses to overwrite an existing file
        with open(destination, "xb") as fh:
            fh.write(payload)

    def resolve_url(self, reference: Optional[str]) -> Optional[str]:
        """Public URL path of a stored attachment, ``None`` when absent."""
        if not reference:
            return None
        return f"{self.url_prefix}/{reference}"
