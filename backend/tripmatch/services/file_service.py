"""
TripMatch Backend — Image Upload Service
==========================================

What:  Validates uploaded event images and hands them to object storage.
Who:   Called by EventService for cover images and gallery photos.

Security Model:
    1. Extension check:  fast rejection of obviously wrong files
    2. Size check:       empty files and files over max_file_size are rejected
    3. Content check:    Pillow parses the header and verifies the image;
                         the detected format must match the allowed set
    4. UUID filename:    no user input ends up in the storage key

Storage keys:
    events/<event_id>/<kind>/YYYY/MM/DD/<uuid><ext>
"""

import io
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from tripmatch.config import Settings, settings
from tripmatch.exceptions import ValidationError
from tripmatch.services.storage import LocalFileStorage, ObjectStorage
from tripmatch.services.webdav_storage import CircuitBreaker, WebDAVStorage

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

# Pillow format name → content type
ALLOWED_FORMATS = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}


class FileService:
    """
    Lifecycle of an uploaded image:
        1. Extension check
        2. Size check on the bytes actually received
        3. Pillow verify() on the content, format must be PNG/JPEG/WEBP
        4. Key generated from event, kind and date
        5. ObjectStorage.upload() returns the public URL stored on the event
    """

    def __init__(self, storage: ObjectStorage, max_file_size: Optional[int] = None):
        self.storage = storage
        self.max_file_size = max_file_size or settings.max_file_size

    def validate_extension(self, filename: str) -> str:
        """Returns the normalized extension (lowercase with dot)."""
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, size: int) -> None:
        if size == 0:
            raise ValidationError(message="Uploaded file is empty", field="file")
        if size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"File size ({size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": size},
            )

    def validate_image_content(self, content: bytes) -> str:
        """
        Check that the bytes really are an allowed image.

        Returns:
            Content type derived from the detected format, e.g. "image/png".
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                detected = img.format
                img.verify()
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            SyntaxError,
            ValueError,
        ) as e:
            raise ValidationError(
                message="File content is not a valid image.",
                field="file",
                context={"error": type(e).__name__},
            ) from e

        if detected not in ALLOWED_FORMATS:
            raise ValidationError(
                message=(
                    f"Image format '{detected}' is not supported. "
                    "The file must be a PNG, JPEG or WEBP image."
                ),
                field="file",
                context={"detected_format": detected, "allowed": sorted(ALLOWED_FORMATS)},
            )
        return ALLOWED_FORMATS[detected]

    def build_key(self, event_id: uuid.UUID, kind: str, extension: str) -> str:
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        return f"events/{event_id}/{kind}/{date_dir}/{uuid.uuid4()}{extension}"

    async def upload_image(
        self, event_id: uuid.UUID, kind: str, filename: str, content: bytes
    ) -> str:
        """
        Validate and store one image. Returns its public URL.

        Validation order is cheapest first; nothing is written unless every
        check passes.
        """
        ext = self.validate_extension(filename)
        self.validate_size(len(content))
        content_type = self.validate_image_content(content)
        key = self.build_key(event_id, kind, ext)
        return await self.storage.upload(key, content, content_type)


def build_storage(config: Settings) -> ObjectStorage:
    """Pick the storage backend from `storage_provider`."""
    if config.storage_provider == "webdav":
        return WebDAVStorage(
            base_url=config.webdav_base_url,
            username=config.webdav_username,
            password=config.webdav_password,
            public_url=config.webdav_public_url,
            timeout=config.webdav_timeout,
            max_attempts=config.retry_max_attempts,
            min_wait=config.retry_min_wait,
            max_wait=config.retry_max_wait,
            circuit_breaker=CircuitBreaker(
                failure_threshold=config.cb_failure_threshold,
                recovery_timeout=config.cb_recovery_timeout,
            ),
        )
    return LocalFileStorage(root=config.storage_root, public_url=config.public_files_url)


storage = build_storage(settings)
file_service = FileService(storage)
