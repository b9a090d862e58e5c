"""
Wanderlust Backend - Image Storage Service
===========================================

What:  Validates, stores, serves and cleans up listing photos.
How:   Checks extension, size and real content type, then writes the bytes
       into a date-organized directory under a UUID filename.
Who:   ListingService (create/update/delete) and the /uploads route.

Validation order (cheapest first):
    1. Extension check:  .png .jpg .jpeg .webp
    2. Size check:       non-empty and at most MAX_FILE_SIZE
    3. MIME check:       libmagic reads the header bytes (catches renamed files)
    4. Store:            STORAGE_ROOT/YYYY/MM/DD/<uuid>.<ext>

Directory Structure:
    storage/
    └── 2024/
        └── 01/
            └── 15/
                ├── a1b2c3d4-5678.jpg
                └── e5f6g7h8-9012.png
"""

import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
from starlette.datastructures import UploadFile

from wanderlust.config import settings
from wanderlust.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

_EXTENSION_MIME = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


@dataclass(frozen=True)
class StoredImage:
    """Where an accepted upload ended up."""

    filename: str  # storage key, relative to the storage root
    url: str       # public URL for <img src>
    path: str      # absolute path on disk


class FileService:
    """
    Manages the upload → validate → store → serve → cleanup lifecycle.

    Any failure after the bytes hit the disk should be followed by
    cleanup_file() so no orphaned images accumulate.
    """

    def __init__(self, storage_root: Optional[str] = None, url_prefix: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
            url_prefix:   Override the public URL prefix.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.url_prefix = (url_prefix or settings.media_url_prefix).rstrip("/")
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if the extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                (
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="listing.image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Reject empty files and files above settings.max_file_size.

        Args:
            content_length: Size reported by the client (may be None or wrong)
            actual_size:    Byte count actually received
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(
                "The uploaded image is empty.",
                field="listing.image",
            )

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                f"Image exceeds maximum size of {max_mb:.0f}MB. Please upload a smaller image.",
                field="listing.image",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                f"Image ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum size of {max_mb:.0f}MB.",
                field="listing.image",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, file_content: bytes, filename: str) -> str:
        """
        Determine the real content type from the file's magic bytes.

        Returns: Detected MIME type (e.g. "image/jpeg").
        Raises:  ValidationError if the content is not an allowed image.
        """
        try:
            import magic
            mime_type = magic.from_buffer(file_content, mime=True)
        except ImportError:
            # libmagic missing on this host; fall back to the extension
            logger.warning(
                "python-magic not available; falling back to extension-based type detection."
            )
            mime_type = _EXTENSION_MIME.get(Path(filename).suffix.lower(), "application/octet-stream")
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify the image type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                (
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a PNG, JPEG or WebP image."
                ),
                field="listing.image",
                context={"detected_mime": mime_type, "allowed": list(ALLOWED_MIME_TYPES)},
            )

        return mime_type

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """
        Returns: (absolute_path, key) where key is YYYY/MM/DD/<uuid><ext>.
        """
        now = datetime.now(timezone.utc)
        date_dir = now.strftime("%Y/%m/%d")
        unique_name = f"{uuid.uuid4()}{extension}"

        key = f"{date_dir}/{unique_name}"
        return self.storage_root / key, key

    def public_url(self, key: str) -> str:
        return f"{self.url_prefix}/{key}"

    def resolve(self, key: str) -> Optional[Path]:
        """
        Map a storage key back to a file on disk.

        Returns None when the key escapes the storage root (../ tricks)
        or the file does not exist.
        """
        full_path = (self.storage_root / key).resolve()
        if not full_path.is_relative_to(self.storage_root):
            return None
        if not full_path.is_file():
            return None
        return full_path

    async def store_file(self, content: bytes, extension: str) -> StoredImage:
        """
        Write validated bytes to disk.

        Raises:
            FileStorageError if directory creation or the write fails.
        """
        absolute_path, key = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("Image stored: %s (%d bytes)", key, len(content))
            return StoredImage(filename=key, url=self.public_url(key), path=str(absolute_path))

        except OSError as e:
            logger.error("Failed to store image at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a file from storage. Best effort: failures are logged, not raised.

        Args:
            file_path: Absolute path, or a storage key relative to the root.
        """
        try:
            path = Path(file_path)
            if not path.is_absolute():
                path = self.storage_root / path
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except Exception as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> StoredImage:
        """Full pipeline: extension → size → MIME → write."""
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content, filename)
        return await self.store_file(content, ext)

    async def store_upload(self, upload: UploadFile) -> StoredImage:
        """Read a multipart upload and run it through validate_and_store."""
        try:
            content = await upload.read()
        finally:
            await upload.close()

        logger.info(
            "Received image upload: filename=%s, size=%d bytes",
            upload.filename or "unknown",
            len(content),
        )
        return await self.validate_and_store(
            filename=upload.filename or "upload.jpg",
            content=content,
            content_length=upload.size,
        )


file_service = FileService()
