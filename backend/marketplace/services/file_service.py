"""
RR Nagar Backend — Product Image Storage Service
==================================================

What:  Validates, stores and removes uploaded product images.
How:   Checks extension, size and MIME type (libmagic via python-magic),
       then writes the bytes with aiofiles under STORAGE_ROOT/products/.
Who:   Called by ProductService during product creation.
When:  After authorization and template resolution, before the row insert.

Storage layout and public paths:
    STORAGE_ROOT/
    └── products/
        └── 1718000000000-Fresh_Mangoes.jpg

    The product row stores "uploads/products/1718000000000-Fresh_Mangoes.jpg",
    which is also its URL path: STORAGE_ROOT is mounted at /uploads.

Filenames are "<epoch-millis>-<sanitized original name>"; anything outside
[A-Za-z0-9._-] becomes "_", so no user input can traverse directories.
"""

import logging
import os
import re
import time
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from marketplace.config import settings
from marketplace.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Public URL prefix under which STORAGE_ROOT is served
UPLOADS_MOUNT = "uploads"
PRODUCT_DIR = "products"

ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class FileService:
    """
    Manages the lifecycle of uploaded product images.

    Lifecycle of an uploaded file:
        1. ProductService hands over filename + bytes
        2. Extension check (fast, rejects obviously wrong files)
        3. Size check (empty and oversized files rejected)
        4. MIME type check via magic bytes (catches renamed files)
        5. File is written to STORAGE_ROOT/products/ with a timestamped name
        6. The public path is returned and stored on the product
        7. If the product insert then fails, cleanup_file() removes it
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """
        Returns the normalized (lowercase, dotted) extension.

        Raises:  ValidationError if the extension is not an allowed image type.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'none'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Rejects empty uploads and uploads above MAX_FILE_SIZE.

        Args:
            content_length: Size reported by the client (may be None or inaccurate)
            actual_size: Actual byte count of the uploaded file
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(
                message="Uploaded image is empty.",
                field="image",
            )

        if (content_length and content_length > settings.max_file_size) or (
            actual_size > settings.max_file_size
        ):
            raise ValidationError(
                message=f"Image is too large. Maximum size is {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, file_content: bytes, filename: str) -> str:
        """
        Validate the actual MIME type by inspecting the file's magic bytes.

        Returns:
            Detected MIME type string (e.g., "image/jpeg")

        Raises:
            ValidationError if the detected type is not an allowed image
            FileStorageError if libmagic itself fails
        """
        # Imported here so only the upload path needs libmagic at runtime
        import magic

        try:
            mime_type = magic.from_buffer(file_content, mime=True)
        except Exception as e:
            logger.error("MIME type detection failed for %s: %s", filename, str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a PNG, JPEG, WebP or GIF image."
                ),
                field="image",
                context={"detected_mime": mime_type},
            )

        return mime_type

    @staticmethod
    def sanitize_filename(filename: str) -> str:
        """Keeps the base name only, with spaces and unsafe characters as '_'."""
        base = Path(filename.replace("\\", "/")).name or "image"
        return _UNSAFE_CHARS.sub("_", base)

    def _generate_storage_path(self, filename: str) -> Tuple[Path, str]:
        """Returns (absolute_path, relative_path_from_storage_root)."""
        unique_name = f"{int(time.time() * 1000)}-{self.sanitize_filename(filename)}"
        relative_path = f"{PRODUCT_DIR}/{unique_name}"
        return self.storage_root / relative_path, relative_path

    @staticmethod
    def public_path(relative_path: str) -> str:
        """Path stored on the product row and served under /uploads."""
        return f"{UPLOADS_MOUNT}/{relative_path}"

    async def store_file(self, content: bytes, filename: str) -> Tuple[str, str]:
        """
        Write validated file content to disk.

        Returns: Tuple of (absolute_path, relative_path).
        Raises:  FileStorageError if directory creation or the write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(filename)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("Image stored: %s (%d bytes)", relative_path, len(content))
            return str(absolute_path), relative_path

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a stored image (best effort) after the product insert failed.
        Missing files are ignored; other errors are logged, never raised.
        """
        try:
            path = Path(file_path)
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
    ) -> Tuple[str, str]:
        """
        Complete validation and storage pipeline.

        Validation order (cheapest first):
            1. Extension check
            2. Size check
            3. MIME type check
            4. Store file

        Returns: Tuple of (absolute_path, relative_path).
        """
        self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content, filename)
        return await self.store_file(content, filename)


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
