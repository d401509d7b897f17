"""
Cellar Tracker Backend - Image Upload Service
==============================================

What:  Validates uploaded label photos, derives a square thumbnail, and
       stores both files under the upload directory.
How:   Declared MIME type and size are checked before any decoding. The
       bytes are then decoded with Pillow (which also tells us the real
       format), the thumbnail is rendered in memory, and both files are
       written to temporary names and renamed into place.
Who:   Called by POST /api/upload and by the wine create/update routes.

Storage Layout:
    uploads/
    ├── 5f0c...e1.jpg          original, UUID filename
    └── thumb_5f0c...e1.jpg    200x200 cover-cropped thumbnail

    Both are served back as /uploads/<name>.

Atomicity:
    1. Validate type and size (reject before processing)
    2. Decode and render the thumbnail in memory (reject corrupt images)
    3. Write .tmp-<name> for both files
    4. Rename both into place
    Any failure in 3 or 4 removes whatever was written, so a request either
    produces both files or neither. Temporary names are never served.
"""

import io
import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

import aiofiles
from PIL import Image, ImageOps, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
# Declared MIME type of the multipart part → canonical extension
ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}

# Format reported by Pillow after decoding → canonical extension
ALLOWED_FORMATS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "WEBP": ".webp",
}

URL_PREFIX = "/uploads"
THUMBNAIL_PREFIX = "thumb_"
TEMP_PREFIX = ".tmp-"


@dataclass(frozen=True)
class StoredImage:
    """Result of a successful upload."""
    image_url: str
    thumbnail_url: str
    image_path: Path
    thumbnail_path: Path


class ImageService:
    """
    Manages the upload → validate → thumbnail → store lifecycle.

    Every instance owns one flat upload directory. The module-level
    `image_service` singleton uses `settings.upload_dir`; tests build their
    own instances on a temporary directory.
    """

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        max_upload_size: Optional[int] = None,
        thumbnail_size: Optional[int] = None,
    ):
        self.upload_dir = Path(upload_dir or settings.upload_dir).resolve()
        self.max_upload_size = max_upload_size or settings.max_upload_size
        self.thumbnail_size = thumbnail_size or settings.thumbnail_size
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("ImageService initialized with upload_dir=%s", self.upload_dir)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_content_type(self, content_type: Optional[str]) -> str:
        """
        Check the declared MIME type of the upload.

        Returns: the normalized MIME type.
        Raises:  ValidationError for anything but JPEG, PNG and WebP.
        """
        normalized = (content_type or "").split(";")[0].strip().lower()
        if normalized not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message="Invalid file type. Only JPEG, PNG and WebP are allowed.",
                field="image",
                context={"content_type": normalized, "allowed": list(ALLOWED_MIME_TYPES)},
            )
        return normalized

    def validate_size(self, size: int) -> None:
        """Reject empty uploads and uploads above the configured maximum."""
        max_mb = self.max_upload_size / (1024 * 1024)
        if size == 0:
            raise ValidationError(
                message="Uploaded image is empty.",
                field="image",
            )
        if size > self.max_upload_size:
            raise ValidationError(
                message=f"Image is too large ({size / (1024 * 1024):.1f}MB). Maximum is {max_mb:g}MB.",
                field="image",
                context={"max_size": self.max_upload_size, "actual_size": size},
            )

    # ── Processing ────────────────────────────────────────────────────────

    def render_thumbnail(self, content: bytes) -> Tuple[str, bytes]:
        """
        Decode `content` and render the cover-cropped square thumbnail.

        Runs synchronously (CPU bound); callers on the event loop go through
        run_in_threadpool.

        Returns: (extension of the decoded format, thumbnail bytes)
        Raises:  ValidationError if the bytes are not a decodable JPEG/PNG/WebP.
        """
        try:
            with Image.open(io.BytesIO(content)) as image:
                image.load()
                image_format = image.format
                if image_format not in ALLOWED_FORMATS:
                    raise ValidationError(
                        message="Invalid file type. Only JPEG, PNG and WebP are allowed.",
                        field="image",
                        context={"detected_format": image_format},
                    )

                upright = ImageOps.exif_transpose(image)
                thumbnail = ImageOps.fit(upright, (self.thumbnail_size, self.thumbnail_size))
        except (UnidentifiedImageError, OSError, SyntaxError, Image.DecompressionBombError) as e:
            raise ValidationError(
                message="The uploaded image could not be processed. It may be corrupt.",
                field="image",
                context={"error": str(e)},
            )

        if image_format == "JPEG" and thumbnail.mode not in ("RGB", "L"):
            thumbnail = thumbnail.convert("RGB")
        elif image_format == "WEBP" and thumbnail.mode not in ("RGB", "RGBA"):
            thumbnail = thumbnail.convert("RGBA")

        buffer = io.BytesIO()
        thumbnail.save(buffer, format=image_format)
        return ALLOWED_FORMATS[image_format], buffer.getvalue()

    # ── Storage ───────────────────────────────────────────────────────────

    @staticmethod
    def url_for(filename: str) -> str:
        return f"{URL_PREFIX}/{filename}"

    async def _write_atomically(self, files: Iterable[Tuple[Path, bytes]]) -> None:
        """
        Write every (final_path, content) pair, all or nothing.

        Raises FileStorageError after removing any temporary or final file
        this call created.
        """
        staged = [(path.with_name(f"{TEMP_PREFIX}{path.name}"), path, data) for path, data in files]
        committed = []
        try:
            for temp_path, _, data in staged:
                async with aiofiles.open(temp_path, "wb") as f:
                    await f.write(data)
            for temp_path, final_path, _ in staged:
                os.replace(temp_path, final_path)
                committed.append(final_path)
        except OSError as e:
            logger.error("Failed to store upload in %s: %s", self.upload_dir, str(e))
            for temp_path, _, _ in staged:
                await self.cleanup_file(temp_path)
            for final_path in committed:
                await self.cleanup_file(final_path)
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"upload_dir": str(self.upload_dir), "os_error": str(e)},
            )

    async def store(self, content: bytes, content_type: Optional[str]) -> StoredImage:
        """
        Complete validation and storage pipeline for one uploaded image.

        Validation order (cheapest first):
            1. Declared MIME type
            2. Size
            3. Decode + thumbnail (thread pool)
            4. Atomic write of original and thumbnail
        """
        self.validate_content_type(content_type)
        self.validate_size(len(content))

        extension, thumbnail_bytes = await run_in_threadpool(self.render_thumbnail, content)

        filename = f"{uuid.uuid4()}{extension}"
        thumbnail_name = f"{THUMBNAIL_PREFIX}{filename}"
        image_path = self.upload_dir / filename
        thumbnail_path = self.upload_dir / thumbnail_name

        await self._write_atomically(
            [(image_path, content), (thumbnail_path, thumbnail_bytes)]
        )

        logger.info(
            "Image stored: %s (%d bytes), thumbnail %s (%d bytes)",
            filename,
            len(content),
            thumbnail_name,
            len(thumbnail_bytes),
        )
        return StoredImage(
            image_url=self.url_for(filename),
            thumbnail_url=self.url_for(thumbnail_name),
            image_path=image_path,
            thumbnail_path=thumbnail_path,
        )

    # ── Lookup & Cleanup ──────────────────────────────────────────────────

    def resolve(self, filename: str) -> Path:
        """
        Map a served filename to its path inside the upload directory.

        Raises: ValidationError for anything that would escape the directory
                or that names a temporary file.
        """
        path = (self.upload_dir / filename).resolve()
        if path.parent != self.upload_dir or path.name.startswith(TEMP_PREFIX):
            raise ValidationError(message="Invalid file path", field="file")
        return path

    def path_for_url(self, url: Optional[str]) -> Optional[Path]:
        """Path of a file previously returned as /uploads/<name>, or None for foreign URLs."""
        if not url or not url.startswith(f"{URL_PREFIX}/"):
            return None
        try:
            return self.resolve(url[len(URL_PREFIX) + 1:])
        except ValidationError:
            return None

    async def cleanup_file(self, file_path: Path) -> None:
        """
        Remove a file from storage, best effort.

        Used after failed requests and, as a background task, for images
        replaced or orphaned by wine updates and deletions. A failure here
        is logged and never reaches the client.
        """
        try:
            if file_path.exists():
                os.remove(file_path)
                logger.info("Cleaned up file: %s", file_path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", file_path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def cleanup_urls(self, *urls: Optional[str]) -> None:
        for url in urls:
            path = self.path_for_url(url)
            if path is not None:
                await self.cleanup_file(path)


# ── Singleton Instance ────────────────────────────────────────────────────
image_service = ImageService()
