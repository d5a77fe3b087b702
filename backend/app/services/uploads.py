"""Local storage for uploaded product images.

Files are written under ``settings.upload_dir`` and served by the static
``/uploads`` mount.
"""

import asyncio
import logging
import uuid
from functools import partial
from pathlib import Path

from fastapi import UploadFile

from app.core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

UPLOADS_URL_PREFIX = "/uploads"
CHUNK_SIZE = 64 * 1024


class UploadError(Exception):
    """Rejected upload."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def get_upload_root() -> Path:
    return Path(settings.upload_dir).resolve()


def ensure_upload_dirs() -> Path:
    root = get_upload_root()
    (root / "products").mkdir(parents=True, exist_ok=True)
    return root


def _extension_for(upload: UploadFile) -> str:
    content_type = (upload.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise UploadError(f"Unsupported image type: {content_type or 'unknown'}")
    return ALLOWED_IMAGE_TYPES[content_type]


async def _read_limited(upload: UploadFile, limit: int) -> bytes:
    """Read at most ``limit + 1`` bytes so oversized files are caught early."""
    buffer = bytearray()
    while len(buffer) <= limit:
        chunk = await upload.read(min(CHUNK_SIZE, limit + 1 - len(buffer)))
        if not chunk:
            break
        buffer.extend(chunk)
    return bytes(buffer)


def _run_sync(func, *args):
    """Run blocking file I/O off the event loop."""
    loop = asyncio.get_running_loop()
    return loop.run_in_executor(None, partial(func, *args))


async def save_product_image(
    upload: UploadFile,
    product_id: uuid.UUID,
    root: Path | None = None,
) -> str:
    """Store an uploaded product image and return its public URL.

    Raises:
        UploadError: Unsupported type, empty file, or file too large.
    """
    extension = _extension_for(upload)
    data = await _read_limited(upload, settings.max_upload_size_bytes)

    if not data:
        raise UploadError("Uploaded file is empty")
    if len(data) > settings.max_upload_size_bytes:
        raise UploadError(
            f"Image exceeds the {settings.max_upload_size_mb}MB limit",
            status_code=413,
        )

    root = root or await _run_sync(ensure_upload_dirs)
    filename = f"{product_id}-{uuid.uuid4().hex}{extension}"
    target = root / "products" / filename
    await _run_sync(_write_file, target, data)

    logger.info(f"Stored product image {filename} ({len(data)} bytes)")
    return f"{UPLOADS_URL_PREFIX}/products/{filename}"


def _write_file(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
