"""Upload reading and avatar image normalization."""

from __future__ import annotations

from io import BytesIO

from fastapi import UploadFile
from PIL import Image, ImageOps, UnidentifiedImageError

JPEG_CONTENT_TYPE = "image/jpeg"
MAX_IMAGE_DIMENSION = 512
JPEG_QUALITY = 85
READ_CHUNK_SIZE = 64 * 1024


class UploadTooLargeError(ValueError):
    """Raised when an uploaded file exceeds the configured size limit."""


async def read_upload_file(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload fully, refusing anything larger than ``max_bytes``."""
    buffer = bytearray()
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise UploadTooLargeError(f"File exceeds maximum size of {max_bytes} bytes")
    if not buffer:
        raise ValueError("Please upload an image")
    return bytes(buffer)


def process_image_bytes(data: bytes) -> tuple[bytes, str]:
    """Return the image re-encoded as an EXIF-stripped, bounded JPEG."""
    try:
        with Image.open(BytesIO(data)) as candidate:
            candidate.verify()
        with Image.open(BytesIO(data)) as image:
            image = ImageOps.exif_transpose(image)
            image = image.convert("RGB")
            image.thumbnail((MAX_IMAGE_DIMENSION, MAX_IMAGE_DIMENSION))
            output = BytesIO()
            image.save(output, format="JPEG", quality=JPEG_QUALITY, optimize=True)
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise ValueError("Uploaded file is not a valid image") from exc
    return output.getvalue(), JPEG_CONTENT_TYPE


__all__ = [
    "JPEG_CONTENT_TYPE",
    "MAX_IMAGE_DIMENSION",
    "UploadTooLargeError",
    "read_upload_file",
    "process_image_bytes",
]
