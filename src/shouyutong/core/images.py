"""Image payload helpers.

Images travel and are stored as ``data:`` URLs so an entry carries its
illustration inline, exactly as the library snapshot stores it.  Uploaded
images are checked with Pillow and shrunk when they exceed ``max_side``,
which keeps the library document small enough for its storage quota.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging

from PIL import Image, UnidentifiedImageError

from shouyutong.core.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIDE = 1024

_MIME_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    """Wrap raw image bytes in a base64 ``data:`` URL."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def b64_to_data_url(b64_data: str, mime_type: str = "image/png") -> str:
    """Wrap an already base64-encoded image in a ``data:`` URL."""
    return f"data:{mime_type};base64,{b64_data}"


def decode_data_url(data_url: str) -> tuple[str, bytes]:
    """Split a base64 ``data:`` URL into its mime type and raw bytes.

    Raises:
        ValidationError: If the text is not a base64 data URL
    """
    if not data_url.startswith("data:") or ";base64," not in data_url:
        raise ValidationError("Image must be a base64 data URL")

    header, _, payload = data_url.partition(";base64,")
    mime_type = header[len("data:") :]
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Image data is not valid base64: {e}") from e


def encode_upload(data: bytes, max_side: int = DEFAULT_MAX_SIDE) -> str:
    """Turn uploaded image bytes into a data URL.

    The bytes must decode as an image in one of the supported formats.
    Images larger than ``max_side`` on either edge are downscaled
    (aspect ratio preserved) and re-encoded as PNG; smaller ones are kept
    byte-for-byte.

    Args:
        data: Raw uploaded file content
        max_side: Longest edge allowed before downscaling

    Returns:
        ``data:`` URL holding the image

    Raises:
        ValidationError: If the bytes are empty or not a supported image
    """
    if not data:
        raise ValidationError("Uploaded image is empty")

    try:
        with Image.open(io.BytesIO(data)) as image:
            image_format = image.format
            if image_format not in _MIME_TYPES:
                raise ValidationError(f"Unsupported image format: {image_format}")

            image.load()
            if max(image.size) <= max_side:
                return to_data_url(data, _MIME_TYPES[image_format])

            original_size = image.size
            resized = image if image.mode in ("RGB", "RGBA", "L", "LA", "P") else image.convert("RGBA")
            resized.thumbnail((max_side, max_side))
            buffer = io.BytesIO()
            resized.save(buffer, format="PNG")
            logger.info(f"Downscaled uploaded image from {original_size} to {resized.size}")
            return to_data_url(buffer.getvalue(), "image/png")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValidationError("Uploaded file is not a readable image") from e


def validate_data_url(data_url: str) -> str:
    """Check that a data URL holds a readable image and return it unchanged."""
    _, data = decode_data_url(data_url)
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValidationError("Image data is not a readable image") from e
    return data_url
