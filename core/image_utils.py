from __future__ import annotations

import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from core.errors import PersistError

logger = logging.getLogger(__name__)

INLINE_MIME = "image/jpeg"


def inline_data_uri(payload: str) -> str:
    return f"data:{INLINE_MIME};base64,{payload}"


def decode_payload(payload: str) -> bytes:
    text = payload.strip()
    if text.startswith("data:") and "," in text:
        text = text.split(",", 1)[1]
    try:
        return base64.b64decode(text)
    except (binascii.Error, ValueError) as exc:
        raise PersistError(f"payload is not valid base64: {exc}") from exc


def reencode_png(image_bytes: bytes) -> bytes | None:
    """Return PNG bytes, or None when the input is not a decodable raster image."""
    try:
        with Image.open(BytesIO(image_bytes)) as image:
            image.load()
            buffer = BytesIO()
            image.save(buffer, format="PNG")
            return buffer.getvalue()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        logger.debug("Payload is not a decodable image, keeping raw bytes", exc_info=True)
        return None


def image_dimensions(image_bytes: bytes) -> tuple[int, int]:
    with Image.open(BytesIO(image_bytes)) as image:
        return image.width, image.height


def output_filename(prefix: str, timestamp: int, index: int) -> str:
    return f"{prefix}_{timestamp}_{index + 1}.png"


def save_image(image_bytes: bytes, path: Path) -> Path:
    """Write as PNG when decodable, verbatim otherwise."""
    png = reencode_png(image_bytes)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(png if png is not None else image_bytes)
    except OSError as exc:
        raise PersistError(f"cannot write {path}: {exc}") from exc
    return path


def save_payload(payload: str, path: Path) -> Path:
    return save_image(decode_payload(payload), path)
