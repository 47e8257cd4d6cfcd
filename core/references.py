from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from pathlib import Path

from core.errors import InvalidDataUriError, UploadError

DEFAULT_MIME = "image/png"
MIME_BY_EXTENSION = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "bmp": "image/bmp",
}


@dataclass(frozen=True)
class ReferenceImage:
    mime: str
    data: bytes

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime};base64,{encoded}"


def is_data_uri(reference: str) -> bool:
    return reference.startswith("data:")


def mime_from_path(path: str | Path) -> str:
    extension = Path(path).suffix.lstrip(".").lower()
    return MIME_BY_EXTENSION.get(extension, DEFAULT_MIME)


def decode_data_uri(reference: str) -> ReferenceImage:
    header, sep, payload = reference.partition(",")
    if not sep:
        raise InvalidDataUriError("data URI has no payload separator")

    mime = header[len("data:") :].replace(";base64", "").strip() or DEFAULT_MIME
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidDataUriError(f"invalid base64 payload: {exc}") from exc
    return ReferenceImage(mime=mime, data=data)


def read_reference_file(path: str | Path) -> ReferenceImage:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise UploadError(f"cannot read {path}: {exc}") from exc
    return ReferenceImage(mime=mime_from_path(path), data=data)


def load_reference(reference: str) -> ReferenceImage:
    """Turn a data URI or a filesystem path into MIME type plus raw bytes."""
    source = (reference or "").strip()
    if not source:
        raise UploadError("empty reference")
    if is_data_uri(source):
        return decode_data_uri(source)
    return read_reference_file(source)
