"""Encode captured media files as base64 data URLs."""

import base64
import binascii
import logging
import mimetypes
import re
from pathlib import Path

from contacts2sheet.exceptions import CaptureError

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME = "image/jpeg"
DEFAULT_AUDIO_MIME = "audio/webm"

_DATA_URL = re.compile(r"^data:([a-zA-Z0-9]+/[a-zA-Z0-9\-.+]+);base64,")

# Browser recordings are webm containers, which mimetypes reports as video
_AUDIO_ALIASES = {"video/webm": "audio/webm"}


def encode_data_url(data: bytes, mime_type: str) -> str:
    """Build a ``data:<mime>;base64,<payload>`` string."""
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def split_data_url(value: str, default_mime: str) -> tuple[str, bytes]:
    """
    Split a data URL into (mime type, raw bytes).

    A bare base64 payload is accepted too, in which case ``default_mime``
    is used. Raises CaptureError if the payload is not valid base64.
    """
    match = _DATA_URL.match(value)
    mime_type = match.group(1) if match else default_mime
    payload = value.split(",", 1)[1] if "," in value else value
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CaptureError("data URL", f"invalid base64 payload ({e})") from e


def _read_media(path: str | Path, kind: str, default_mime: str) -> str:
    path = Path(path)
    if not path.is_file():
        raise CaptureError(str(path), "file not found")

    mime_type, _ = mimetypes.guess_type(path.name)
    if kind == "audio":
        mime_type = _AUDIO_ALIASES.get(mime_type, mime_type)
    if mime_type is None:
        mime_type = default_mime
    elif not mime_type.startswith(f"{kind}/"):
        raise CaptureError(str(path), f"expected {kind} file, got {mime_type}")

    try:
        data = path.read_bytes()
    except OSError as e:
        raise CaptureError(str(path), str(e)) from e
    if not data:
        raise CaptureError(str(path), "file is empty")

    logger.info(f"Encoded {kind} {path.name} ({len(data)} bytes, {mime_type})")
    return encode_data_url(data, mime_type)


def image_to_data_url(path: str | Path) -> str:
    """Read a photo of a card or profile as a data URL."""
    return _read_media(path, "image", DEFAULT_IMAGE_MIME)


def audio_to_data_url(path: str | Path) -> str:
    """Read a recorded voice note as a data URL."""
    return _read_media(path, "audio", DEFAULT_AUDIO_MIME)
