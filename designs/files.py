"""
designs/files.py -- Logo and media attachments carried as base64 data URLs.

The submission form reads files in the browser and posts them inline as
`data:<mime>;base64,<payload>` strings. The multipart upload route produces
the same representation via to_data_url(), so the store only ever holds one
format.

Limits are on the decoded size. The caller passes the configured maximum so
this module stays free of settings lookups.
"""

import base64
import binascii
import re
from typing import Optional

LOGO = "logo"
MEDIA = "media"
KINDS = (LOGO, MEDIA)

_IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/jpg"})
_MEDIA_TYPES = _IMAGE_TYPES | frozenset(
    {
        "image/gif",
        "image/webp",
        "video/mp4",
        "video/quicktime",
        "video/x-msvideo",
        "video/webm",
    }
)

ALLOWED_TYPES: dict[str, frozenset] = {LOGO: _IMAGE_TYPES, MEDIA: _MEDIA_TYPES}

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?P<params>(;[\w.+-]+=[\w.+-]+)*);base64,(?P<data>.*)$", re.S)


class AttachmentError(ValueError):
    """Raised when an attachment is malformed, of a disallowed type, or too large."""


def parse_data_url(data_url: str) -> tuple[str, bytes]:
    """Split a base64 data URL into (mime_type, raw bytes).

    Raises AttachmentError if the string is not a base64 data URL or the
    payload does not decode.
    """
    match = _DATA_URL_RE.match(data_url.strip())
    if match is None:
        raise AttachmentError("Attachment must be a base64 data URL.")
    try:
        payload = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AttachmentError("Attachment payload is not valid base64.") from exc
    return match.group("mime").lower(), payload


def to_data_url(mime_type: str, payload: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(payload).decode('ascii')}"


def validate_attachment(kind: str, mime_type: str, size: int, max_bytes: int) -> None:
    """Check an attachment's content type and decoded size for the given kind."""
    allowed = ALLOWED_TYPES.get(kind)
    if allowed is None:
        raise AttachmentError(f"Unknown attachment kind: {kind!r}")
    if mime_type.lower() not in allowed:
        if kind == LOGO:
            raise AttachmentError("Only PNG, JPEG, and JPG formats are allowed for the logo.")
        raise AttachmentError("Only image and video formats are allowed for media.")
    if size > max_bytes:
        raise AttachmentError(f"{kind.capitalize()} file must not exceed {max_bytes // (1024 * 1024)} MB.")


def check_data_url(kind: str, data_url: Optional[str], max_bytes: int) -> Optional[tuple[str, bytes]]:
    """Parse and validate an inline attachment. None passes through unchanged."""
    if data_url is None:
        return None
    mime_type, payload = parse_data_url(data_url)
    validate_attachment(kind, mime_type, len(payload), max_bytes)
    return mime_type, payload
