from __future__ import annotations

import base64
import binascii
import re

from ..errors import PayloadDecodeError

"""Audio payload normalization and decoding.

Cells without a media type are assumed to be MP3: the fixed prefix
``data:audio/mp3;base64,`` must stay byte-identical because existing archive
consumers rely on it.
"""

__all__ = [
    "DEFAULT_AUDIO_PREFIX",
    "BASE64_MARKER",
    "is_audio_payload",
    "normalize_payload",
    "decode_data_uri",
]

DEFAULT_AUDIO_PREFIX = "data:audio/mp3;base64,"
BASE64_MARKER = "base64"

_WHITESPACE_RE = re.compile(r"[\t\n\f\r ]+")


def is_audio_payload(value: object) -> bool:
    """True for a string cell that carries a recording (contains "base64")."""
    return isinstance(value, str) and BASE64_MARKER in value


def normalize_payload(value: str) -> str:
    """Return a self-describing data URI for a raw audio cell.

    >>> normalize_payload("UklGRg==")
    'data:audio/mp3;base64,UklGRg=='
    >>> normalize_payload("data:audio/wav;base64,UklGRg==")
    'data:audio/wav;base64,UklGRg=='
    """
    if value.startswith("data:"):
        return value
    return DEFAULT_AUDIO_PREFIX + value


def decode_data_uri(uri: str) -> bytes:
    """Decode the base64 payload after the first comma of a data URI.

    ASCII whitespace inside the payload is ignored and missing ``=`` padding
    is tolerated; any other non-alphabet character is an error.

    Raises:
        PayloadDecodeError: no comma separator, or the payload is not base64
    """
    _, sep, payload = uri.partition(",")
    if not sep:
        raise PayloadDecodeError("data URI has no ',' separator before the payload")
    payload = _WHITESPACE_RE.sub("", payload)
    remainder = len(payload) % 4
    if remainder == 1:
        raise PayloadDecodeError(f"invalid base64 payload length ({len(payload)})")
    if remainder:
        payload += "=" * (4 - remainder)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PayloadDecodeError(f"invalid base64 payload: {e}") from e
