"""URL-safe, unpadded base64 used for every token segment and JWK member."""

import base64
import binascii
import re

from jwtool.crypto.errors import FormatError

_URLSAFE = re.compile(r"[A-Za-z0-9_-]*")


def b64url_encode(data: bytes) -> str:
    """Encode bytes as base64url without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str | bytes) -> bytes:
    """Decode padded or unpadded base64url text.

    Raises FormatError for characters outside the URL-safe alphabet or for
    a length no encoder can produce.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("ascii")
        except UnicodeDecodeError:
            raise FormatError("Invalid base64url: non-ASCII input") from None

    stripped = text.rstrip("=")
    if not _URLSAFE.fullmatch(stripped):
        raise FormatError("Invalid base64url: unexpected character")
    if len(stripped) % 4 == 1:
        raise FormatError("Invalid base64url: truncated input")

    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except binascii.Error as exc:
        raise FormatError(f"Invalid base64url: {exc}") from exc

