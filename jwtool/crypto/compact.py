"""Compact serialization: three base64url segments joined by dots."""

import json
import re
from collections.abc import Mapping
from typing import Any

from jwtool.crypto.base64url import b64url_decode, b64url_encode
from jwtool.crypto.errors import FormatError
from jwtool.crypto.types import DecodedToken

_TOKEN_PATTERN = re.compile(r"eyJ[A-Za-z0-9_-]*\.eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*")


def _encode_segment(obj: Mapping[str, Any], label: str) -> str:
    try:
        raw = json.dumps(dict(obj), separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise FormatError(f"{label} is not JSON serializable: {exc}") from exc
    return b64url_encode(raw.encode("utf-8"))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _decode_segment(segment: str, label: str) -> dict[str, Any]:
    try:
        parsed = json.loads(b64url_decode(segment), parse_constant=_reject_constant)
    except FormatError as exc:
        raise FormatError(f"Invalid JWT {label}: {exc}") from exc
    except ValueError as exc:
        raise FormatError(f"Invalid JWT {label}: not valid JSON") from exc
    if not isinstance(parsed, dict):
        raise FormatError(f"Invalid JWT {label}: expected a JSON object")
    return parsed


def signing_input(header: Mapping[str, Any], payload: Mapping[str, Any]) -> str:
    """Return the first two segments, the exact text that gets signed."""
    return (
        f"{_encode_segment(header, 'header')}.{_encode_segment(payload, 'payload')}"
    )


def attach_signature(signed: str, signature: bytes) -> str:
    """Append the signature segment to a signing input."""
    return f"{signed}.{b64url_encode(signature)}"


def encode(
    header: Mapping[str, Any], payload: Mapping[str, Any], signature: bytes
) -> str:
    """Serialize header, payload and raw signature bytes to a compact token."""
    return attach_signature(signing_input(header, payload), signature)


def split(token: str) -> tuple[str, str, str]:
    """Split a token into its three segments or raise FormatError."""
    if not isinstance(token, str):
        raise FormatError("Invalid JWT format")
    parts = token.split(".")
    if len(parts) != 3:
        raise FormatError("Invalid JWT format")
    return parts[0], parts[1], parts[2]


def decode(token: str) -> DecodedToken:
    """Decode header and payload without checking the signature."""
    header_segment, payload_segment, signature = split(token)
    return DecodedToken(
        header=_decode_segment(header_segment, "header"),
        payload=_decode_segment(payload_segment, "payload"),
        signature=signature,
    )


def is_token(text: str) -> bool:
    """Whether text has three segments whose first two are base64url."""
    try:
        header_segment, payload_segment, _ = split(text.strip())
        b64url_decode(header_segment)
        b64url_decode(payload_segment)
    except FormatError:
        return False
    return True


def extract_tokens(text: str) -> list[str]:
    """Find every compact token embedded in free text."""
    return _TOKEN_PATTERN.findall(text)
