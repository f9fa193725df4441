"""Temporal claim defaults and expiry checks, independent of signatures."""

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any, overload

from jwtool.crypto.errors import FormatError
from jwtool.crypto.types import TokenExpiry, TokenPayload

DEFAULT_TTL_SECONDS = 3600


def _now() -> datetime:
    return datetime.now(UTC)


def _claims(payload: TokenPayload | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(payload, TokenPayload):
        return payload.to_json_dict()
    return payload


def _numeric_claim(claims: Mapping[str, Any], name: str) -> int | float | None:
    value = claims.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise FormatError(f"{name} claim must be a NumericDate")
    return value


@overload
def apply_defaults(
    payload: TokenPayload, *, now: datetime | None = ..., ttl: int = ...
) -> TokenPayload: ...


@overload
def apply_defaults(
    payload: Mapping[str, Any], *, now: datetime | None = ..., ttl: int = ...
) -> dict[str, Any]: ...


def apply_defaults(
    payload: TokenPayload | Mapping[str, Any],
    *,
    now: datetime | None = None,
    ttl: int = DEFAULT_TTL_SECONDS,
) -> TokenPayload | dict[str, Any]:
    """Fill in missing iat, exp (iat + ttl) and nbf (iat).

    Supplied values are never overwritten and the input is not mutated.
    """
    claims = _claims(payload)
    issued_at = _numeric_claim(claims, "iat")
    if issued_at is None:
        issued_at = int((now or _now()).timestamp())

    defaults: dict[str, Any] = {"iat": issued_at}
    if claims.get("exp") is None:
        defaults["exp"] = issued_at + ttl
    if claims.get("nbf") is None:
        defaults["nbf"] = issued_at

    if isinstance(payload, TokenPayload):
        return payload.model_copy(update=defaults)
    return {**claims, **defaults}


def is_expired(
    payload: TokenPayload | Mapping[str, Any], now: datetime | None = None
) -> bool:
    """True once now reaches exp; a payload without exp never expires."""
    exp = _numeric_claim(_claims(payload), "exp")
    if exp is None:
        return False
    now_ms = int((now or _now()).timestamp() * 1000)
    return now_ms >= exp * 1000


def get_token_expiry(
    payload: TokenPayload | Mapping[str, Any], now: datetime | None = None
) -> TokenExpiry:
    """Expiry instant and remaining lifetime for a claim set."""
    exp = _numeric_claim(_claims(payload), "exp")
    if exp is None:
        return TokenExpiry(is_expired=False)

    current = now or _now()
    try:
        expires_at = datetime.fromtimestamp(exp, UTC)
    except (OverflowError, ValueError, OSError):
        # exp lies outside the datetime range.
        return TokenExpiry(is_expired=is_expired(payload, current))
    remaining = expires_at - current
    if remaining <= timedelta(0):
        return TokenExpiry(is_expired=True, expires_at=expires_at)
    return TokenExpiry(
        is_expired=False, expires_at=expires_at, time_until_expiry=remaining
    )
