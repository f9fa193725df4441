"""Token endpoints: sign, decode, verify, extract."""

from collections.abc import Mapping
from typing import Any

from fastapi import APIRouter

from jwtool.api.deps import Settings
from jwtool.api.schemas import (
    DecodeResponse,
    ExpiryResponse,
    ExtractRequest,
    ExtractResponse,
    SignRequest,
    TokenRequest,
    TokenResponse,
    VerifyRequest,
    VerifyResponse,
)
from jwtool.crypto.claims import apply_defaults, get_token_expiry
from jwtool.crypto.compact import decode, extract_tokens
from jwtool.crypto.errors import FormatError, KeyMismatchError
from jwtool.crypto.keys import import_key_from_jwk
from jwtool.crypto.signer import SigningKey, sign, verify

router = APIRouter(prefix="/tokens", tags=["tokens"])


def _expiry(payload: Mapping[str, Any] | None) -> ExpiryResponse | None:
    """Expiry summary, or None when exp is missing or malformed."""
    if payload is None:
        return None
    try:
        info = get_token_expiry(payload)
    except FormatError:
        return None
    remaining = info.time_until_expiry
    return ExpiryResponse(
        is_expired=info.is_expired,
        expires_at=info.expires_at,
        seconds_until_expiry=int(remaining.total_seconds()) if remaining else None,
    )


def _signing_key(body: SignRequest) -> SigningKey:
    if body.secret is not None:
        return body.secret
    if body.private_key_pem:
        return body.private_key_pem
    if body.private_key_jwk:
        return import_key_from_jwk(body.private_key_jwk, body.algorithm)
    raise KeyMismatchError("No signing key supplied")


def _verification_key(body: VerifyRequest) -> SigningKey:
    if body.secret is not None:
        return body.secret
    if body.public_key_pem:
        return body.public_key_pem
    if body.public_key_jwk:
        algorithm = (
            body.algorithm
            or body.public_key_jwk.get("alg")
            or decode(body.token).header.get("alg")
        )
        return import_key_from_jwk(body.public_key_jwk, algorithm)
    raise KeyMismatchError("No verification key supplied")


@router.post("/sign")
async def sign_token(body: SignRequest, settings: Settings) -> TokenResponse:
    """POST /tokens/sign -- sign header and payload with the given key."""
    payload: dict[str, Any] = body.payload
    if body.apply_defaults:
        payload = apply_defaults(payload, ttl=settings.default_token_ttl)
    token = sign(body.header, payload, _signing_key(body), body.algorithm)
    return TokenResponse(token=token)


@router.post("/decode")
async def decode_token(body: TokenRequest) -> DecodeResponse:
    """POST /tokens/decode -- decode without verifying."""
    decoded = decode(body.token)
    return DecodeResponse(
        header=decoded.header,
        payload=decoded.payload,
        signature=decoded.signature,
        expiry=_expiry(decoded.payload),
    )


@router.post("/verify")
async def verify_token(body: VerifyRequest) -> VerifyResponse:
    """POST /tokens/verify -- check the signature and report expiry."""
    result = verify(body.token, _verification_key(body), body.algorithm)
    expiry = _expiry(result.payload)
    return VerifyResponse(
        is_valid=result.is_valid,
        header=result.header,
        payload=result.payload,
        signature=result.signature,
        error=result.error,
        is_expired=expiry.is_expired if expiry else False,
    )


@router.post("/extract")
async def extract(body: ExtractRequest) -> ExtractResponse:
    """POST /tokens/extract -- find compact tokens in free text."""
    return ExtractResponse(tokens=extract_tokens(body.text))
