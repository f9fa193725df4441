"""Token signing and verification dispatched through the algorithm registry."""

from collections.abc import Mapping
from typing import Any, Literal

import structlog
from jwt.exceptions import InvalidKeyError
from pydantic import ValidationError

from jwtool.crypto import compact
from jwtool.crypto.algorithms import AlgorithmSpec, get_algorithm
from jwtool.crypto.base64url import b64url_decode
from jwtool.crypto.errors import (
    FormatError,
    KeyMismatchError,
    TokenError,
    UnsupportedAlgorithmError,
)
from jwtool.crypto.keys import import_key_from_pem
from jwtool.crypto.primitives import check_asymmetric_key, get_primitive
from jwtool.crypto.types import (
    AsymmetricKeyPair,
    DecodedToken,
    KeyHandle,
    KeyMaterial,
    SecretKey,
    TokenHeader,
    TokenPayload,
    ValidationResult,
)

SigningKey = KeyMaterial | str | bytes

logger = structlog.get_logger(__name__)


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    location = ".".join(str(part) for part in err["loc"])
    return f"{location}: {err['msg']}" if location else err["msg"]


def _prepare_header(
    header: TokenHeader | Mapping[str, Any] | None, algorithm: str | None
) -> tuple[AlgorithmSpec, dict[str, Any]]:
    if isinstance(header, TokenHeader):
        raw = header.to_json_dict()
    else:
        raw = dict(header or {})
    if algorithm:
        raw["alg"] = algorithm
    spec = get_algorithm(raw.get("alg"))
    try:
        return spec, TokenHeader.model_validate(raw).to_json_dict()
    except ValidationError as exc:
        raise FormatError(f"Invalid JWT header: {_first_error(exc)}") from exc


def _prepare_payload(payload: TokenPayload | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(payload, TokenPayload):
        return payload.to_json_dict()
    try:
        return TokenPayload.model_validate(dict(payload)).to_json_dict()
    except ValidationError as exc:
        raise FormatError(f"Invalid JWT payload: {_first_error(exc)}") from exc


def _resolve_key(
    spec: AlgorithmSpec, key: SigningKey, purpose: Literal["sign", "verify"]
) -> Any:
    """Turn caller key material into what the family primitive expects."""
    if spec.is_symmetric:
        if isinstance(key, SecretKey):
            raw: str | bytes = key.value
        elif isinstance(key, str | bytes):
            raw = key
        else:
            raise KeyMismatchError(f"{spec.name} requires a shared secret")
        try:
            return get_primitive(spec).prepare_key(raw)
        except InvalidKeyError as exc:
            raise KeyMismatchError(str(exc)) from exc

    if isinstance(key, AsymmetricKeyPair):
        key = key.private_key if purpose == "sign" else key.public_key
    elif isinstance(key, str) and "-----BEGIN" in key:
        key = import_key_from_pem(key, spec.name)
    if not isinstance(key, KeyHandle):
        raise KeyMismatchError(f"{spec.name} requires an asymmetric key")
    if purpose not in key.usages:
        raise KeyMismatchError(f"A {key.kind} key cannot be used to {purpose}")
    check_asymmetric_key(spec, key.key, purpose)
    return key.key


def sign(
    header: TokenHeader | Mapping[str, Any] | None,
    payload: TokenPayload | Mapping[str, Any],
    key: SigningKey,
    algorithm: str | None = None,
) -> str:
    """Sign a claim set and return the compact token.

    algorithm, when given, replaces whatever alg the header carries.
    """
    spec, header_claims = _prepare_header(header, algorithm)
    claims = _prepare_payload(payload)
    signing_key = _resolve_key(spec, key, "sign")

    signed = compact.signing_input(header_claims, claims)
    signature = get_primitive(spec).sign(signed.encode("ascii"), signing_key)
    logger.debug("token_signed", alg=spec.name, kid=header_claims.get("kid"))
    return compact.attach_signature(signed, signature)


def _verification_algorithm(
    header: Mapping[str, Any], expected: str | None
) -> AlgorithmSpec:
    declared = header.get("alg")
    if expected is None:
        # Unpinned: the token picks its own algorithm.
        logger.debug("token_alg_not_pinned", alg=declared)
        return get_algorithm(declared)
    spec = get_algorithm(expected)
    if declared != spec.name:
        raise UnsupportedAlgorithmError(
            f"Algorithm mismatch: expected {spec.name}, token declares {declared}"
        )
    return spec


def _rejected(decoded: DecodedToken, reason: str) -> ValidationResult:
    logger.info(
        "token_verification_failed",
        alg=decoded.header.get("alg"),
        reason=reason,
    )
    return ValidationResult(
        is_valid=False,
        header=decoded.header,
        payload=decoded.payload,
        signature=decoded.signature,
        error=reason,
    )


def verify(
    token: str, key: SigningKey, algorithm: str | None = None
) -> ValidationResult:
    """Check a token's signature.

    Raises FormatError only when the token cannot be decoded at all. Every
    other failure comes back as an invalid result that still carries the
    decoded header and payload. exp and nbf are not looked at here.
    """
    decoded = compact.decode(token)
    header_segment, payload_segment, _ = compact.split(token)

    try:
        spec = _verification_algorithm(decoded.header, algorithm)
        verification_key = _resolve_key(spec, key, "verify")
        signature = b64url_decode(decoded.signature)
        signed = f"{header_segment}.{payload_segment}".encode("ascii")
        valid = get_primitive(spec).verify(signed, verification_key, signature)
    except TokenError as exc:
        return _rejected(decoded, str(exc))

    if not valid:
        return _rejected(decoded, "Signature verification failed")
    return ValidationResult(
        is_valid=True,
        header=decoded.header,
        payload=decoded.payload,
        signature=decoded.signature,
    )


class TokenSigner:
    """Signs and verifies with one key pinned to one algorithm."""

    def __init__(
        self,
        key: SigningKey,
        algorithm: str,
        kid: str | None = None,
    ) -> None:
        self._spec = get_algorithm(algorithm)
        self._key = key
        self._kid = kid

    @property
    def algorithm(self) -> str:
        return self._spec.name

    def sign(
        self,
        payload: TokenPayload | Mapping[str, Any],
        headers: Mapping[str, Any] | None = None,
    ) -> str:
        """Sign payload, adding the configured kid to the header."""
        header = dict(headers or {})
        if self._kid is not None:
            header.setdefault("kid", self._kid)
        return sign(header, payload, self._key, self._spec.name)

    def verify(self, token: str) -> ValidationResult:
        """Verify token against the pinned algorithm."""
        return verify(token, self._key, self._spec.name)
