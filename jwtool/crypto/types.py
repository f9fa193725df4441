"""Type definitions for token headers, claim sets, key material, and results."""

from datetime import datetime, timedelta
from typing import Annotated, Any, Literal

from cryptography.hazmat.primitives.asymmetric.ec import (
    EllipticCurvePrivateKey,
    EllipticCurvePublicKey,
)
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from pydantic import BaseModel, ConfigDict, Field

AsymmetricKey = (
    RSAPrivateKey
    | RSAPublicKey
    | EllipticCurvePrivateKey
    | EllipticCurvePublicKey
    | Ed25519PrivateKey
    | Ed25519PublicKey
)

KeyKind = Literal["public", "private"]

NumericDate = Annotated[int, Field(ge=0, strict=True)]

OPTIONAL_HEADER_FIELDS = (
    "kid",
    "jku",
    "jwk",
    "x5u",
    "x5c",
    "x5t",
    "x5t#S256",
    "cty",
    "crit",
)

REGISTERED_CLAIMS = ("iss", "sub", "aud", "exp", "nbf", "iat", "jti")


class TokenHeader(BaseModel):
    """JOSE header; unknown members are kept as-is."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    alg: str
    typ: str = "JWT"
    kid: str | None = None
    jku: str | None = None
    jwk: dict[str, Any] | None = None
    x5u: str | None = None
    x5c: list[str] | None = None
    x5t: str | None = None
    x5t_s256: str | None = Field(default=None, alias="x5t#S256")
    cty: str | None = None
    crit: list[str] | None = None

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with wire member names, dropping unset registered fields."""
        data = self.model_dump(by_alias=True)
        for name in OPTIONAL_HEADER_FIELDS:
            if data.get(name) is None:
                data.pop(name, None)
        return data


class TokenPayload(BaseModel):
    """Claim set with registered claims and arbitrary custom claims."""

    model_config = ConfigDict(extra="allow")

    iss: str | None = None
    sub: str | None = None
    aud: str | list[str] | None = None
    exp: NumericDate | None = None
    nbf: NumericDate | None = None
    iat: NumericDate | None = None
    jti: str | None = None

    def to_json_dict(self) -> dict[str, Any]:
        """Dump claims, dropping registered claims that were never given."""
        data = self.model_dump()
        for name in REGISTERED_CLAIMS:
            if data.get(name) is None:
                data.pop(name, None)
        return data


class SecretKey(BaseModel):
    """Shared secret for the HMAC family."""

    model_config = ConfigDict(frozen=True)

    value: bytes = Field(repr=False, exclude=True)

    @classmethod
    def from_text(cls, text: str) -> "SecretKey":
        """Build a secret from its UTF-8 text form."""
        return cls(value=text.encode("utf-8"))


class KeyHandle(BaseModel):
    """Opaque asymmetric key bound to an algorithm and a usage."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: KeyKind
    algorithm: str
    usages: tuple[str, ...]
    key: AsymmetricKey = Field(repr=False, exclude=True)


class AsymmetricKeyPair(BaseModel):
    """Public and private handles generated or imported together."""

    model_config = ConfigDict(frozen=True)

    public_key: KeyHandle
    private_key: KeyHandle
    algorithm: str
    parameters: int | str


KeyMaterial = SecretKey | KeyHandle | AsymmetricKeyPair


class KeyGenerationOptions(BaseModel):
    """Overrides for key-pair generation."""

    key_size: int | None = None
    named_curve: str | None = None


class DecodedToken(BaseModel):
    """Untrusted view of a compact token."""

    header: dict[str, Any]
    payload: dict[str, Any]
    signature: str


class ValidationResult(BaseModel):
    """Outcome of signature verification."""

    is_valid: bool
    header: dict[str, Any] | None = None
    payload: dict[str, Any] | None = None
    signature: str | None = None
    error: str | None = None


class TokenExpiry(BaseModel):
    """Expiry details derived from the exp claim."""

    is_expired: bool
    expires_at: datetime | None = None
    time_until_expiry: timedelta | None = None
