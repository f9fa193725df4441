"""Pydantic request and response schemas for the HTTP API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _to_camel(name: str) -> str:
    """Convert snake_case to camelCase for JSON serialization."""
    parts = name.split("_")
    return parts[0] + "".join(p.capitalize() for p in parts[1:])


class CamelModel(BaseModel):
    """Base for API bodies: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class SignRequest(CamelModel):
    """Request body for POST /tokens/sign."""

    header: dict[str, Any] = Field(default_factory=dict)
    payload: dict[str, Any] = Field(default_factory=dict)
    algorithm: str = "HS256"
    secret: str | None = None
    private_key_pem: str | None = None
    private_key_jwk: dict[str, Any] | None = None
    apply_defaults: bool = False


class TokenResponse(CamelModel):
    """A freshly signed compact token."""

    token: str


class TokenRequest(CamelModel):
    """Request body carrying a single compact token."""

    token: str


class ExpiryResponse(CamelModel):
    """Expiry details for a decoded claim set."""

    is_expired: bool
    expires_at: datetime | None = None
    seconds_until_expiry: int | None = None


class DecodeResponse(CamelModel):
    """Response for POST /tokens/decode."""

    header: dict[str, Any]
    payload: dict[str, Any]
    signature: str
    expiry: ExpiryResponse | None = None


class VerifyRequest(CamelModel):
    """Request body for POST /tokens/verify."""

    token: str
    algorithm: str | None = None
    secret: str | None = None
    public_key_pem: str | None = None
    public_key_jwk: dict[str, Any] | None = None


class VerifyResponse(CamelModel):
    """Response for POST /tokens/verify."""

    is_valid: bool
    header: dict[str, Any] | None = None
    payload: dict[str, Any] | None = None
    signature: str | None = None
    error: str | None = None
    is_expired: bool = False


class ExtractRequest(CamelModel):
    """Request body for POST /tokens/extract."""

    text: str


class ExtractResponse(CamelModel):
    """Tokens found in free text."""

    tokens: list[str] = Field(default_factory=list)


class AlgorithmEntry(CamelModel):
    """One registry row as exposed by GET /keys/algorithms."""

    name: str
    family: str
    hash_name: str | None = None
    key_kind: str
    curve: str | None = None


class GenerateKeyRequest(CamelModel):
    """Request body for POST /keys/generate."""

    algorithm: str
    key_size: int | None = None
    named_curve: str | None = None


class KeyPairResponse(CamelModel):
    """Both halves of a generated key pair in PEM and JWK form."""

    algorithm: str
    parameters: int | str
    public_key_pem: str
    private_key_pem: str
    public_key_jwk: dict[str, Any]
    private_key_jwk: dict[str, Any]


class SecretRequest(CamelModel):
    """Request body for POST /keys/secret."""

    length: int | None = None


class SecretResponse(CamelModel):
    """A random HMAC secret in hex."""

    secret: str
    length: int


class ConvertKeyRequest(CamelModel):
    """Request body for POST /keys/convert; give pem or jwk."""

    algorithm: str | None = None
    pem: str | None = None
    jwk: dict[str, Any] | None = None
    kid: str | None = None


class ConvertKeyResponse(CamelModel):
    """A key in both textual forms."""

    kind: str
    algorithm: str | None = None
    pem: str | None = None
    jwk: dict[str, Any]


class StoredTokenPayload(CamelModel):
    """Request body for POST /vault/tokens."""

    id: str | None = None
    name: str
    token: str
    algorithm: str | None = None
    tags: list[str] = Field(default_factory=list)
    expires_at: datetime | None = None


class StoredTokenResponse(CamelModel):
    """A saved token."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=_to_camel,
        populate_by_name=True,
    )

    id: str
    name: str
    token: str
    algorithm: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    expires_at: datetime | None = None


class StoredTokenList(CamelModel):
    """Wraps saved tokens: {tokens: [...]}."""

    tokens: list[StoredTokenResponse] = Field(default_factory=list)


class ImportTokensPayload(CamelModel):
    """Request body for POST /vault/tokens/import: a JSON export as text."""

    data: str


class KeyInfoPayload(CamelModel):
    """Request body for POST /vault/keys."""

    id: str | None = None
    name: str
    algorithm: str
    key_data: str | None = None


class KeyInfoResponse(CamelModel):
    """Saved key metadata; key_data is filled only on single-key reads."""

    id: str
    name: str
    algorithm: str
    key_type: str
    created_at: datetime
    has_key_data: bool = False
    key_data: str | None = None


class KeyInfoList(CamelModel):
    """Wraps key metadata: {keys: [...]}."""

    keys: list[KeyInfoResponse] = Field(default_factory=list)
