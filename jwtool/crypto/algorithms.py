"""Static registry of supported signature algorithms.

Every algorithm-specific fact lives in one row here. Signing, verification
and key generation dispatch on the row's family, never on the algorithm name.
"""

from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from jwtool.crypto.errors import UnsupportedAlgorithmError

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537


class Family(StrEnum):
    """Signature primitive shared by several algorithm ids."""

    HMAC = "hmac"
    RSASSA_PKCS1 = "rsassa-pkcs1-v1_5"
    RSA_PSS = "rsa-pss"
    ECDSA = "ecdsa"
    EDDSA = "eddsa"


class KeyKind(StrEnum):
    """Shape of key material an algorithm requires."""

    SECRET = "secret"
    KEYPAIR = "keypair"


class AlgorithmSpec(BaseModel):
    """One registry row."""

    model_config = ConfigDict(frozen=True)

    name: str
    family: Family
    hash_name: str | None
    key_kind: KeyKind
    curve: str | None = None
    rsa_key_size: int | None = None
    rsa_public_exponent: int | None = None

    @property
    def is_symmetric(self) -> bool:
        return self.key_kind is KeyKind.SECRET


def _hmac(bits: int) -> AlgorithmSpec:
    return AlgorithmSpec(
        name=f"HS{bits}",
        family=Family.HMAC,
        hash_name=f"SHA{bits}",
        key_kind=KeyKind.SECRET,
    )


def _rsa(prefix: str, family: Family, bits: int) -> AlgorithmSpec:
    return AlgorithmSpec(
        name=f"{prefix}{bits}",
        family=family,
        hash_name=f"SHA{bits}",
        key_kind=KeyKind.KEYPAIR,
        rsa_key_size=RSA_KEY_SIZE,
        rsa_public_exponent=RSA_PUBLIC_EXPONENT,
    )


def _ecdsa(bits: int, curve: str) -> AlgorithmSpec:
    return AlgorithmSpec(
        name=f"ES{bits}",
        family=Family.ECDSA,
        hash_name=f"SHA{bits}",
        key_kind=KeyKind.KEYPAIR,
        curve=curve,
    )


_ROWS = (
    _hmac(256),
    _hmac(384),
    _hmac(512),
    _rsa("RS", Family.RSASSA_PKCS1, 256),
    _rsa("RS", Family.RSASSA_PKCS1, 384),
    _rsa("RS", Family.RSASSA_PKCS1, 512),
    _rsa("PS", Family.RSA_PSS, 256),
    _rsa("PS", Family.RSA_PSS, 384),
    _rsa("PS", Family.RSA_PSS, 512),
    _ecdsa(256, "P-256"),
    _ecdsa(384, "P-384"),
    _ecdsa(512, "P-521"),
    AlgorithmSpec(
        name="EdDSA",
        family=Family.EDDSA,
        hash_name=None,
        key_kind=KeyKind.KEYPAIR,
        curve="Ed25519",
    ),
)

REGISTRY = MappingProxyType({row.name: row for row in _ROWS})


def get_algorithm(name: str | None) -> AlgorithmSpec:
    """Resolve an algorithm id, rejecting anything outside the table."""
    if not name:
        raise UnsupportedAlgorithmError("No signing algorithm specified")
    spec = REGISTRY.get(name) if isinstance(name, str) else None
    if spec is None:
        raise UnsupportedAlgorithmError(f"Unsupported algorithm: {name}")
    return spec


def supported_algorithms() -> list[str]:
    """Algorithm ids in registry order."""
    return list(REGISTRY)
