"""Family-level sign/verify routines and the key classes each family accepts."""

from collections.abc import Callable
from typing import Literal, NamedTuple

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from jwt.algorithms import (
    Algorithm,
    ECAlgorithm,
    HMACAlgorithm,
    OKPAlgorithm,
    RSAAlgorithm,
    RSAPSSAlgorithm,
)

from jwtool.crypto.algorithms import AlgorithmSpec, Family
from jwtool.crypto.errors import KeyMismatchError
from jwtool.crypto.types import AsymmetricKey

Purpose = Literal["sign", "verify"]

CURVES: dict[str, type[ec.EllipticCurve]] = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
}


class FamilyBinding(NamedTuple):
    """Key classes a family signs and verifies with."""

    private_types: tuple[type, ...]
    public_types: tuple[type, ...]


_BINDINGS: dict[Family, FamilyBinding] = {
    Family.RSASSA_PKCS1: FamilyBinding((RSAPrivateKey,), (RSAPublicKey,)),
    Family.RSA_PSS: FamilyBinding((RSAPrivateKey,), (RSAPublicKey,)),
    Family.ECDSA: FamilyBinding(
        (ec.EllipticCurvePrivateKey,), (ec.EllipticCurvePublicKey,)
    ),
    Family.EDDSA: FamilyBinding((Ed25519PrivateKey,), (Ed25519PublicKey,)),
}

_FACTORIES: dict[Family, Callable[[AlgorithmSpec], Algorithm]] = {
    Family.HMAC: lambda spec: HMACAlgorithm(getattr(HMACAlgorithm, spec.hash_name)),
    Family.RSASSA_PKCS1: lambda spec: RSAAlgorithm(
        getattr(RSAAlgorithm, spec.hash_name)
    ),
    Family.RSA_PSS: lambda spec: RSAPSSAlgorithm(
        getattr(RSAAlgorithm, spec.hash_name)
    ),
    Family.ECDSA: lambda spec: ECAlgorithm(getattr(ECAlgorithm, spec.hash_name)),
    Family.EDDSA: lambda _spec: OKPAlgorithm(),
}


def get_primitive(spec: AlgorithmSpec) -> Algorithm:
    """Build the PyJWT algorithm object that signs and verifies for spec."""
    return _FACTORIES[spec.family](spec)


def key_fits_family(spec: AlgorithmSpec, key: object) -> bool:
    """Whether key is a private or public key of spec's family and curve."""
    binding = _BINDINGS.get(spec.family)
    if binding is None:
        return False
    if not isinstance(key, binding.private_types + binding.public_types):
        return False
    if spec.family is Family.ECDSA and spec.curve is not None:
        return key.curve.name == CURVES[spec.curve].name
    return True


def check_asymmetric_key(
    spec: AlgorithmSpec, key: AsymmetricKey, purpose: Purpose
) -> None:
    """Raise KeyMismatchError unless key can serve purpose under spec."""
    binding = _BINDINGS.get(spec.family)
    if binding is None:
        raise KeyMismatchError(f"{spec.name} requires a shared secret")
    allowed = binding.private_types if purpose == "sign" else binding.public_types
    if not isinstance(key, allowed):
        needed = "private" if purpose == "sign" else "public"
        raise KeyMismatchError(
            f"{spec.name} requires a {spec.family.value} {needed} key"
        )
    if not key_fits_family(spec, key):
        raise KeyMismatchError(f"{spec.name} requires a key on curve {spec.curve}")
