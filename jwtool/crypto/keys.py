"""Key generation, PEM and JWK conversion, and encryption of stored key text."""

import base64
import binascii
import json
import secrets
from collections.abc import Mapping
from typing import Any

import structlog
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from jwt.algorithms import HMACAlgorithm
from jwt.exceptions import InvalidKeyError

from jwtool.crypto.algorithms import AlgorithmSpec, Family, get_algorithm
from jwtool.crypto.errors import (
    KeyExportError,
    KeyGenerationError,
    KeyImportError,
    UnsupportedAlgorithmError,
)
from jwtool.crypto.primitives import CURVES, get_primitive, key_fits_family
from jwtool.crypto.types import (
    AsymmetricKey,
    AsymmetricKeyPair,
    KeyGenerationOptions,
    KeyHandle,
    KeyKind,
    SecretKey,
)

SECRET_LENGTH_DEFAULT = 32
PEM_LINE_LENGTH = 64

_PRIVATE_KEY_TYPES = (
    rsa.RSAPrivateKey,
    ec.EllipticCurvePrivateKey,
    ed25519.Ed25519PrivateKey,
)
_PEM_LABELS: dict[str, str] = {"public": "PUBLIC KEY", "private": "PRIVATE KEY"}

logger = structlog.get_logger(__name__)


def _to_handle(key: AsymmetricKey, spec: AlgorithmSpec) -> KeyHandle:
    if isinstance(key, _PRIVATE_KEY_TYPES):
        return KeyHandle(kind="private", algorithm=spec.name, usages=("sign",), key=key)
    return KeyHandle(kind="public", algorithm=spec.name, usages=("verify",), key=key)


def generate_key_pair(
    algorithm: str, options: KeyGenerationOptions | None = None
) -> AsymmetricKeyPair:
    """Generate a key pair sized and shaped for an asymmetric algorithm."""
    spec = get_algorithm(algorithm)
    if spec.is_symmetric:
        raise UnsupportedAlgorithmError(
            f"{spec.name} uses a shared secret; use generate_secret instead"
        )
    options = options or KeyGenerationOptions()

    private_key: AsymmetricKey
    parameters: int | str
    if spec.family in (Family.RSASSA_PKCS1, Family.RSA_PSS):
        key_size = options.key_size or spec.rsa_key_size
        try:
            private_key = rsa.generate_private_key(
                public_exponent=spec.rsa_public_exponent,
                key_size=key_size,
            )
        except ValueError as exc:
            raise KeyGenerationError(f"Key generation failed: {exc}") from exc
        parameters = key_size
    elif spec.family is Family.ECDSA:
        curve_name = options.named_curve or spec.curve
        curve = CURVES.get(curve_name)
        if curve is None:
            raise KeyGenerationError(f"Unsupported curve: {curve_name}")
        private_key = ec.generate_private_key(curve())
        parameters = curve_name
    else:
        private_key = ed25519.Ed25519PrivateKey.generate()
        parameters = spec.curve

    logger.info("key_pair_generated", alg=spec.name, parameters=parameters)
    return AsymmetricKeyPair(
        public_key=_to_handle(private_key.public_key(), spec),
        private_key=_to_handle(private_key, spec),
        algorithm=spec.name,
        parameters=parameters,
    )


def generate_secret(length: int = SECRET_LENGTH_DEFAULT) -> str:
    """Generate length random bytes for HMAC, rendered as lowercase hex."""
    if length <= 0:
        raise KeyGenerationError("Secret length must be positive")
    return secrets.token_hex(length)


def export_key_to_pem(key: KeyHandle | AsymmetricKeyPair, kind: KeyKind) -> str:
    """Export a public key as SPKI or a private key as PKCS8 PEM text."""
    if isinstance(key, AsymmetricKeyPair):
        key = key.public_key if kind == "public" else key.private_key
    if key.kind != kind:
        raise KeyExportError(f"Cannot export a {key.kind} key as {kind}")

    if kind == "public":
        der = key.key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    else:
        der = key.key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    body = base64.b64encode(der).decode("ascii")
    lines = [
        body[i : i + PEM_LINE_LENGTH] for i in range(0, len(body), PEM_LINE_LENGTH)
    ]
    label = _PEM_LABELS[kind]
    return "\n".join([f"-----BEGIN {label}-----", *lines, f"-----END {label}-----"])


def import_key_from_pem(pem: str, algorithm: str) -> KeyHandle:
    """Import PKCS8 (private) or SPKI (public) PEM text for an algorithm."""
    spec = get_algorithm(algorithm)
    if spec.is_symmetric:
        raise KeyImportError(f"{spec.name} uses a shared secret, not a PEM key")

    is_private = "PRIVATE" in pem
    body = "".join(
        line
        for line in pem.strip().splitlines()
        if not line.strip().startswith("-----")
    )
    try:
        der = base64.b64decode("".join(body.split()), validate=True)
    except binascii.Error as exc:
        raise KeyImportError("PEM import failed: body is not valid base64") from exc
    if not der:
        raise KeyImportError("PEM import failed: no key data")

    try:
        if is_private:
            loaded = serialization.load_der_private_key(der, password=None)
        else:
            loaded = serialization.load_der_public_key(der)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeyImportError(f"PEM import failed: {exc}") from exc

    if not key_fits_family(spec, loaded):
        raise KeyImportError(f"PEM import failed: key does not fit {spec.name}")
    return _to_handle(loaded, spec)


def export_key_to_jwk(
    key: SecretKey | KeyHandle,
    *,
    algorithm: str | None = None,
    kid: str | None = None,
) -> dict[str, Any]:
    """Export a key as a JSON Web Key dict with alg and use members."""
    if isinstance(key, SecretKey):
        jwk = HMACAlgorithm.to_jwk(key.value, as_dict=True)
        alg = algorithm
    else:
        spec = get_algorithm(algorithm or key.algorithm)
        try:
            jwk = get_primitive(spec).to_jwk(key.key, as_dict=True)
        except InvalidKeyError as exc:
            raise KeyExportError(f"JWK export failed: {exc}") from exc
        alg = spec.name

    jwk.pop("key_ops", None)
    jwk["use"] = "sig"
    if alg:
        jwk["alg"] = alg
    if kid:
        jwk["kid"] = kid
    return jwk


def import_key_from_jwk(
    jwk: Mapping[str, Any] | str, algorithm: str | None = None
) -> KeyHandle | SecretKey:
    """Import a JWK; a "d" member yields a private handle, "oct" a secret."""
    if isinstance(jwk, str):
        try:
            jwk = json.loads(jwk)
        except ValueError as exc:
            raise KeyImportError("JWK import failed: not valid JSON") from exc
    if not isinstance(jwk, Mapping):
        raise KeyImportError("JWK import failed: expected a JSON object")

    alg = algorithm or jwk.get("alg")
    if not alg:
        raise KeyImportError("JWK import failed: no algorithm given")
    spec = get_algorithm(alg)

    try:
        loaded = get_primitive(spec).from_jwk(dict(jwk))
    except (InvalidKeyError, ValueError, KeyError, TypeError) as exc:
        raise KeyImportError(f"JWK import failed: {exc}") from exc

    if spec.is_symmetric:
        return SecretKey(value=loaded)
    if not key_fits_family(spec, loaded):
        raise KeyImportError(f"JWK import failed: key does not fit {spec.name}")
    return _to_handle(loaded, spec)


def encrypt_private_key(private_pem: str, fernet_key: str) -> str:
    """Encrypt private key text with Fernet for vault storage."""
    cipher = Fernet(fernet_key.encode())
    return cipher.encrypt(private_pem.encode()).decode()


def decrypt_private_key(encrypted: str, fernet_key: str) -> str:
    """Decrypt Fernet-encrypted private key text."""
    cipher = Fernet(fernet_key.encode())
    try:
        return cipher.decrypt(encrypted.encode()).decode()
    except InvalidToken as exc:
        raise KeyImportError("Stored key data could not be decrypted") from exc
