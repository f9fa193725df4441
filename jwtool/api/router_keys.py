"""Key endpoints: algorithm catalog, generation, secrets, PEM/JWK conversion."""

from fastapi import APIRouter
from starlette.concurrency import run_in_threadpool

from jwtool.api.deps import Settings
from jwtool.api.schemas import (
    AlgorithmEntry,
    ConvertKeyRequest,
    ConvertKeyResponse,
    GenerateKeyRequest,
    KeyPairResponse,
    SecretRequest,
    SecretResponse,
)
from jwtool.crypto.algorithms import REGISTRY, Family, get_algorithm
from jwtool.crypto.errors import KeyImportError
from jwtool.crypto.keys import (
    export_key_to_jwk,
    export_key_to_pem,
    generate_key_pair,
    generate_secret,
    import_key_from_jwk,
    import_key_from_pem,
)
from jwtool.crypto.types import KeyGenerationOptions, SecretKey

router = APIRouter(prefix="/keys", tags=["keys"])

_RSA_FAMILIES = (Family.RSASSA_PKCS1, Family.RSA_PSS)


@router.get("/algorithms")
async def list_algorithms() -> list[AlgorithmEntry]:
    """GET /keys/algorithms -- the supported algorithm table."""
    return [
        AlgorithmEntry(
            name=spec.name,
            family=spec.family.value,
            hash_name=spec.hash_name,
            key_kind=spec.key_kind.value,
            curve=spec.curve,
        )
        for spec in REGISTRY.values()
    ]


@router.post("/generate")
async def generate(body: GenerateKeyRequest, settings: Settings) -> KeyPairResponse:
    """POST /keys/generate -- new key pair as PEM and JWK."""
    spec = get_algorithm(body.algorithm)
    key_size = body.key_size
    if key_size is None and spec.family in _RSA_FAMILIES:
        key_size = settings.rsa_key_size
    options = KeyGenerationOptions(key_size=key_size, named_curve=body.named_curve)
    pair = await run_in_threadpool(generate_key_pair, spec.name, options)
    return KeyPairResponse(
        algorithm=pair.algorithm,
        parameters=pair.parameters,
        public_key_pem=export_key_to_pem(pair.public_key, "public"),
        private_key_pem=export_key_to_pem(pair.private_key, "private"),
        public_key_jwk=export_key_to_jwk(pair.public_key),
        private_key_jwk=export_key_to_jwk(pair.private_key),
    )


@router.post("/secret")
async def secret(body: SecretRequest, settings: Settings) -> SecretResponse:
    """POST /keys/secret -- random HMAC secret in hex."""
    length = settings.secret_length if body.length is None else body.length
    return SecretResponse(secret=generate_secret(length), length=length)


@router.post("/convert")
async def convert(body: ConvertKeyRequest) -> ConvertKeyResponse:
    """POST /keys/convert -- PEM to JWK, or JWK to PEM."""
    if body.pem:
        if not body.algorithm:
            raise KeyImportError("PEM import requires an algorithm")
        handle = import_key_from_pem(body.pem, body.algorithm)
    elif body.jwk:
        algorithm = body.algorithm or body.jwk.get("alg")
        key = import_key_from_jwk(body.jwk, algorithm)
        if isinstance(key, SecretKey):
            return ConvertKeyResponse(
                kind="secret",
                algorithm=algorithm,
                jwk=export_key_to_jwk(key, algorithm=algorithm, kid=body.kid),
            )
        handle = key
    else:
        raise KeyImportError("Provide a PEM or JWK key")

    return ConvertKeyResponse(
        kind=handle.kind,
        algorithm=handle.algorithm,
        pem=export_key_to_pem(handle, handle.kind),
        jwk=export_key_to_jwk(handle, kid=body.kid),
    )
