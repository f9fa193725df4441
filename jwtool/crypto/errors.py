"""Error kinds raised by the token codec, signer, and key manager."""


class TokenError(Exception):
    """Base class for all toolkit errors."""

    code = "token_error"


class FormatError(TokenError):
    """Token, segment, or claim set is structurally invalid."""

    code = "invalid_format"


class UnsupportedAlgorithmError(TokenError):
    """Algorithm is not in the registry or not valid for the request."""

    code = "unsupported_algorithm"


class KeyMismatchError(TokenError):
    """Key material does not fit the algorithm's required key shape."""

    code = "key_mismatch"


class KeyImportError(TokenError):
    """PEM or JWK text could not be turned into a key."""

    code = "key_import_failed"


class KeyExportError(TokenError):
    """Key cannot be exported in the requested form."""

    code = "key_export_failed"


class KeyGenerationError(TokenError):
    """Key generation parameters were rejected."""

    code = "key_generation_failed"
