"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TOKEN_TTL = 3600
RSA_KEY_SIZE_DEFAULT = 2048
SECRET_LENGTH_DEFAULT = 32
DB_POOL_SIZE_DEFAULT = 5
DB_MAX_OVERFLOW_DEFAULT = 10


class DatabaseSettings(BaseSettings):
    """Vault database connection settings."""

    model_config = SettingsConfigDict(env_prefix="JWTOOL_DB_")

    url: str = "sqlite+aiosqlite:///./jwtool.db"
    pool_size: int = DB_POOL_SIZE_DEFAULT
    max_overflow: int = DB_MAX_OVERFLOW_DEFAULT
    echo: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class ToolkitSettings(BaseSettings):
    """Token, key, API and logging settings."""

    model_config = SettingsConfigDict(env_prefix="JWTOOL_")

    default_token_ttl: int = DEFAULT_TOKEN_TTL
    rsa_key_size: int = RSA_KEY_SIZE_DEFAULT
    secret_length: int = SECRET_LENGTH_DEFAULT
    key_encryption_key: str = ""
    api_token: str = ""
    cors_origins: str = ""
    log_level: str = "info"
    log_json: bool = True

    def get_cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        if not self.cors_origins:
            return []
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
