"""Database operations for saved tokens."""

from datetime import UTC, datetime

import uuid_utils
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from jwtool.crypto.claims import get_token_expiry
from jwtool.crypto.compact import decode
from jwtool.crypto.errors import FormatError
from jwtool.db.models_vault import ALGORITHM_LENGTH, StoredTokenEntity


class StoredTokenData(BaseModel):
    """Parameters for saving or updating a token."""

    name: str
    token: str
    token_id: str | None = None
    algorithm: str | None = None
    tags: list[str] = Field(default_factory=list)
    expires_at: datetime | None = None
    created_at: datetime | None = None


class StoredTokenRecord(BaseModel):
    """Portable form of a saved token used for JSON export and import."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    token: str
    algorithm: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    expires_at: datetime | None = None


_records = TypeAdapter(list[StoredTokenRecord])


def _describe(token: str) -> tuple[str, datetime | None]:
    """Read alg and expiry from an untrusted token."""
    decoded = decode(token)
    algorithm = str(decoded.header.get("alg", "unknown"))
    return algorithm, get_token_expiry(decoded.payload).expires_at


async def get_token(session: AsyncSession, token_id: str) -> StoredTokenEntity | None:
    """Look up a saved token by id."""
    stmt = select(StoredTokenEntity).where(StoredTokenEntity.id == token_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def save_token(session: AsyncSession, data: StoredTokenData) -> StoredTokenEntity:
    """Insert a token, or replace the one with the same id."""
    algorithm, expires_at = _describe(data.token)
    algorithm = (data.algorithm or algorithm)[:ALGORITHM_LENGTH]
    expires_at = data.expires_at or expires_at

    existing = await get_token(session, data.token_id) if data.token_id else None
    if existing is not None:
        existing.name = data.name
        existing.token = data.token
        existing.algorithm = algorithm
        existing.tags = list(data.tags)
        existing.expires_at = expires_at
        await session.flush()
        return existing

    entity = StoredTokenEntity(
        id=data.token_id or str(uuid_utils.uuid7()),
        name=data.name,
        token=data.token,
        algorithm=algorithm,
        tags=list(data.tags),
        created_at=data.created_at or datetime.now(UTC),
        expires_at=expires_at,
    )
    session.add(entity)
    await session.flush()
    return entity


async def list_tokens(
    session: AsyncSession, tag: str | None = None
) -> list[StoredTokenEntity]:
    """Return saved tokens, newest first, optionally only those with tag."""
    stmt = select(StoredTokenEntity).order_by(StoredTokenEntity.created_at.desc())
    result = await session.execute(stmt)
    tokens = list(result.scalars().all())
    if tag is None:
        return tokens
    return [t for t in tokens if tag in (t.tags or [])]


async def get_expired_tokens(
    session: AsyncSession, now: datetime | None = None
) -> list[StoredTokenEntity]:
    """Return saved tokens whose expiry lies before now."""
    stmt = (
        select(StoredTokenEntity)
        .where(StoredTokenEntity.expires_at.is_not(None))
        .where(StoredTokenEntity.expires_at < (now or datetime.now(UTC)))
        .order_by(StoredTokenEntity.expires_at)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def delete_token(session: AsyncSession, token_id: str) -> bool:
    """Delete a saved token; False when it did not exist."""
    existing = await get_token(session, token_id)
    if existing is None:
        return False
    await session.delete(existing)
    await session.flush()
    return True


async def clear_tokens(session: AsyncSession) -> None:
    """Delete every saved token."""
    await session.execute(delete(StoredTokenEntity))
    await session.flush()


def export_tokens_json(tokens: list[StoredTokenEntity]) -> str:
    """Serialize saved tokens as an indented JSON array."""
    records = [StoredTokenRecord.model_validate(t) for t in tokens]
    return _records.dump_json(records, indent=2).decode()


async def import_tokens_json(
    session: AsyncSession, text: str
) -> list[StoredTokenEntity]:
    """Save every token from a JSON export, replacing ids that exist."""
    try:
        records = _records.validate_json(text)
    except ValidationError as exc:
        raise FormatError(f"Import failed: {exc.error_count()} invalid entries") from exc

    imported = []
    for record in records:
        entity = await save_token(
            session,
            StoredTokenData(
                token_id=record.id,
                name=record.name,
                token=record.token,
                algorithm=record.algorithm,
                tags=record.tags,
                created_at=record.created_at,
                expires_at=record.expires_at,
            ),
        )
        imported.append(entity)
    return imported
