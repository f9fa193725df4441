"""Database operations for saved key metadata."""

from datetime import UTC, datetime
from typing import Literal

import uuid_utils
from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from jwtool.crypto.algorithms import get_algorithm
from jwtool.crypto.errors import KeyImportError
from jwtool.crypto.keys import decrypt_private_key, encrypt_private_key
from jwtool.db.models_vault import KeyInfoEntity


class KeyInfoData(BaseModel):
    """Parameters for saving or updating key metadata."""

    name: str
    algorithm: str
    key_id: str | None = None
    key_data: str | None = None


def _key_type(algorithm: str) -> Literal["symmetric", "asymmetric"]:
    return "symmetric" if get_algorithm(algorithm).is_symmetric else "asymmetric"


def _needs_encryption(key_type: str, key_data: str) -> bool:
    """Secrets and private PEM/JWK text are encrypted; public keys are not."""
    if key_type == "symmetric":
        return True
    return "PRIVATE" in key_data or '"d"' in key_data


async def get_key_info(session: AsyncSession, key_id: str) -> KeyInfoEntity | None:
    """Look up key metadata by id."""
    stmt = select(KeyInfoEntity).where(KeyInfoEntity.id == key_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def save_key_info(
    session: AsyncSession, data: KeyInfoData, fernet_key: str = ""
) -> KeyInfoEntity:
    """Insert or replace key metadata, encrypting private material.

    Private key text is only persisted when fernet_key is set; without it
    the record keeps the metadata and drops the key text.
    """
    key_type = _key_type(data.algorithm)
    key_data = data.key_data
    encrypted = False
    if key_data is not None and _needs_encryption(key_type, key_data):
        if fernet_key:
            key_data = encrypt_private_key(key_data, fernet_key)
            encrypted = True
        else:
            key_data = None

    existing = await get_key_info(session, data.key_id) if data.key_id else None
    if existing is not None:
        existing.name = data.name
        existing.algorithm = data.algorithm
        existing.key_type = key_type
        existing.key_data = key_data
        existing.key_data_encrypted = encrypted
        await session.flush()
        return existing

    entity = KeyInfoEntity(
        id=data.key_id or str(uuid_utils.uuid7()),
        name=data.name,
        algorithm=data.algorithm,
        key_type=key_type,
        key_data=key_data,
        key_data_encrypted=encrypted,
        created_at=datetime.now(UTC),
    )
    session.add(entity)
    await session.flush()
    return entity


def reveal_key_data(entity: KeyInfoEntity, fernet_key: str) -> str | None:
    """Return the stored key text, decrypting it when needed."""
    if entity.key_data is None or not entity.key_data_encrypted:
        return entity.key_data
    if not fernet_key:
        raise KeyImportError("Stored key data is encrypted and no key is configured")
    return decrypt_private_key(entity.key_data, fernet_key)


async def list_key_infos(
    session: AsyncSession, algorithm: str | None = None
) -> list[KeyInfoEntity]:
    """Return key metadata, newest first, optionally for one algorithm."""
    stmt = select(KeyInfoEntity).order_by(KeyInfoEntity.created_at.desc())
    if algorithm is not None:
        stmt = stmt.where(KeyInfoEntity.algorithm == algorithm)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def delete_key_info(session: AsyncSession, key_id: str) -> bool:
    """Delete key metadata; False when it did not exist."""
    existing = await get_key_info(session, key_id)
    if existing is None:
        return False
    await session.delete(existing)
    await session.flush()
    return True


async def clear_key_infos(session: AsyncSession) -> None:
    """Delete all key metadata."""
    await session.execute(delete(KeyInfoEntity))
    await session.flush()
