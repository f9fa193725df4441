"""Vault endpoints for saved tokens and key metadata."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from jwtool.api.deps import Settings, require_api_token
from jwtool.api.schemas import (
    ImportTokensPayload,
    KeyInfoList,
    KeyInfoPayload,
    KeyInfoResponse,
    StoredTokenList,
    StoredTokenPayload,
    StoredTokenResponse,
)
from jwtool.db.engine import get_session
from jwtool.db.models_vault import KeyInfoEntity
from jwtool.db.repo_keys import (
    KeyInfoData,
    clear_key_infos,
    delete_key_info,
    get_key_info,
    list_key_infos,
    reveal_key_data,
    save_key_info,
)
from jwtool.db.repo_tokens import (
    StoredTokenData,
    clear_tokens,
    delete_token,
    export_tokens_json,
    get_expired_tokens,
    get_token,
    import_tokens_json,
    list_tokens,
    save_token,
)

router = APIRouter(
    prefix="/vault",
    tags=["vault"],
    dependencies=[Depends(require_api_token)],
)

DbSession = Annotated[AsyncSession, Depends(get_session)]


def _key_to_response(
    entity: KeyInfoEntity, key_data: str | None = None
) -> KeyInfoResponse:
    """Convert a KeyInfoEntity to an API response."""
    return KeyInfoResponse(
        id=entity.id,
        name=entity.name,
        algorithm=entity.algorithm,
        key_type=entity.key_type,
        created_at=entity.created_at,
        has_key_data=entity.key_data is not None,
        key_data=key_data,
    )


@router.get("/tokens")
async def get_tokens(
    db: DbSession,
    tag: Annotated[str | None, Query()] = None,
) -> StoredTokenList:
    """GET /vault/tokens?tag=... -- saved tokens, newest first."""
    tokens = await list_tokens(db, tag=tag)
    return StoredTokenList(
        tokens=[StoredTokenResponse.model_validate(t) for t in tokens]
    )


@router.get("/tokens/expired")
async def get_expired(db: DbSession) -> StoredTokenList:
    """GET /vault/tokens/expired -- saved tokens past their exp."""
    tokens = await get_expired_tokens(db)
    return StoredTokenList(
        tokens=[StoredTokenResponse.model_validate(t) for t in tokens]
    )


@router.get("/tokens/export")
async def export_tokens(db: DbSession) -> Response:
    """GET /vault/tokens/export -- every saved token as a JSON array."""
    tokens = await list_tokens(db)
    return Response(content=export_tokens_json(tokens), media_type="application/json")


@router.post("/tokens/import")
async def import_tokens(payload: ImportTokensPayload, db: DbSession) -> StoredTokenList:
    """POST /vault/tokens/import -- load a JSON export."""
    tokens = await import_tokens_json(db, payload.data)
    return StoredTokenList(
        tokens=[StoredTokenResponse.model_validate(t) for t in tokens]
    )


@router.post("/tokens")
async def store_token(payload: StoredTokenPayload, db: DbSession) -> StoredTokenResponse:
    """POST /vault/tokens -- save or replace a named token."""
    entity = await save_token(
        db,
        StoredTokenData(
            token_id=payload.id,
            name=payload.name,
            token=payload.token,
            algorithm=payload.algorithm,
            tags=payload.tags,
            expires_at=payload.expires_at,
        ),
    )
    return StoredTokenResponse.model_validate(entity)


@router.get("/tokens/{token_id}")
async def read_token(token_id: str, db: DbSession) -> StoredTokenResponse:
    """GET /vault/tokens/{id} -- one saved token."""
    entity = await get_token(db, token_id)
    if entity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return StoredTokenResponse.model_validate(entity)


@router.delete("/tokens/{token_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_token(token_id: str, db: DbSession) -> None:
    """DELETE /vault/tokens/{id} -- forget one saved token."""
    if not await delete_token(db, token_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


@router.delete("/tokens", status_code=status.HTTP_204_NO_CONTENT)
async def remove_all_tokens(db: DbSession) -> None:
    """DELETE /vault/tokens -- forget every saved token."""
    await clear_tokens(db)


@router.get("/keys")
async def get_keys(
    db: DbSession,
    algorithm: Annotated[str | None, Query()] = None,
) -> KeyInfoList:
    """GET /vault/keys?algorithm=... -- key metadata without key text."""
    keys = await list_key_infos(db, algorithm=algorithm)
    return KeyInfoList(keys=[_key_to_response(k) for k in keys])


@router.post("/keys")
async def store_key(
    payload: KeyInfoPayload, db: DbSession, settings: Settings
) -> KeyInfoResponse:
    """POST /vault/keys -- save key metadata and optional key text."""
    entity = await save_key_info(
        db,
        KeyInfoData(
            key_id=payload.id,
            name=payload.name,
            algorithm=payload.algorithm,
            key_data=payload.key_data,
        ),
        settings.key_encryption_key,
    )
    return _key_to_response(entity)


@router.get("/keys/{key_id}")
async def read_key(key_id: str, db: DbSession, settings: Settings) -> KeyInfoResponse:
    """GET /vault/keys/{id} -- key metadata with decrypted key text."""
    entity = await get_key_info(db, key_id)
    if entity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return _key_to_response(
        entity, reveal_key_data(entity, settings.key_encryption_key)
    )


@router.delete("/keys/{key_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_key(key_id: str, db: DbSession) -> None:
    """DELETE /vault/keys/{id} -- forget one key."""
    if not await delete_key_info(db, key_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


@router.delete("/keys", status_code=status.HTTP_204_NO_CONTENT)
async def remove_all_keys(db: DbSession) -> None:
    """DELETE /vault/keys -- forget all key metadata."""
    await clear_key_infos(db)
