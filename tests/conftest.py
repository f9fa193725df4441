"""Shared test fixtures for jwtool."""

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from jwtool.core.app import create_app
from jwtool.crypto.keys import generate_key_pair
from jwtool.crypto.types import AsymmetricKeyPair
from jwtool.db.base import BaseEntity
from jwtool.db.engine import get_session


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for test settings."""
    monkeypatch.setenv("JWTOOL_LOG_JSON", "false")
    monkeypatch.setenv("JWTOOL_API_TOKEN", "")
    monkeypatch.setenv("JWTOOL_KEY_ENCRYPTION_KEY", "")


@pytest.fixture(scope="session")
def rsa_pair() -> AsymmetricKeyPair:
    """One RSA-2048 pair shared by tests that do not care which pair."""
    return generate_key_pair("RS256")


@pytest.fixture
async def db_session() -> AsyncIterator[AsyncSession]:
    """Create an in-memory SQLite async session for tests."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(BaseEntity.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Create an httpx test client with DB session override."""
    app = create_app()

    async def _override_session() -> AsyncIterator[AsyncSession]:
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_session] = _override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
