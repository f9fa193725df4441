"""SQLAlchemy models for saved tokens and key metadata."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from jwtool.db.base import BaseEntity

ALGORITHM_LENGTH = 64


class StoredTokenEntity(BaseEntity):
    """A named compact token saved for later use."""

    __tablename__ = "stored_tokens"

    id: Mapped[str] = mapped_column(String(48), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    token: Mapped[str] = mapped_column(Text, nullable=False)
    algorithm: Mapped[str] = mapped_column(String(ALGORITHM_LENGTH), nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class KeyInfoEntity(BaseEntity):
    """Metadata for a key, with optional (possibly encrypted) key text."""

    __tablename__ = "key_infos"

    id: Mapped[str] = mapped_column(String(48), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    algorithm: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    key_type: Mapped[str] = mapped_column(String(12), nullable=False)
    key_data: Mapped[str | None] = mapped_column(Text, nullable=True)
    key_data_encrypted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
