"""Persistence of clothing items keyed by owner."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Protocol

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wardrobe.catalog.models import ClothingItem
from wardrobe.db.models import ClothingItemRow

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Raised when the database rejects or fails an operation."""


class DataDecodingError(PersistenceError):
    """Raised when a stored row cannot be turned back into an item."""


class WardrobeStore(Protocol):
    """Stores and retrieves clothing items for their owners."""

    async def create(self, item: ClothingItem) -> ClothingItem:
        """Insert ``item`` and return the canonical stored form."""

    async def list_by_owner(self, user_id: str) -> list[ClothingItem]:
        """Return the owner's items, newest first."""

    async def get(self, item_id: str, user_id: str) -> ClothingItem | None:
        """Return the item when it exists and belongs to ``user_id``."""

    async def delete(self, item_id: str, user_id: str) -> int:
        """Delete the item if it belongs to ``user_id``; return rows removed."""


def _with_server_fields(item: ClothingItem) -> ClothingItem:
    now = datetime.now(timezone.utc)
    return item.model_copy(
        update={
            "id": item.id or str(uuid.uuid4()),
            "created_at": item.created_at or now,
            "updated_at": item.updated_at or item.created_at or now,
        },
    )


def _enum_value(value) -> str | None:
    return value.value if value is not None else None


def _enum_values(values) -> list[str] | None:
    return [value.value for value in values] if values is not None else None


def _to_row(item: ClothingItem) -> ClothingItemRow:
    return ClothingItemRow(
        id=item.id,
        user_id=item.user_id,
        image_url=item.image_url,
        original_image_url=item.original_image_url,
        description=item.description,
        category=_enum_value(item.category),
        color=item.color,
        secondary_colors=list(item.secondary_colors) if item.secondary_colors is not None else None,
        style=_enum_value(item.style),
        occasion_types=_enum_values(item.occasion_types),
        weather_suitability=_enum_values(item.weather_suitability),
        fabric_type=item.fabric_type,
        texture=item.texture,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def _to_item(row: ClothingItemRow) -> ClothingItem:
    try:
        return ClothingItem.model_validate(
            {
                "id": row.id,
                "user_id": row.user_id,
                "image_url": row.image_url,
                "original_image_url": row.original_image_url,
                "description": row.description,
                "category": row.category,
                "color": row.color,
                "secondary_colors": row.secondary_colors,
                "style": row.style,
                "occasion_types": row.occasion_types,
                "weather_suitability": row.weather_suitability,
                "fabric_type": row.fabric_type,
                "texture": row.texture,
                "created_at": row.created_at,
                "updated_at": row.updated_at,
            },
        )
    except ValidationError as exc:
        raise DataDecodingError(f"Stored clothing item {row.id} could not be decoded.") from exc


class SqlWardrobeStore:
    """``clothing_items`` table access through SQLAlchemy's async ORM."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, item: ClothingItem) -> ClothingItem:
        item = _with_server_fields(item)
        try:
            async with self._session_factory() as session:
                session.add(_to_row(item))
                await session.commit()
                result = await session.execute(
                    select(ClothingItemRow)
                    .where(ClothingItemRow.id == item.id)
                    .execution_options(populate_existing=True),
                )
                rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.error("Saving clothing item %s failed: %s", item.id, exc)
            raise PersistenceError("Clothing item could not be saved.") from exc

        if len(rows) != 1:
            raise DataDecodingError(f"Insert of clothing item {item.id} returned {len(rows)} rows.")
        return _to_item(rows[0])

    async def list_by_owner(self, user_id: str) -> list[ClothingItem]:
        stmt = (
            select(ClothingItemRow)
            .where(ClothingItemRow.user_id == user_id)
            .order_by(ClothingItemRow.created_at.desc())
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError("Clothing items could not be loaded.") from exc
        return [_to_item(row) for row in rows]

    async def get(self, item_id: str, user_id: str) -> ClothingItem | None:
        stmt = select(ClothingItemRow).where(
            ClothingItemRow.id == item_id,
            ClothingItemRow.user_id == user_id,
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError("Clothing item could not be loaded.") from exc
        return _to_item(row) if row is not None else None

    async def delete(self, item_id: str, user_id: str) -> int:
        stmt = delete(ClothingItemRow).where(
            ClothingItemRow.id == item_id,
            ClothingItemRow.user_id == user_id,
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError("Clothing item could not be deleted.") from exc
        return result.rowcount or 0


class InMemoryWardrobeStore:
    """Dictionary-backed store with the same filtering and ordering rules."""

    def __init__(self) -> None:
        self.items: dict[str, ClothingItem] = {}

    async def create(self, item: ClothingItem) -> ClothingItem:
        stored = _with_server_fields(item)
        if stored.id in self.items:
            raise PersistenceError(f"Clothing item {stored.id} already exists.")
        self.items[stored.id] = stored
        return stored

    async def list_by_owner(self, user_id: str) -> list[ClothingItem]:
        owned = [item for item in self.items.values() if item.user_id == user_id]
        return sorted(owned, key=lambda item: item.created_at, reverse=True)

    async def get(self, item_id: str, user_id: str) -> ClothingItem | None:
        item = self.items.get(item_id)
        if item is None or item.user_id != user_id:
            return None
        return item

    async def delete(self, item_id: str, user_id: str) -> int:
        if await self.get(item_id, user_id) is None:
            return 0
        del self.items[item_id]
        return 1
