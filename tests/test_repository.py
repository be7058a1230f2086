"""Tests for the SQLAlchemy-backed wardrobe store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

from wardrobe.catalog.models import ClothingItem
from wardrobe.catalog.taxonomy import ClothingCategory, OccasionType, WeatherSuitability
from wardrobe.db.repository import InMemoryWardrobeStore, SqlWardrobeStore
from wardrobe.db.session import create_engine, create_session_factory, init_db


@pytest_asyncio.fixture
async def store(tmp_path: Path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'db' / 'wardrobe.db'}")
    await init_db(engine)
    yield SqlWardrobeStore(create_session_factory(engine))
    await engine.dispose()


def _item(item_id: str, user_id: str = "user-1", *, minutes: int = 0, **fields) -> ClothingItem:
    return ClothingItem(
        id=item_id,
        user_id=user_id,
        image_url=f"https://storage.test/clothing-images/{user_id}/processed_{item_id}.png",
        created_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc) + timedelta(minutes=minutes),
        **fields,
    )


@pytest.mark.asyncio
async def test_create_round_trips_all_fields(store: SqlWardrobeStore) -> None:
    saved = await store.create(
        _item(
            "a",
            original_image_url="https://storage.test/clothing-images/user-1/original_a.jpg",
            description="Mavi pamuklu tişört",
            category=ClothingCategory.TSHIRT,
            color="Mavi",
            secondary_colors=["Beyaz"],
            occasion_types=[OccasionType.CASUAL],
            weather_suitability=[WeatherSuitability.HOT, WeatherSuitability.WARM],
            fabric_type="Pamuk",
        ),
    )

    assert saved.id == "a"
    assert saved.category is ClothingCategory.TSHIRT
    assert saved.secondary_colors == ["Beyaz"]
    assert saved.occasion_types == [OccasionType.CASUAL]
    assert saved.weather_suitability == [WeatherSuitability.HOT, WeatherSuitability.WARM]
    assert saved.updated_at is not None
    assert await store.get("a", "user-1") == saved


@pytest.mark.asyncio
async def test_create_assigns_missing_id(store: SqlWardrobeStore) -> None:
    saved = await store.create(ClothingItem(id="", user_id="user-1", image_url="https://x.test/a.png"))

    assert saved.id
    assert saved.created_at is not None


@pytest.mark.asyncio
async def test_list_is_newest_first_and_scoped_to_owner(store: SqlWardrobeStore) -> None:
    await store.create(_item("old", minutes=0))
    await store.create(_item("new", minutes=10))
    await store.create(_item("mid", minutes=5))
    await store.create(_item("other", "user-2", minutes=20))

    items = await store.list_by_owner("user-1")

    assert [item.id for item in items] == ["new", "mid", "old"]


@pytest.mark.asyncio
async def test_delete_is_scoped_to_owner(store: SqlWardrobeStore) -> None:
    await store.create(_item("a"))

    assert await store.delete("a", "user-2") == 0
    assert await store.get("a", "user-1") is not None
    assert await store.get("a", "user-2") is None

    assert await store.delete("a", "user-1") == 1
    assert await store.get("a", "user-1") is None


@pytest.mark.asyncio
async def test_in_memory_store_matches_sql_semantics() -> None:
    store = InMemoryWardrobeStore()
    await store.create(_item("old", minutes=0))
    await store.create(_item("new", minutes=10))

    assert [item.id for item in await store.list_by_owner("user-1")] == ["new", "old"]
    assert await store.delete("new", "user-2") == 0
    assert await store.delete("new", "user-1") == 1
