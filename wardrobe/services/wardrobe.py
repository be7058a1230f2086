"""Business logic for reading and pruning a user's wardrobe."""

from __future__ import annotations

import logging

from wardrobe.catalog.models import ClothingItem
from wardrobe.catalog.taxonomy import CategoryGroup
from wardrobe.db.repository import WardrobeStore
from wardrobe.metrics.prometheus_exporter import storage_cleanup_failures_total
from wardrobe.storage.backend import StorageBackend, StorageError

logger = logging.getLogger(__name__)


class WardrobeService:
    """Facade over the item store and the image storage."""

    def __init__(self, store: WardrobeStore, storage: StorageBackend) -> None:
        self._store = store
        self._storage = storage

    async def list_items(self, user_id: str, group: CategoryGroup | None = None) -> list[ClothingItem]:
        """Return the user's items, newest first, optionally limited to one category group.

        Items without a category never match a group filter.
        """

        items = await self._store.list_by_owner(user_id)
        if group is None:
            return items
        return [item for item in items if item.category is not None and item.category.group is group]

    async def delete_item(self, item_id: str, user_id: str) -> bool:
        """Delete the item row, then try to remove its images.

        Returns ``False`` when nothing owned by ``user_id`` matched. Storage
        cleanup is best effort: failures are logged and counted only.
        """

        item = await self._store.get(item_id, user_id)
        if item is None:
            return False

        removed = await self._store.delete(item_id, user_id)
        if not removed:
            return False

        for url in (item.image_url, item.original_image_url):
            if url:
                await self._remove_image(url)
        return True

    async def _remove_image(self, url: str) -> None:
        key = self._storage.key_for_url(url)
        if key is None:
            logger.debug("Skipping cleanup of foreign image URL %s", url)
            return
        try:
            await self._storage.delete(key)
        except StorageError as exc:
            storage_cleanup_failures_total.inc()
            logger.warning("Could not remove stored image %s: %s", key, exc)
