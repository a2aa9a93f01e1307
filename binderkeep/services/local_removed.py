"""
Local-only removed slots.

When a user hides a slot "on this device", its key is recorded here so the
slot renders as empty locally. This ledger lives only in the device
key-value store and is never sent to the remote collection store.
"""

import json
import logging

from binderkeep.storage.errors import StorageError
from binderkeep.storage.key_value import KeyValueStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "@binderkeep/localRemoved/"


def storage_key(collection_id: str) -> str:
    return KEY_PREFIX + collection_id


class LocalRemovedSlots:
    """Per-collection set of locally hidden slot keys."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self, collection_id: str) -> set[str]:
        """Slot keys hidden for `collection_id`. Unreadable data reads as empty."""
        if not collection_id:
            return set()
        try:
            raw = await self._store.get_item(storage_key(collection_id))
        except StorageError as e:
            logger.warning("Could not read local-removed slots for %s: %s", collection_id, e)
            return set()
        if not raw:
            return set()

        try:
            keys = json.loads(raw)
        except ValueError:
            return set()
        if not isinstance(keys, list):
            return set()
        return {k for k in keys if isinstance(k, str)}

    async def add(self, collection_id: str, slot_key: str) -> None:
        """Hide `slot_key` on this device."""
        if not collection_id or not slot_key:
            return
        keys = await self.get(collection_id)
        keys.add(slot_key)
        await self._save(collection_id, keys)

    async def remove(self, collection_id: str, slot_key: str) -> None:
        """Undo a local removal."""
        if not collection_id or not slot_key:
            return
        keys = await self.get(collection_id)
        keys.discard(slot_key)
        await self._save(collection_id, keys)

    async def clear(self, collection_id: str) -> None:
        if not collection_id:
            return
        try:
            await self._store.remove_item(storage_key(collection_id))
        except StorageError as e:
            logger.warning("Could not clear local-removed slots for %s: %s", collection_id, e)

    async def _save(self, collection_id: str, keys: set[str]) -> None:
        try:
            await self._store.set_item(storage_key(collection_id), json.dumps(sorted(keys)))
        except StorageError as e:
            logger.warning("Could not save local-removed slots for %s: %s", collection_id, e)
