"""
Collection repository.

Decides where a caller's collections live. Signed-in callers read and write
through the CollectionSynchronizer; signed-out callers (and signed-in
callers whose remote store is failing) use the device key-value store.
The first signed-in load that finds the cloud empty uploads any local
collections and binder order.
"""

import json
import logging
import uuid
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from binderkeep.models.collection import Collection, CollectionType, Slot, SlotCard
from binderkeep.services.cache_tiers import Clock, utc_now
from binderkeep.services.collection_sync import (
    CollectionSynchronizer,
    SyncContext,
    parse_collection_document,
)
from binderkeep.storage.errors import StorageError
from binderkeep.storage.key_value import KeyValueStore

logger = logging.getLogger(__name__)

LOCAL_COLLECTIONS_KEY = "@binderkeep/collections"
LOCAL_BINDER_ORDER_KEY = "@binderkeep/binderOrder"

# Fields set by the repository itself, never by creation options
MANAGED_FIELDS = frozenset({"id", "name", "type", "slots", "created_at", "updated_at"})

# Fields a caller may change after creation. `type` is fixed.
UPDATABLE_FIELDS = frozenset(
    {"name", "languages", "binder_color", "master_set_options", "edition_filter", "user_cards"}
)

MASTER_TYPES = frozenset(
    {CollectionType.COLLECT_THEM_ALL, CollectionType.MASTER_SET, CollectionType.MASTER_DEX}
)

# Type groups, in the order they appear when no explicit order covers them
DISPLAY_GROUPS: tuple[frozenset[CollectionType], ...] = (
    MASTER_TYPES,
    frozenset({CollectionType.SINGLE_POKEMON}),
    frozenset({CollectionType.BY_SET}),
    frozenset({CollectionType.CUSTOM}),
)

PocketSetIds = Callable[[], Awaitable[Sequence[str]]]


def order_for_display(collections: Sequence[Collection], order: Sequence[str]) -> list[Collection]:
    """
    Arrange collections for the binder shelf.

    With an explicit order, listed ids come first (unknown and repeated ids
    are skipped), followed by every unlisted collection grouped by type.
    Without one, the collect-them-all binder leads, then each type group
    sorted by creation time.
    """
    grouped = [[c for c in collections if c.type in group] for group in DISPLAY_GROUPS]

    if not order:
        result: list[Collection] = []
        for index, group in enumerate(grouped):
            ranked = sorted(group, key=lambda c: c.created_at)
            if index == 0:
                ranked.sort(key=lambda c: c.type != CollectionType.COLLECT_THEM_ALL)
            result.extend(ranked)
        return result

    by_id = {c.id: c for c in collections}
    ordered: list[Collection] = []
    seen: set[str] = set()
    for collection_id in order:
        collection = by_id.get(collection_id)
        if collection is not None and collection_id not in seen:
            ordered.append(collection)
            seen.add(collection_id)

    for group in grouped:
        ordered.extend(c for c in group if c.id not in seen)
    return ordered


class CollectionRepository:
    """
    CRUD over a caller's collections, routed by SyncContext.

    Callers must serialize writes for the same user; the remote push is
    not protected against overlapping calls.
    """

    def __init__(
        self,
        store: KeyValueStore,
        synchronizer: CollectionSynchronizer | None = None,
        clock: Clock = utc_now,
        pocket_set_ids: PocketSetIds | None = None,
    ) -> None:
        self._store = store
        self._sync = synchronizer
        self._pocket_set_ids = pocket_set_ids
        self._clock = clock
        self._display_cache: list[Collection] | None = None

    def _now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    def _new_id(self) -> str:
        return f"{self._now_ms()}-{uuid.uuid4().hex[:7]}"

    def _remote(self, ctx: SyncContext) -> CollectionSynchronizer | None:
        return self._sync if ctx.signed_in else None

    # --- Local mirror ---

    async def _read_local_list(self, key: str) -> list[Any]:
        try:
            raw = await self._store.get_item(key)
        except StorageError as e:
            logger.warning("Could not read %s: %s", key, e)
            return []
        if not raw:
            return []
        try:
            value = json.loads(raw)
        except ValueError:
            return []
        return value if isinstance(value, list) else []

    async def _load_local(self) -> list[Collection]:
        items = await self._read_local_list(LOCAL_COLLECTIONS_KEY)
        parsed = (parse_collection_document(str(i), item) for i, item in enumerate(items))
        return [c for c in parsed if c is not None]

    async def _load_local_order(self) -> list[str]:
        return [cid for cid in await self._read_local_list(LOCAL_BINDER_ORDER_KEY) if isinstance(cid, str)]

    # --- Load / save ---

    async def load_collections(self, ctx: SyncContext) -> list[Collection]:
        """Never raises for remote failures; falls back to local data."""
        remote = self._remote(ctx)
        if remote is None or ctx.uid is None:
            return await self._load_local()

        try:
            from_cloud = await remote.pull(ctx.uid, strict=True)
        except StorageError as e:
            logger.warning("Remote collections unavailable, using local copy: %s", e)
            return await self._load_local()

        if from_cloud:
            return from_cloud

        local = await self._load_local()
        if not local:
            return from_cloud

        logger.info("Uploading %d local collections for %s", len(local), ctx.uid)
        try:
            await remote.push(ctx.uid, local)
            order = await self._load_local_order()
            if order:
                await remote.push_order(ctx.uid, order)
        except StorageError as e:
            logger.warning("Local collection upload failed, will retry on next load: %s", e)
        return local

    async def save_collections(self, ctx: SyncContext, collections: Sequence[Collection]) -> None:
        """
        Persist the full collection list.

        Signed-in callers push to the remote store; if that fails the list
        is kept locally instead. Local write failures propagate.
        """
        remote = self._remote(ctx)
        if remote is not None and ctx.uid is not None:
            try:
                await remote.push(ctx.uid, collections)
                return
            except StorageError as e:
                logger.warning("Push failed for %s, saving locally: %s", ctx.uid, e)

        await self._store.set_item(
            LOCAL_COLLECTIONS_KEY, json.dumps([c.to_document() for c in collections])
        )

    # --- Mutations ---

    async def create_collection(
        self,
        ctx: SyncContext,
        collection_type: CollectionType,
        name: str,
        options: Mapping[str, Any] | None = None,
    ) -> Collection:
        """
        Create and persist a new collection.

        `options` maps Collection field names (e.g. set_id, master_set_options)
        to values; None values and empty lists are omitted.

        Raises:
            ValueError: If an option is not a Collection field or is one of
                MANAGED_FIELDS
        """
        options = dict(options or {})
        unknown = set(options) - set(Collection.model_fields)
        if unknown:
            raise ValueError(f"Unknown collection options: {sorted(unknown)}")
        managed = set(options) & MANAGED_FIELDS
        if managed:
            raise ValueError(f"Options cannot set: {sorted(managed)}")

        now = self._now_ms()
        fields = {k: v for k, v in options.items() if v is not None and v != []}
        collection = Collection.model_validate(
            {
                **fields,
                "id": self._new_id(),
                "name": name,
                "type": collection_type,
                "slots": [],
                "created_at": now,
                "updated_at": now,
            }
        )

        collections = await self.load_collections(ctx)
        collections.append(collection)
        await self.save_collections(ctx, collections)
        return collection

    async def update_collection(
        self, ctx: SyncContext, collection_id: str, updates: Mapping[str, Any]
    ) -> Collection | None:
        """
        Apply field updates to one collection.

        `updates` maps Collection field names to new values. Returns the
        updated collection, or None if not found.

        Raises:
            ValueError: If an update targets a field outside UPDATABLE_FIELDS
        """
        forbidden = set(updates) - UPDATABLE_FIELDS
        if forbidden:
            raise ValueError(f"Fields cannot be updated: {sorted(forbidden)}")

        collections = await self.load_collections(ctx)
        for index, existing in enumerate(collections):
            if existing.id == collection_id:
                updated = Collection.model_validate(
                    {**existing.model_dump(), **updates, "updated_at": self._now_ms()}
                )
                collections[index] = updated
                await self.save_collections(ctx, collections)
                return updated
        return None

    async def delete_collection(self, ctx: SyncContext, collection_id: str) -> bool:
        """
        Remove a collection and persist the shortened list.

        Remote deletion happens through push's cleanup step. Returns True if
        the collection existed.
        """
        collections = await self.load_collections(ctx)
        remaining = [c for c in collections if c.id != collection_id]
        await self.save_collections(ctx, remaining)
        return len(remaining) != len(collections)

    async def set_slot(
        self, ctx: SyncContext, collection_id: str, key: str, card: SlotCard | None
    ) -> Collection | None:
        """Set or clear the card in slot `key`. Returns None if the collection is missing."""
        collections = await self.load_collections(ctx)
        for index, existing in enumerate(collections):
            if existing.id != collection_id:
                continue

            new_slot = Slot(key=key, card=card)
            slots = list(existing.slots)
            position = next((i for i, s in enumerate(slots) if s.key == key), None)
            if position is None:
                slots.append(new_slot)
            else:
                slots[position] = new_slot

            updated = existing.model_copy(update={"slots": slots, "updated_at": self._now_ms()})
            collections[index] = updated
            await self.save_collections(ctx, collections)
            return updated
        return None

    async def ensure_collect_them_all(self, ctx: SyncContext) -> Collection:
        """Return the collect-them-all binder, creating it if absent."""
        for collection in await self.load_collections(ctx):
            if collection.type == CollectionType.COLLECT_THEM_ALL:
                return collection
        return await self.create_collection(
            ctx,
            CollectionType.COLLECT_THEM_ALL,
            "Collect Them All",
            {"binder_color": "purple"},
        )

    # --- Binder order ---

    async def get_binder_order(self, ctx: SyncContext) -> list[str]:
        remote = self._remote(ctx)
        if remote is not None and ctx.uid is not None:
            return await remote.pull_order(ctx.uid)
        return await self._load_local_order()

    async def save_binder_order(self, ctx: SyncContext, order: Sequence[str]) -> None:
        remote = self._remote(ctx)
        if remote is not None and ctx.uid is not None:
            try:
                await remote.push_order(ctx.uid, order)
                return
            except StorageError as e:
                logger.warning("Binder order push failed for %s, saving locally: %s", ctx.uid, e)
        await self._store.set_item(LOCAL_BINDER_ORDER_KEY, json.dumps(list(order)))

    # --- Display ---

    async def collections_in_display_order(
        self, ctx: SyncContext, collections: Sequence[Collection] | None = None
    ) -> list[Collection]:
        """Displayable collections in shelf order. By-set binders for Pocket sets are hidden."""
        if collections is None:
            collections = await self.load_collections(ctx)
        visible = await self._without_pocket_binders(collections)
        return order_for_display(visible, await self.get_binder_order(ctx))

    async def _without_pocket_binders(self, collections: Sequence[Collection]) -> list[Collection]:
        has_set_binders = any(c.type == CollectionType.BY_SET and c.set_id for c in collections)
        if self._pocket_set_ids is None or not has_set_binders:
            return list(collections)
        pocket_ids = set(await self._pocket_set_ids())
        return [
            c for c in collections if c.type != CollectionType.BY_SET or c.set_id not in pocket_ids
        ]

    async def preload_for_display(self, ctx: SyncContext) -> list[Collection]:
        """Load, order and cache collections for instant shelf rendering."""
        self._display_cache = await self.collections_in_display_order(ctx)
        return self._display_cache

    def get_cached(self) -> list[Collection] | None:
        return self._display_cache

    def get_cached_by_id(self, collection_id: str) -> Collection | None:
        if self._display_cache is None:
            return None
        return next((c for c in self._display_cache if c.id == collection_id), None)
