"""
Catalog data cache and refresh orchestration.

Keeps the set list, the Pocket set ids and the species list in the
key-value store so the app works offline, and refreshes them when older
than CATALOG_CACHE_MAX_AGE. Single sets, single cards and card-name
searches are cached per key as they are first read.

A refresh fetches everything before it writes anything, then writes all
keys plus the last-sync timestamp in one multi_set. A failed or cancelled
refresh therefore leaves the previous cache exactly as it was.
"""

import asyncio
import json
import logging
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

import httpx

from binderkeep.clients.base import CatalogFetchError
from binderkeep.clients.pokeapi import get_species_list
from binderkeep.clients.tcgdex import (
    SET_IDS_WITHOUT_CARDS,
    get_card,
    get_cards_by_name,
    get_set,
    get_sets_raw,
    is_pocket_set,
    to_api_lang,
)
from binderkeep.config import CATALOG_CACHE_MAX_AGE
from binderkeep.models.catalog import SpeciesSummary
from binderkeep.services.cache_tiers import Clock, normalize_key, utc_now
from binderkeep.storage.errors import StorageError
from binderkeep.storage.key_value import KeyValueStore

logger = logging.getLogger(__name__)

PREFIX = "@binderkeep/cardcache/"
KEY_LAST_SYNC = f"{PREFIX}lastSyncAt"
KEY_SETS = f"{PREFIX}sets_en"
KEY_POCKET_SET_IDS = f"{PREFIX}pocketSetIds"
KEY_EXCLUDED_SET_IDS = f"{PREFIX}excludedSetIds"
KEY_SPECIES = f"{PREFIX}species"
KEY_SET_PREFIX = f"{PREFIX}set_"
KEY_CARD_PREFIX = f"{PREFIX}card_"
KEY_CARDS_BY_NAME_PREFIX = f"{PREFIX}name_"

# Longest encoded name kept in a name-search key
NAME_KEY_MAX_LENGTH = 120

ProgressCallback = Callable[[float, str], None]
CancelCheck = Callable[[], bool]


class CatalogRefreshError(Exception):
    """A refresh could not complete; the previous cache is untouched."""

    pass


class MonotonicProgress:
    """Wraps a progress callback so reported fractions never go down or exceed 1."""

    def __init__(self, callback: ProgressCallback) -> None:
        self._callback = callback
        self._fraction = 0.0

    @property
    def fraction(self) -> float:
        return self._fraction

    def __call__(self, fraction: float, message: str) -> None:
        self._fraction = min(1.0, max(self._fraction, fraction))
        self._callback(self._fraction, message)


def set_key(set_id: str) -> str:
    return KEY_SET_PREFIX + normalize_key(set_id)


def card_key(lang: str, card_id: str) -> str:
    return f"{KEY_CARD_PREFIX}{to_api_lang(lang)}_{normalize_key(card_id)}"


def name_search_key(lang: str, name: str, exact: bool) -> str:
    encoded = quote(name, safe="")[:NAME_KEY_MAX_LENGTH]
    return f"{KEY_CARDS_BY_NAME_PREFIX}{to_api_lang(lang)}_{int(exact)}_{encoded}"


def split_pocket_sets(raw_sets: list[dict[str, Any]]) -> tuple[list[dict[str, Any]], list[str]]:
    """Split a raw set list into (regular sets, Pocket set ids)."""
    sets = [s for s in raw_sets if not is_pocket_set(s)]
    pocket_ids = [s["id"] for s in raw_sets if is_pocket_set(s)]
    return sets, pocket_ids


def _species_to_json(species: list[SpeciesSummary]) -> str:
    return json.dumps(
        [
            {"dexId": s.dex_id, "name": s.name, **({"form": s.form} if s.form else {})}
            for s in species
        ]
    )


def _species_from_json(items: list[Any]) -> list[SpeciesSummary]:
    return [
        SpeciesSummary(dex_id=int(item["dexId"]), name=str(item["name"]), form=item.get("form"))
        for item in items
        if isinstance(item, dict)
    ]


class CatalogRefresher:
    """
    Staleness checks, full refreshes and read-through helpers.

    Usage:
        refresher = CatalogRefresher(store)
        if await refresher.is_cache_stale():
            await refresher.sync_card_data_with_progress(print)
    """

    def __init__(
        self,
        store: KeyValueStore,
        client: httpx.AsyncClient | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._client = client
        self._clock = clock
        self._refresh_task: asyncio.Task[bool] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # --- Cached reads ---

    async def _read_json(self, key: str) -> Any:
        try:
            raw = await self._store.get_item(key)
        except StorageError as e:
            logger.warning("Could not read %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return None

    async def get_last_sync_at(self) -> datetime | None:
        value = await self._read_json(KEY_LAST_SYNC)
        if not isinstance(value, int | float):
            return None
        return datetime.fromtimestamp(value / 1000, tz=UTC)

    async def is_cache_stale(self) -> bool:
        """True if the catalog was never synced or the last sync is too old."""
        last_sync = await self.get_last_sync_at()
        if last_sync is None:
            return True
        return self._clock() - last_sync > CATALOG_CACHE_MAX_AGE

    async def get_cached_sets(self) -> list[dict[str, Any]] | None:
        value = await self._read_json(KEY_SETS)
        return value if isinstance(value, list) else None

    async def get_cached_pocket_set_ids(self) -> list[str] | None:
        value = await self._read_json(KEY_POCKET_SET_IDS)
        return [v for v in value if isinstance(v, str)] if isinstance(value, list) else None

    async def get_cached_species(self) -> list[SpeciesSummary] | None:
        value = await self._read_json(KEY_SPECIES)
        if not isinstance(value, list):
            return None
        try:
            return _species_from_json(value)
        except (KeyError, TypeError, ValueError):
            return None

    async def get_cached_set(self, set_id: str) -> dict[str, Any] | None:
        value = await self._read_json(set_key(set_id))
        if isinstance(value, dict) and value.get("id") and isinstance(value.get("cards"), list):
            return value
        return None

    async def get_cached_card(self, lang: str, card_id: str) -> dict[str, Any] | None:
        value = await self._read_json(card_key(lang, card_id))
        return value if isinstance(value, dict) and value.get("id") is not None else None

    async def get_cached_cards_by_name(
        self, lang: str, name: str, exact: bool
    ) -> list[dict[str, Any]] | None:
        value = await self._read_json(name_search_key(lang, name, exact))
        return value if isinstance(value, list) else None

    async def get_excluded_set_ids(self) -> list[str]:
        """Set ids hidden from the set picker: built-in list plus discovered ones."""
        stored = await self._read_json(KEY_EXCLUDED_SET_IDS)
        discovered = [v for v in stored if isinstance(v, str)] if isinstance(stored, list) else []
        return list(dict.fromkeys([*SET_IDS_WITHOUT_CARDS, *discovered]))

    async def add_excluded_set_id(self, set_id: str) -> None:
        """Record a set that returned no cards so it is hidden next time."""
        current = await self.get_excluded_set_ids()
        if set_id in current:
            return
        try:
            await self._store.set_item(KEY_EXCLUDED_SET_IDS, json.dumps([*current, set_id]))
        except StorageError as e:
            logger.warning("Could not record excluded set %s: %s", set_id, e)

    # --- Refresh ---

    async def sync_card_data_with_progress(
        self,
        on_progress: ProgressCallback,
        cancelled: CancelCheck | None = None,
    ) -> bool:
        """
        Refresh the set list and species list, reporting progress.

        `on_progress(fraction, message)` receives non-decreasing fractions in
        [0, 1]. `cancelled` is polled between steps; once it returns True no
        state is written and False is returned. In-flight requests are not
        interrupted.

        Returns:
            True when the new data was committed, False if cancelled.

        Raises:
            CatalogRefreshError: On fetch or write failure. Prior cache is kept.
        """
        progress = MonotonicProgress(on_progress)
        is_cancelled = cancelled or (lambda: False)

        try:
            progress(0.1, "Loading card sets...")
            raw_sets = await get_sets_raw("en", client=self._client)
            if is_cancelled():
                return self._abandon("after set list")
            sets, pocket_ids = split_pocket_sets(raw_sets)

            progress(0.4, "Loading Pokémon list...")
            species = await get_species_list(client=self._client)
            if is_cancelled():
                return self._abandon("after species list")

            if not sets or not species:
                msg = f"Incomplete catalog data ({len(sets)} sets, {len(species)} species)"
                raise CatalogRefreshError(msg)

            progress(0.85, "Saving data...")
            now_ms = int(self._clock().timestamp() * 1000)
            await self._store.multi_set(
                [
                    (KEY_SETS, json.dumps(sets)),
                    (KEY_POCKET_SET_IDS, json.dumps(pocket_ids)),
                    (KEY_SPECIES, _species_to_json(species)),
                    (KEY_LAST_SYNC, json.dumps(now_ms)),
                ]
            )
        except CatalogFetchError as e:
            raise CatalogRefreshError(f"Catalog refresh failed: {e}") from e
        except StorageError as e:
            raise CatalogRefreshError(f"Could not save catalog data: {e}") from e

        logger.info("Catalog refreshed: %d sets, %d species", len(sets), len(species))
        progress(1.0, "Ready!")
        return True

    async def sync_card_data(self, cancelled: CancelCheck | None = None) -> bool:
        """Same as sync_card_data_with_progress without progress reporting."""
        return await self.sync_card_data_with_progress(lambda _fraction, _message: None, cancelled)

    def _abandon(self, stage: str) -> bool:
        logger.info("Catalog refresh cancelled %s; keeping cached data", stage)
        return False

    def refresh_in_background(self) -> asyncio.Task[bool]:
        """Start a refresh unless one is already running. Failures are logged."""
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = self._spawn(self._quiet_refresh())
        return self._refresh_task

    async def _quiet_refresh(self) -> bool:
        try:
            return await self.sync_card_data()
        except CatalogRefreshError as e:
            logger.warning("Background catalog refresh failed: %s", e)
            return False

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_for_background(self) -> None:
        """Wait for all background work started by this refresher."""
        if self._tasks:
            await asyncio.gather(*self._tasks)

    # --- Read-through helpers ---

    async def get_sets_with_cache(self) -> list[dict[str, Any]]:
        """
        Set list (Pocket sets excluded), cache first.

        A stale cache is still returned immediately and refreshed in the
        background. With no cache at all the list is fetched directly.

        Raises:
            CatalogFetchError: If nothing is cached and the fetch fails
        """
        cached = await self.get_cached_sets()
        if await self.is_cache_stale():
            self.refresh_in_background()
        if cached:
            return [s for s in cached if not is_pocket_set(s)]

        sets, pocket_ids = split_pocket_sets(await get_sets_raw("en", client=self._client))
        await self._write_quietly(
            [(KEY_SETS, json.dumps(sets)), (KEY_POCKET_SET_IDS, json.dumps(pocket_ids))]
        )
        return sets

    async def get_pocket_set_ids(self) -> list[str]:
        """Pocket set ids, fetched once if never cached."""
        cached = await self.get_cached_pocket_set_ids()
        if cached is not None:
            return cached
        _, pocket_ids = split_pocket_sets(await get_sets_raw("en", client=self._client))
        await self._write_quietly([(KEY_POCKET_SET_IDS, json.dumps(pocket_ids))])
        return pocket_ids

    async def get_known_pocket_set_ids(self) -> list[str]:
        """Pocket set ids, or an empty list when they cannot be loaded."""
        try:
            return await self.get_pocket_set_ids()
        except CatalogFetchError as e:
            logger.warning("Pocket set ids unavailable: %s", e)
            return []

    async def get_species_with_cache(self) -> list[SpeciesSummary]:
        """Species list, cache first, refreshed in the background when stale."""
        cached = await self.get_cached_species()
        if await self.is_cache_stale():
            self.refresh_in_background()
        if cached:
            return cached

        species = await get_species_list(client=self._client)
        await self._write_quietly([(KEY_SPECIES, _species_to_json(species))])
        return species

    async def get_set_with_cache(self, set_id: str) -> dict[str, Any]:
        """
        One set with its cards.

        A cached copy is returned immediately and re-fetched in the background.
        """
        cached = await self.get_cached_set(set_id)
        if cached is not None:
            self._spawn(self._refresh_set(set_id))
            return cached

        set_data = await get_set(set_id, client=self._client)
        await self._write_quietly([(set_key(set_id), json.dumps(set_data))])
        return set_data

    async def _refresh_set(self, set_id: str) -> None:
        try:
            set_data = await get_set(set_id, client=self._client)
        except CatalogFetchError as e:
            logger.debug("Background refresh of set %s failed: %s", set_id, e)
            return
        await self._write_quietly([(set_key(set_id), json.dumps(set_data))])

    async def get_card_with_cache(self, lang: str, card_id: str) -> dict[str, Any]:
        """
        One card with full details. Cached entries never expire.

        Raises:
            CatalogFetchError: If the card is not cached and the fetch fails
        """
        cached = await self.get_cached_card(lang, card_id)
        if cached is not None:
            return cached

        card = await get_card(card_id, lang, client=self._client)
        await self._write_quietly([(card_key(lang, card_id), json.dumps(card))])
        return card

    async def get_cards_by_name_with_cache(
        self, lang: str, name: str, exact: bool = False
    ) -> list[dict[str, Any]]:
        """
        Card briefs matching `name`, cached per language, name and match mode.

        Raises:
            CatalogFetchError: If the search is not cached and the fetch fails
        """
        cached = await self.get_cached_cards_by_name(lang, name, exact)
        if cached is not None:
            return cached

        cards = await get_cards_by_name(name, lang, exact, client=self._client)
        await self._write_quietly([(name_search_key(lang, name, exact), json.dumps(cards))])
        return cards

    async def _write_quietly(self, items: list[tuple[str, str]]) -> None:
        try:
            await self._store.multi_set(items)
        except StorageError as e:
            logger.warning("Could not cache catalog data: %s", e)
