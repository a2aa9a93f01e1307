"""
Catalog fallback cache.

Resolves a card id to its best-known image and metadata from the
secondary catalog (pokemontcg.io), caching results in process memory and
in the persistent key-value store for up to seven days.
"""

import logging

import httpx

from binderkeep.clients.base import CatalogFetchError
from binderkeep.clients.pokemon_tcg import fetch_card
from binderkeep.config import FALLBACK_CACHE_MAX_AGE
from binderkeep.models.catalog import FallbackCard
from binderkeep.services.cache_tiers import Clock, MemoryTier, PersistentTier, TieredCache, utc_now
from binderkeep.storage.key_value import KeyValueStore

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "@binderkeep/ptcgio/"


class CatalogFallbackCache:
    """
    Memory -> persistent store -> network resolution for fallback cards.

    Usage:
        cache = CatalogFallbackCache(store)
        card = await cache.resolve("base1-4")
    """

    def __init__(
        self,
        store: KeyValueStore,
        client: httpx.AsyncClient | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._client = client
        self.memory: MemoryTier[FallbackCard] = MemoryTier()
        self.persistent: PersistentTier[FallbackCard] = PersistentTier(
            store,
            prefix=CACHE_KEY_PREFIX,
            encode=FallbackCard.to_dict,
            decode=FallbackCard.from_dict,
            max_age=FALLBACK_CACHE_MAX_AGE,
            clock=clock,
        )
        self._cache: TieredCache[FallbackCard] = TieredCache(
            [self.memory, self.persistent], self._fetch
        )

    async def resolve(self, card_id: str) -> FallbackCard | None:
        """
        Return the cached or freshly fetched fallback card, or None.

        None means either "the catalog has no image for this card" or "the
        catalog could not be reached"; neither is cached, so a later call
        tries the network again.
        """
        if not card_id:
            return None
        return await self._cache.get(card_id)

    async def fallback_image_url(self, card_id: str) -> str | None:
        """Best image URL for `card_id` (large, else small), or None."""
        card = await self.resolve(card_id)
        return card.best_image if card else None

    async def _fetch(self, card_id: str) -> FallbackCard | None:
        try:
            card = await fetch_card(card_id, client=self._client)
        except CatalogFetchError as e:
            logger.warning("Fallback lookup failed for %s: %s", card_id, e)
            return None

        if card is None:
            logger.debug("No fallback image for %s", card_id)
        return card
