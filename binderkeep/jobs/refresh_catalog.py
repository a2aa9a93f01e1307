"""
Refresh the cached catalog data.

Run this job to pull the latest set and species lists into the local store
so the app works offline.
"""

import asyncio
import logging

from binderkeep.clients.base import create_client
from binderkeep.db.database import engine
from binderkeep.services.catalog_cache import CatalogRefresher, CatalogRefreshError
from binderkeep.storage.key_value import KeyValueStore, SqlKeyValueStore

logger = logging.getLogger(__name__)


def log_progress(fraction: float, message: str) -> None:
    logger.info("[%3d%%] %s", round(fraction * 100), message)


async def run_refresh(store: KeyValueStore | None = None, *, force: bool = False) -> bool:
    """
    Refresh the catalog cache if it is stale (or always, with `force`).

    Returns True if new data was written.
    """
    if store is None:
        store = SqlKeyValueStore(engine)
        await store.initialize()

    async with create_client() as client:
        refresher = CatalogRefresher(store, client=client)
        if not force and not await refresher.is_cache_stale():
            logger.info("Catalog cache is fresh (last sync %s)", await refresher.get_last_sync_at())
            return False

        logger.info("Refreshing catalog cache...")
        try:
            return await refresher.sync_card_data_with_progress(log_progress)
        except CatalogRefreshError as e:
            logger.error("Failed to refresh catalog cache: %s", e)
            raise


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_refresh(force=True))


if __name__ == "__main__":
    main()
