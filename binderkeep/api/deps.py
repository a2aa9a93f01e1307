"""
Service wiring for the API.

The lifespan handler builds one AppServices per process and stores it on
app.state; endpoints receive it through the get_services dependency, which
tests override with memory-backed stores.
"""

from dataclasses import dataclass
from pathlib import Path

import httpx
from fastapi import Request

from binderkeep.config import settings
from binderkeep.services.card_display import CardDisplayResolver
from binderkeep.services.catalog_cache import CatalogRefresher
from binderkeep.services.collection_sync import CollectionSynchronizer
from binderkeep.services.collections import CollectionRepository
from binderkeep.services.fallback_cache import CatalogFallbackCache
from binderkeep.services.image_overrides import ImageOverrideStore
from binderkeep.services.local_removed import LocalRemovedSlots
from binderkeep.services.preferences import Preferences
from binderkeep.storage.documents import DocumentStore
from binderkeep.storage.key_value import KeyValueStore


@dataclass
class AppServices:
    """Every long-lived collaborator an endpoint may need."""

    store: KeyValueStore
    documents: DocumentStore
    synchronizer: CollectionSynchronizer
    local_removed: LocalRemovedSlots
    fallback: CatalogFallbackCache
    overrides: ImageOverrideStore
    display: CardDisplayResolver
    refresher: CatalogRefresher
    repository: CollectionRepository
    preferences: Preferences


def build_services(
    store: KeyValueStore,
    documents: DocumentStore,
    client: httpx.AsyncClient | None = None,
    documents_dir: Path | None = None,
) -> AppServices:
    """Assemble services over already-initialized stores."""
    fallback = CatalogFallbackCache(store, client=client)
    synchronizer = CollectionSynchronizer(documents)
    refresher = CatalogRefresher(store, client=client)
    overrides = ImageOverrideStore(documents_dir, root_name=settings.overrides_root)
    return AppServices(
        store=store,
        documents=documents,
        synchronizer=synchronizer,
        local_removed=LocalRemovedSlots(store),
        fallback=fallback,
        overrides=overrides,
        display=CardDisplayResolver(overrides, fallback),
        refresher=refresher,
        repository=CollectionRepository(
            store, synchronizer, pocket_set_ids=refresher.get_known_pocket_set_ids
        ),
        preferences=Preferences(store),
    )


def get_services(request: Request) -> AppServices:
    """Dependency returning the process-wide services."""
    services: AppServices = request.app.state.services
    return services
