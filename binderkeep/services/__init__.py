"""
BinderKeep services.

Caching, synchronization and display logic over the storage layer.
"""

from binderkeep.services.cache_tiers import (
    CacheTier,
    MemoryTier,
    PersistentTier,
    TieredCache,
    normalize_key,
)
from binderkeep.services.card_display import (
    CardDisplayResolver,
    CardImage,
    ImageSource,
    display_variants,
    split_card_id,
)
from binderkeep.services.catalog_cache import (
    CatalogRefresher,
    CatalogRefreshError,
    MonotonicProgress,
)
from binderkeep.services.collection_sync import (
    CollectionSynchronizer,
    SyncContext,
    parse_collection_document,
)
from binderkeep.services.collections import CollectionRepository, order_for_display
from binderkeep.services.fallback_cache import CatalogFallbackCache
from binderkeep.services.image_overrides import (
    ImageOverrideStore,
    OverrideNamespace,
    safe_file_stem,
)
from binderkeep.services.local_removed import LocalRemovedSlots
from binderkeep.services.preferences import Preferences, ProfilePicture, ViewMode, ViewModeContext
from binderkeep.services.variant_eligibility import MASTER_BALL_RULES, augment, is_eligible

__all__ = [
    # Cache tiers
    "CacheTier",
    "MemoryTier",
    "PersistentTier",
    "TieredCache",
    "normalize_key",
    # Catalog
    "CatalogFallbackCache",
    "CatalogRefreshError",
    "CatalogRefresher",
    "MonotonicProgress",
    # Overrides and display
    "CardDisplayResolver",
    "CardImage",
    "ImageOverrideStore",
    "ImageSource",
    "OverrideNamespace",
    "display_variants",
    "safe_file_stem",
    "split_card_id",
    # Variant eligibility
    "MASTER_BALL_RULES",
    "augment",
    "is_eligible",
    # Collections
    "CollectionRepository",
    "CollectionSynchronizer",
    "LocalRemovedSlots",
    "SyncContext",
    "order_for_display",
    "parse_collection_document",
    # Preferences
    "Preferences",
    "ProfilePicture",
    "ViewMode",
    "ViewModeContext",
]
