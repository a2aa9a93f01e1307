"""
Card display resolution.

Combines the local stores into what a card cell shows:
image from a local override, else the primary catalog image, else the
fallback catalog; variants from the catalog entry plus any bonus variant.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from binderkeep.models.collection import CardVariant
from binderkeep.services.fallback_cache import CatalogFallbackCache
from binderkeep.services.image_overrides import ImageOverrideStore
from binderkeep.services.variant_eligibility import augment

# Names that have a single printing per set (no reverse/holo in packs)
_SINGLE_VERSION_SUFFIX = re.compile(r"\s(V|ex|GX|VMAX|VSTAR)$", re.IGNORECASE)


class ImageSource(str, Enum):
    OVERRIDE = "override"
    CATALOG = "catalog"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class CardImage:
    uri: str
    source: ImageSource


def split_card_id(card_id: str) -> tuple[str, str]:
    """
    Split "{setId}-{localNumber}" at the last hyphen.

    "sv03.5-042" -> ("sv03.5", "042"). Ids without a hyphen give ("", card_id).
    """
    set_id, _, local_number = card_id.rpartition("-")
    return set_id, local_number


def variants_from_card(card: dict[str, Any] | None) -> list[CardVariant]:
    """Variants the catalog marks as existing; [NORMAL] when it says nothing."""
    flags = (card or {}).get("variants")
    if not isinstance(flags, dict):
        return [CardVariant.NORMAL]
    found = [v for v in CardVariant if flags.get(v.value) is True]
    return found or [CardVariant.NORMAL]


def is_single_version_card(card: dict[str, Any] | None) -> bool:
    name = str((card or {}).get("name") or "").strip()
    return bool(name) and bool(_SINGLE_VERSION_SUFFIX.search(name))


def display_variants(
    card: dict[str, Any] | None, set_id: str, local_number: str | None
) -> list[CardVariant]:
    """
    Variants to offer for a catalog card.

    Single-version cards (V, ex, GX, ...) show only NORMAL when available.
    The bonus variant is appended when the card qualifies.
    """
    variants = variants_from_card(card)
    if is_single_version_card(card) and CardVariant.NORMAL in variants:
        variants = [CardVariant.NORMAL]
    return augment(variants, set_id, local_number, card)


class CardDisplayResolver:
    """Image resolution across overrides, catalog image and fallback cache."""

    def __init__(self, overrides: ImageOverrideStore, fallback: CatalogFallbackCache) -> None:
        self._overrides = overrides
        self._fallback = fallback

    async def resolve_image(self, card_id: str, catalog_image: str | None = None) -> CardImage | None:
        """
        Best image for `card_id`.

        Args:
            card_id: Catalog card id
            catalog_image: Image URL from the primary catalog entry, if any
        """
        override = await self._overrides.resolve_best(card_id)
        if override is not None:
            return CardImage(uri=override.absolute().as_uri(), source=ImageSource.OVERRIDE)

        if catalog_image:
            return CardImage(uri=catalog_image, source=ImageSource.CATALOG)

        fallback = await self._fallback.fallback_image_url(card_id)
        if fallback:
            return CardImage(uri=fallback, source=ImageSource.FALLBACK)
        return None
