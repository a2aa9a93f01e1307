"""Tests for card display resolution."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from binderkeep.models.catalog import FallbackCard
from binderkeep.models.collection import CardVariant
from binderkeep.services.card_display import (
    CardDisplayResolver,
    ImageSource,
    display_variants,
    is_single_version_card,
    split_card_id,
    variants_from_card,
)
from binderkeep.services.fallback_cache import CatalogFallbackCache
from binderkeep.services.image_overrides import ImageOverrideStore, OverrideNamespace
from binderkeep.storage.key_value import MemoryKeyValueStore


@pytest.fixture
def overrides(tmp_path: Path) -> ImageOverrideStore:
    return ImageOverrideStore(tmp_path)


@pytest.fixture
def fallback(kv_store: MemoryKeyValueStore) -> CatalogFallbackCache:
    cache = CatalogFallbackCache(kv_store)
    cache.resolve = AsyncMock(return_value=FallbackCard(image_large="https://f/large.png", image_small="https://f/small.png"))
    return cache


class TestSplitCardId:
    def test_splits_at_last_hyphen(self) -> None:
        """Set ids may themselves contain dots and hyphens."""
        assert split_card_id("sv03.5-042") == ("sv03.5", "042")
        assert split_card_id("swsh12pt5gg-GG01") == ("swsh12pt5gg", "GG01")
        assert split_card_id("a-b-7") == ("a-b", "7")

    def test_no_hyphen(self) -> None:
        """Ids without a hyphen have no set part."""
        assert split_card_id("promo") == ("", "promo")


class TestVariants:
    def test_catalog_flags(self) -> None:
        """Only variants flagged true are offered."""
        card = {"variants": {"normal": False, "reverse": True, "holo": True}}

        assert variants_from_card(card) == [CardVariant.REVERSE, CardVariant.HOLO]

    def test_defaults_to_normal(self) -> None:
        """Cards without flags fall back to normal."""
        assert variants_from_card(None) == [CardVariant.NORMAL]
        assert variants_from_card({"variants": {}}) == [CardVariant.NORMAL]

    def test_single_version_names(self) -> None:
        """V, ex, GX, VMAX and VSTAR cards have a single printing."""
        assert is_single_version_card({"name": "Charizard VMAX"})
        assert is_single_version_card({"name": "Pidgeot ex"})
        assert not is_single_version_card({"name": "Vulpix"})

    def test_display_variants_adds_bonus(self) -> None:
        """Eligible cards gain the Master Ball variant."""
        card = {"name": "Bulbasaur", "variants": {"normal": True, "reverse": True}}

        assert display_variants(card, "sv03.5", "001") == [
            CardVariant.NORMAL,
            CardVariant.REVERSE,
            CardVariant.MASTER_BALL,
        ]

    def test_display_variants_single_version(self) -> None:
        """Single-version cards collapse to normal before augmenting."""
        card = {"name": "Pidgeot ex", "variants": {"normal": True, "holo": True}}

        assert display_variants(card, "SV8a", "100") == [CardVariant.NORMAL]


class TestCardDisplayResolver:
    async def test_override_wins(
        self, overrides: ImageOverrideStore, fallback: CatalogFallbackCache, tmp_path: Path
    ) -> None:
        """A local override beats the catalog image."""
        source = tmp_path / "src.jpg"
        source.write_bytes(b"img")
        saved = await overrides.set_override("base1-4", source, OverrideNamespace.ADMIN)

        image = await CardDisplayResolver(overrides, fallback).resolve_image("base1-4", "https://cat/4.png")

        assert image is not None
        assert image.source == ImageSource.OVERRIDE
        assert image.uri == saved.as_uri()

    async def test_catalog_before_fallback(
        self, overrides: ImageOverrideStore, fallback: CatalogFallbackCache
    ) -> None:
        """The catalog image is used without consulting the fallback."""
        image = await CardDisplayResolver(overrides, fallback).resolve_image("base1-4", "https://cat/4.png")

        assert image is not None
        assert image.source == ImageSource.CATALOG
        fallback.resolve.assert_not_awaited()

    async def test_fallback_last(
        self, overrides: ImageOverrideStore, fallback: CatalogFallbackCache
    ) -> None:
        """Without override or catalog image the fallback catalog is used."""
        image = await CardDisplayResolver(overrides, fallback).resolve_image("base1-4")

        assert image is not None
        assert image.source == ImageSource.FALLBACK
        assert image.uri == "https://f/large.png"

    async def test_nothing_available(self, overrides: ImageOverrideStore, kv_store: MemoryKeyValueStore) -> None:
        """None when no source has an image."""
        fallback = CatalogFallbackCache(kv_store)
        fallback.resolve = AsyncMock(return_value=None)

        assert await CardDisplayResolver(overrides, fallback).resolve_image("base1-4") is None
