"""Tests for the catalog fallback cache."""

import json
from datetime import timedelta

import httpx
import pytest
import respx

from binderkeep.clients.base import CatalogFetchError
from binderkeep.clients.pokemon_tcg import fetch_card, parse_card
from binderkeep.services.fallback_cache import CACHE_KEY_PREFIX, CatalogFallbackCache
from binderkeep.storage.key_value import MemoryKeyValueStore

CARD_URL = "https://api.pokemontcg.io/v2/cards/base1-4"


@pytest.fixture
def charizard_response() -> dict:
    """Sample pokemontcg.io /cards/{id} response."""
    return {
        "data": {
            "id": "base1-4",
            "name": "Charizard",
            "number": "4",
            "set": {"id": "base1", "name": "Base"},
            "images": {
                "small": "https://images.pokemontcg.io/base1/4.png",
                "large": "https://images.pokemontcg.io/base1/4_hires.png",
            },
        }
    }


class TestParseCard:
    def test_parses_images_and_set(self, charizard_response: dict) -> None:
        """Extracts both images, the name and the owning set."""
        card = parse_card(charizard_response)

        assert card is not None
        assert card.image_large.endswith("4_hires.png")
        assert card.image_small.endswith("4.png")
        assert card.name == "Charizard"
        assert card.set is not None and card.set.id == "base1"

    def test_cross_fills_missing_size(self) -> None:
        """A card with only a small image uses it for both sizes."""
        card = parse_card({"data": {"images": {"small": "s.png"}}})

        assert card is not None
        assert card.image_large == "s.png"
        assert card.best_image == "s.png"

    def test_no_images_is_unusable(self) -> None:
        """Responses without any image yield None."""
        assert parse_card({"data": {"name": "Blank", "images": {}}}) is None
        assert parse_card({"error": "nope"}) is None


class TestFetchCard:
    @respx.mock
    async def test_unknown_card_returns_none(self) -> None:
        """A 404 means the catalog does not know the card."""
        respx.get(CARD_URL).mock(return_value=httpx.Response(404))

        assert await fetch_card("base1-4") is None

    @respx.mock
    async def test_server_error_raises(self) -> None:
        """Other HTTP failures are wrapped in CatalogFetchError."""
        respx.get(CARD_URL).mock(return_value=httpx.Response(500))

        with pytest.raises(CatalogFetchError, match="HTTP 500"):
            await fetch_card("base1-4")

    @respx.mock
    async def test_sends_api_key(self, charizard_response: dict) -> None:
        """The API key travels in the X-Api-Key header when configured."""
        route = respx.get(CARD_URL).mock(return_value=httpx.Response(200, json=charizard_response))

        await fetch_card("base1-4", api_key="secret")

        assert route.calls.last.request.headers["X-Api-Key"] == "secret"


class TestCatalogFallbackCache:
    @respx.mock
    async def test_fetches_once_then_serves_from_memory(
        self, kv_store: MemoryKeyValueStore, clock, charizard_response: dict
    ) -> None:
        """Second resolve does not hit the network."""
        route = respx.get(CARD_URL).mock(return_value=httpx.Response(200, json=charizard_response))
        cache = CatalogFallbackCache(kv_store, clock=clock)

        first = await cache.resolve("base1-4")
        second = await cache.resolve("base1-4")

        assert first == second
        assert route.call_count == 1

    @respx.mock
    async def test_persists_with_timestamp(
        self, kv_store: MemoryKeyValueStore, clock, charizard_response: dict
    ) -> None:
        """Fetched cards are written to the persistent store under the cache prefix."""
        respx.get(CARD_URL).mock(return_value=httpx.Response(200, json=charizard_response))
        cache = CatalogFallbackCache(kv_store, clock=clock)

        await cache.resolve("base1-4")

        record = json.loads(await kv_store.get_item(CACHE_KEY_PREFIX + "base1-4"))
        assert record["imageLarge"].endswith("4_hires.png")
        assert record["name"] == "Charizard"
        assert record["set"] == {"id": "base1", "name": "Base"}
        assert record["ts"] == int(clock().timestamp() * 1000)

    @respx.mock
    async def test_persistent_hit_within_seven_days(
        self, kv_store: MemoryKeyValueStore, clock, charizard_response: dict
    ) -> None:
        """A new process reuses a persisted entry younger than seven days."""
        route = respx.get(CARD_URL).mock(return_value=httpx.Response(200, json=charizard_response))
        await CatalogFallbackCache(kv_store, clock=clock).resolve("base1-4")

        clock.advance(timedelta(days=6, hours=23))
        restarted = CatalogFallbackCache(kv_store, clock=clock)

        assert await restarted.resolve("base1-4") is not None
        assert route.call_count == 1
        assert len(restarted.memory) == 1

    @respx.mock
    async def test_persistent_entry_expires_after_seven_days(
        self, kv_store: MemoryKeyValueStore, clock, charizard_response: dict
    ) -> None:
        """An entry older than seven days is fetched again."""
        route = respx.get(CARD_URL).mock(return_value=httpx.Response(200, json=charizard_response))
        await CatalogFallbackCache(kv_store, clock=clock).resolve("base1-4")

        clock.advance(timedelta(days=7, hours=1))
        await CatalogFallbackCache(kv_store, clock=clock).resolve("base1-4")

        assert route.call_count == 2

    @respx.mock
    async def test_no_image_is_not_cached(self, kv_store: MemoryKeyValueStore, clock) -> None:
        """Cards without images resolve to None and are asked for again later."""
        route = respx.get(CARD_URL).mock(
            return_value=httpx.Response(200, json={"data": {"id": "base1-4", "images": {}}})
        )
        cache = CatalogFallbackCache(kv_store, clock=clock)

        assert await cache.resolve("base1-4") is None
        assert await cache.resolve("base1-4") is None

        assert route.call_count == 2
        assert await kv_store.list_keys(CACHE_KEY_PREFIX) == []

    @respx.mock
    async def test_network_failure_resolves_none(self, kv_store: MemoryKeyValueStore, clock) -> None:
        """Transport errors are absorbed and nothing is cached."""
        respx.get(CARD_URL).mock(side_effect=httpx.ConnectError("offline"))
        cache = CatalogFallbackCache(kv_store, clock=clock)

        assert await cache.resolve("base1-4") is None
        assert len(cache.memory) == 0

    @respx.mock
    async def test_persistence_failure_still_returns_card(
        self, flaky_store, clock, charizard_response: dict
    ) -> None:
        """A failing store does not stop the card from being returned."""
        flaky_store.fail_reads = True
        flaky_store.fail_writes = True
        respx.get(CARD_URL).mock(return_value=httpx.Response(200, json=charizard_response))
        cache = CatalogFallbackCache(flaky_store, clock=clock)

        card = await cache.resolve("base1-4")

        assert card is not None
        assert await cache.fallback_image_url("base1-4") == card.image_large

    async def test_empty_id_resolves_none(self, kv_store: MemoryKeyValueStore) -> None:
        """Empty ids never reach the network."""
        assert await CatalogFallbackCache(kv_store).resolve("") is None
