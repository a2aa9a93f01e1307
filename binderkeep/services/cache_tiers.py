"""
Ordered cache tiers.

A TieredCache walks its tiers in order. The first hit wins and is copied
into every tier ahead of it; a miss on every tier calls the loader once and
writes a non-None result through all tiers. Precedence is the order of the
tier list.
"""

import json
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any, Generic, Protocol, TypeVar

from binderkeep.storage.errors import StorageError
from binderkeep.storage.key_value import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9-]")


def utc_now() -> datetime:
    return datetime.now(UTC)


def normalize_key(key: str) -> str:
    """Replace every character outside [a-zA-Z0-9-] with an underscore."""
    return _UNSAFE_KEY_CHARS.sub("_", key)


class CacheTier(Protocol[T]):
    """Uniform get/set capability shared by every tier."""

    name: str

    async def get(self, key: str) -> T | None: ...

    async def set(self, key: str, value: T) -> None: ...


class MemoryTier(Generic[T]):
    """Unbounded in-process tier. No expiry; cleared when the process ends."""

    name = "memory"

    def __init__(self) -> None:
        self._entries: dict[str, T] = {}

    async def get(self, key: str) -> T | None:
        return self._entries.get(key)

    async def set(self, key: str, value: T) -> None:
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class PersistentTier(Generic[T]):
    """
    Tier stored in the key-value store as JSON with a write timestamp.

    Records older than `max_age`, records without a timestamp, and records
    that fail to decode are all reported as misses.
    """

    name = "persistent"

    def __init__(
        self,
        store: KeyValueStore,
        prefix: str,
        encode: Callable[[T], dict[str, Any]],
        decode: Callable[[dict[str, Any]], T],
        max_age: timedelta,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._prefix = prefix
        self._encode = encode
        self._decode = decode
        self._max_age = max_age
        self._clock = clock

    def storage_key(self, key: str) -> str:
        return self._prefix + normalize_key(key)

    def _now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    async def get(self, key: str) -> T | None:
        raw = await self._store.get_item(self.storage_key(key))
        if raw is None:
            return None

        try:
            record = json.loads(raw)
            written_at = int(record["ts"])
            if self._now_ms() - written_at > self._max_age.total_seconds() * 1000:
                return None
            return self._decode(record)
        except (ValueError, KeyError, TypeError) as e:
            logger.debug("Discarding unreadable cache record for %s: %s", key, e)
            return None

    async def set(self, key: str, value: T) -> None:
        record = {**self._encode(value), "ts": self._now_ms()}
        await self._store.set_item(self.storage_key(key), json.dumps(record))


class TieredCache(Generic[T]):
    """
    Generic resolver over an ordered list of tiers plus a loader.

    Storage failures in a tier are logged: on read the tier counts as a
    miss, on write the value simply is not cached there. The loader is
    called at most once per `get` and never retried.
    """

    def __init__(
        self,
        tiers: Sequence[CacheTier[T]],
        loader: Callable[[str], Awaitable[T | None]],
    ) -> None:
        self._tiers = list(tiers)
        self._loader = loader

    async def get(self, key: str) -> T | None:
        for index, tier in enumerate(self._tiers):
            value = await self._read(tier, key)
            if value is not None:
                await self._write(self._tiers[:index], key, value)
                return value

        value = await self._loader(key)
        if value is None:
            return None

        await self._write(self._tiers, key, value)
        return value

    async def _read(self, tier: CacheTier[T], key: str) -> T | None:
        try:
            return await tier.get(key)
        except StorageError as e:
            logger.warning("Cache tier %s unreadable for %s: %s", tier.name, key, e)
            return None

    async def _write(self, tiers: Sequence[CacheTier[T]], key: str, value: T) -> None:
        for tier in tiers:
            try:
                await tier.set(key, value)
            except StorageError as e:
                logger.warning("Cache tier %s not updated for %s: %s", tier.name, key, e)
