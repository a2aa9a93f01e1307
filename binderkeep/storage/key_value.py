"""
Persistent key-value store.

A process-wide, async, string-keyed durable store with get/set/remove/list.
`SqlKeyValueStore` is the on-device implementation; `MemoryKeyValueStore`
serves tests and contexts without durable storage.
"""

from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from binderkeep.db.database import create_session_factory, create_tables
from binderkeep.db.operations import delete_value, get_value, list_keys, set_value
from binderkeep.storage.errors import StorageError, StoreNotInitializedError


class KeyValueStore(Protocol):
    """String key to string value store."""

    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def multi_set(self, items: list[tuple[str, str]]) -> None: ...

    async def remove_item(self, key: str) -> None: ...

    async def list_keys(self, prefix: str = "") -> list[str]: ...


class MemoryKeyValueStore:
    """Dictionary-backed store. Contents live for the lifetime of the object."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    async def multi_set(self, items: list[tuple[str, str]]) -> None:
        self._data.update(items)

    async def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    async def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class SqlKeyValueStore:
    """
    Key-value store persisted through SQLAlchemy.

    Every call runs in its own session and commits on success. `multi_set`
    writes all items in a single transaction. SQLAlchemy failures are
    re-raised as StorageError.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = create_session_factory(engine)
        self._initialized = False

    async def initialize(self) -> None:
        """Create the backing table. Must be awaited before first use."""
        await create_tables(self._engine)
        self._initialized = True

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise StoreNotInitializedError(type(self).__name__)

    async def get_item(self, key: str) -> str | None:
        self._require_initialized()
        try:
            async with self._session_factory() as session:
                return await get_value(session, key)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read key '{key}': {e}") from e

    async def set_item(self, key: str, value: str) -> None:
        await self.multi_set([(key, value)])

    async def multi_set(self, items: list[tuple[str, str]]) -> None:
        self._require_initialized()
        try:
            async with self._session_factory() as session:
                for key, value in items:
                    await set_value(session, key, value)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write {len(items)} key(s): {e}") from e

    async def remove_item(self, key: str) -> None:
        self._require_initialized()
        try:
            async with self._session_factory() as session:
                await delete_value(session, key)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to remove key '{key}': {e}") from e

    async def list_keys(self, prefix: str = "") -> list[str]:
        self._require_initialized()
        try:
            async with self._session_factory() as session:
                return await list_keys(session, prefix)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list keys with prefix '{prefix}': {e}") from e
