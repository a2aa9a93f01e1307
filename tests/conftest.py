from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from binderkeep.api.deps import AppServices, build_services, get_services
from binderkeep.main import app
from binderkeep.models.collection import Collection, CollectionType, Slot, SlotCard
from binderkeep.storage.documents import MemoryDocumentStore
from binderkeep.storage.errors import StorageError
from binderkeep.storage.key_value import MemoryKeyValueStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class FlakyKeyValueStore(MemoryKeyValueStore):
    """Memory store whose reads and writes can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False

    async def get_item(self, key: str) -> str | None:
        if self.fail_reads:
            raise StorageError("read failed")
        return await super().get_item(key)

    async def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageError("write failed")
        await super().set_item(key, value)

    async def multi_set(self, items: list[tuple[str, str]]) -> None:
        if self.fail_writes:
            raise StorageError("write failed")
        await super().multi_set(items)

    async def remove_item(self, key: str) -> None:
        if self.fail_writes:
            raise StorageError("write failed")
        await super().remove_item(key)


class FlakyDocumentStore(MemoryDocumentStore):
    """Memory document store that can be taken offline."""

    def __init__(self) -> None:
        super().__init__()
        self.offline = False

    def _check(self) -> None:
        if self.offline:
            raise StorageError("remote store offline")

    async def get_document(self, path: str) -> dict[str, Any] | None:
        self._check()
        return await super().get_document(path)

    async def set_document(self, path: str, data: dict[str, Any]) -> None:
        self._check()
        await super().set_document(path, data)

    async def delete_document(self, path: str) -> None:
        self._check()
        await super().delete_document(path)

    async def list_documents(self, parent: str) -> list[tuple[str, dict[str, Any]]]:
        self._check()
        return await super().list_documents(parent)


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at 2024-06-01 12:00 UTC."""
    return FakeClock(datetime(2024, 6, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def flaky_store() -> FlakyKeyValueStore:
    return FlakyKeyValueStore()


@pytest.fixture
def doc_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def flaky_documents() -> FlakyDocumentStore:
    return FlakyDocumentStore()


@pytest.fixture
def make_collection():
    """Factory for minimal valid collections."""

    def _make(
        collection_id: str,
        name: str | None = None,
        collection_type: CollectionType = CollectionType.CUSTOM,
        created_at: int = 1_700_000_000_000,
        slots: list[Slot] | None = None,
    ) -> Collection:
        return Collection(
            id=collection_id,
            name=name or f"Binder {collection_id}",
            type=collection_type,
            slots=slots or [],
            created_at=created_at,
            updated_at=created_at,
        )

    return _make


@pytest.fixture
def sample_slot() -> Slot:
    return Slot(key="25", card=SlotCard(card_id="base1-58"))


@pytest.fixture
def services(tmp_path) -> AppServices:
    """Memory-backed services with overrides stored under tmp_path."""
    return build_services(MemoryKeyValueStore(), MemoryDocumentStore(), documents_dir=tmp_path)


@pytest.fixture
async def client(services: AppServices):
    """Provide an async test client wired to memory-backed services."""
    app.dependency_overrides[get_services] = lambda: services

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
