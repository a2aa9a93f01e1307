"""Tests for the SQLAlchemy-backed stores and CRUD operations."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from binderkeep.db.operations import (
    delete_value,
    get_document,
    get_value,
    list_documents,
    list_keys,
    set_value,
    split_path,
    upsert_document,
)
from binderkeep.models.db import Base
from binderkeep.storage.documents import SqlDocumentStore
from binderkeep.storage.errors import StoreNotInitializedError
from binderkeep.storage.key_value import SqlKeyValueStore


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
async def kv(async_engine) -> SqlKeyValueStore:
    store = SqlKeyValueStore(async_engine)
    await store.initialize()
    return store


@pytest.fixture
async def documents(async_engine) -> SqlDocumentStore:
    store = SqlDocumentStore(async_engine)
    await store.initialize()
    return store


class TestKeyValueOperations:
    async def test_set_and_get(self, session: AsyncSession) -> None:
        """Can store and read a value."""
        await set_value(session, "a", "1")

        assert await get_value(session, "a") == "1"

    async def test_set_overwrites(self, session: AsyncSession) -> None:
        """Setting an existing key replaces its value."""
        await set_value(session, "a", "1")
        await set_value(session, "a", "2")

        assert await get_value(session, "a") == "2"

    async def test_delete(self, session: AsyncSession) -> None:
        """Delete reports whether a row was removed."""
        await set_value(session, "a", "1")

        assert await delete_value(session, "a") is True
        assert await delete_value(session, "a") is False
        assert await get_value(session, "a") is None

    async def test_list_keys_by_prefix(self, session: AsyncSession) -> None:
        """Prefix matching is literal, including LIKE wildcards."""
        await set_value(session, "@app/x_1", "1")
        await set_value(session, "@app/xy1", "2")
        await set_value(session, "@other/x", "3")

        assert await list_keys(session, "@app/") == ["@app/x_1", "@app/xy1"]
        assert await list_keys(session, "@app/x_") == ["@app/x_1"]


class TestDocumentOperations:
    def test_split_path(self) -> None:
        """Paths split at the last segment."""
        assert split_path("users/u1/collections/c1") == ("users/u1/collections", "c1")
        assert split_path("/users/u1/binderOrder/") == ("users/u1", "binderOrder")

    @pytest.mark.parametrize("path", ["", "orphan", "/", "a/"])
    def test_split_path_rejects_invalid(self, path: str) -> None:
        """Paths need a parent and an id."""
        with pytest.raises(ValueError, match="Invalid document path"):
            split_path(path)

    async def test_upsert_replaces_data(self, session: AsyncSession) -> None:
        """A second upsert overwrites the whole document."""
        await upsert_document(session, "users/u1/collections/c1", {"a": 1, "b": 2})
        await upsert_document(session, "users/u1/collections/c1", {"a": 3})

        document = await get_document(session, "users/u1/collections/c1")
        assert document is not None
        assert document.data == {"a": 3}
        assert document.parent == "users/u1/collections"
        assert document.doc_id == "c1"

    async def test_list_documents_direct_children_only(self, session: AsyncSession) -> None:
        """Listing a parent excludes siblings and deeper documents."""
        await upsert_document(session, "users/u1/collections/b", {})
        await upsert_document(session, "users/u1/collections/a", {})
        await upsert_document(session, "users/u1/binderOrder", {})

        documents = await list_documents(session, "users/u1/collections")

        assert [d.doc_id for d in documents] == ["a", "b"]


class TestSqlKeyValueStore:
    async def test_round_trip(self, kv: SqlKeyValueStore) -> None:
        """Values persist across sessions."""
        await kv.set_item("k", "v")

        assert await kv.get_item("k") == "v"
        await kv.remove_item("k")
        assert await kv.get_item("k") is None

    async def test_multi_set(self, kv: SqlKeyValueStore) -> None:
        """All items are written together."""
        await kv.multi_set([("a", "1"), ("b", "2")])

        assert await kv.list_keys() == ["a", "b"]

    async def test_requires_initialize(self, async_engine) -> None:
        """Using a store before initialize() is a configuration error."""
        store = SqlKeyValueStore(async_engine)

        with pytest.raises(StoreNotInitializedError, match="SqlKeyValueStore"):
            await store.get_item("k")


class TestSqlDocumentStore:
    async def test_round_trip(self, documents: SqlDocumentStore) -> None:
        """Documents persist and list under their parent."""
        await documents.set_document("users/u1/collections/c1", {"id": "c1", "slots": []})

        assert await documents.get_document("users/u1/collections/c1") == {"id": "c1", "slots": []}
        assert await documents.list_documents("users/u1/collections") == [
            ("c1", {"id": "c1", "slots": []})
        ]

        await documents.delete_document("users/u1/collections/c1")
        assert await documents.get_document("users/u1/collections/c1") is None

    async def test_delete_missing_is_noop(self, documents: SqlDocumentStore) -> None:
        """Deleting an unknown document does not raise."""
        await documents.delete_document("users/u1/collections/missing")

    async def test_requires_initialize(self, async_engine) -> None:
        """Using a store before initialize() is a configuration error."""
        store = SqlDocumentStore(async_engine)

        with pytest.raises(StoreNotInitializedError):
            await store.list_documents("users/u1/collections")
