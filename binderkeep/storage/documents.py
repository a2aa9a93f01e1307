"""
Remote collection store.

A multi-tenant document store addressed by slash-separated paths
(users/{uid}/collections/{collectionId}), offering per-document
read/write/delete and listing of a sub-collection.
"""

import copy
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from binderkeep.db.database import create_session_factory, create_tables
from binderkeep.db.operations import (
    delete_document,
    get_document,
    list_documents,
    split_path,
    upsert_document,
)
from binderkeep.storage.errors import StorageError, StoreNotInitializedError

BINDER_ORDER_DOC = "binderOrder"


def collections_path(uid: str) -> str:
    """Sub-collection holding one document per collection."""
    return f"users/{uid}/collections"


def collection_doc_path(uid: str, collection_id: str) -> str:
    """
    Path of one collection document.

    Raises ValueError if `collection_id` is not a single path segment.
    """
    if not collection_id or "/" in collection_id:
        raise ValueError(f"Invalid collection id: '{collection_id}'")
    return f"{collections_path(uid)}/{collection_id}"


def binder_order_path(uid: str) -> str:
    """Singleton document holding the user's binder order."""
    return f"users/{uid}/{BINDER_ORDER_DOC}"


class DocumentStore(Protocol):
    """Path-addressed JSON document store."""

    async def get_document(self, path: str) -> dict[str, Any] | None: ...

    async def set_document(self, path: str, data: dict[str, Any]) -> None: ...

    async def delete_document(self, path: str) -> None: ...

    async def list_documents(self, parent: str) -> list[tuple[str, dict[str, Any]]]: ...


class MemoryDocumentStore:
    """
    In-process document store.

    Documents are deep-copied on the way in and out so callers can never
    mutate stored state through a returned reference.
    """

    def __init__(self) -> None:
        self._docs: dict[str, dict[str, Any]] = {}

    async def get_document(self, path: str) -> dict[str, Any] | None:
        data = self._docs.get(path.strip("/"))
        return copy.deepcopy(data) if data is not None else None

    async def set_document(self, path: str, data: dict[str, Any]) -> None:
        split_path(path)
        self._docs[path.strip("/")] = copy.deepcopy(data)

    async def delete_document(self, path: str) -> None:
        self._docs.pop(path.strip("/"), None)

    async def list_documents(self, parent: str) -> list[tuple[str, dict[str, Any]]]:
        parent = parent.strip("/")
        found = []
        for path, data in self._docs.items():
            doc_parent, doc_id = split_path(path)
            if doc_parent == parent:
                found.append((doc_id, copy.deepcopy(data)))
        return sorted(found, key=lambda item: item[0])

    def paths(self) -> list[str]:
        """All stored document paths, sorted."""
        return sorted(self._docs)


class SqlDocumentStore:
    """Document store persisted through SQLAlchemy, one session per call."""

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

    async def get_document(self, path: str) -> dict[str, Any] | None:
        self._require_initialized()
        try:
            async with self._session_factory() as session:
                document = await get_document(session, path.strip("/"))
                return dict(document.data) if document else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read document '{path}': {e}") from e

    async def set_document(self, path: str, data: dict[str, Any]) -> None:
        self._require_initialized()
        try:
            async with self._session_factory() as session:
                await upsert_document(session, path.strip("/"), data)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write document '{path}': {e}") from e

    async def delete_document(self, path: str) -> None:
        self._require_initialized()
        try:
            async with self._session_factory() as session:
                await delete_document(session, path.strip("/"))
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete document '{path}': {e}") from e

    async def list_documents(self, parent: str) -> list[tuple[str, dict[str, Any]]]:
        self._require_initialized()
        try:
            async with self._session_factory() as session:
                documents = await list_documents(session, parent)
                return [(d.doc_id, dict(d.data)) for d in documents]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list documents under '{parent}': {e}") from e
