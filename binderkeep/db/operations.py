"""
Database CRUD operations.

Provides async functions for reading and writing key-value entries and
path-addressed documents.
"""

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from binderkeep.models.db import DocumentDB, KeyValueEntryDB

# --- Key-Value Operations ---


async def get_value(session: AsyncSession, key: str) -> str | None:
    """Get the value stored under `key`, or None if absent."""
    entry = await session.get(KeyValueEntryDB, key)
    return entry.value if entry else None


async def set_value(session: AsyncSession, key: str, value: str) -> KeyValueEntryDB:
    """Insert or replace the value stored under `key`."""
    entry = await session.get(KeyValueEntryDB, key)
    if entry:
        entry.value = value
    else:
        entry = KeyValueEntryDB(key=key, value=value)
        session.add(entry)
    await session.flush()
    return entry


async def delete_value(session: AsyncSession, key: str) -> bool:
    """
    Delete the entry stored under `key`.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(delete(KeyValueEntryDB).where(KeyValueEntryDB.key == key))
    # rowcount is available on DELETE results; type stubs incomplete for async
    return bool(result.rowcount)  # type: ignore[attr-defined]


async def list_keys(session: AsyncSession, prefix: str = "") -> list[str]:
    """List all keys starting with `prefix`, sorted."""
    stmt = select(KeyValueEntryDB.key).order_by(KeyValueEntryDB.key)
    if prefix:
        stmt = stmt.where(KeyValueEntryDB.key.startswith(prefix, autoescape=True))
    result = await session.execute(stmt)
    return list(result.scalars().all())


# --- Document Operations ---


def split_path(path: str) -> tuple[str, str]:
    """
    Split a document path into (parent, doc_id).

    Raises ValueError for paths without a parent segment.
    """
    parent, sep, doc_id = path.strip("/").rpartition("/")
    if not sep or not parent or not doc_id:
        msg = f"Invalid document path: '{path}'"
        raise ValueError(msg)
    return parent, doc_id


async def get_document(session: AsyncSession, path: str) -> DocumentDB | None:
    """Get a document by its full path."""
    result = await session.execute(select(DocumentDB).where(DocumentDB.path == path))
    return result.scalar_one_or_none()


async def upsert_document(session: AsyncSession, path: str, data: dict[str, Any]) -> DocumentDB:
    """
    Insert or overwrite a document.

    The stored data is replaced wholesale; there is no field-level merge.
    """
    parent, doc_id = split_path(path)
    existing = await get_document(session, path)

    if existing:
        existing.data = data
        await session.flush()
        return existing

    document = DocumentDB(path=path, parent=parent, doc_id=doc_id, data=data)
    session.add(document)
    await session.flush()
    return document


async def delete_document(session: AsyncSession, path: str) -> bool:
    """
    Delete a document by path.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(delete(DocumentDB).where(DocumentDB.path == path))
    return bool(result.rowcount)  # type: ignore[attr-defined]


async def list_documents(session: AsyncSession, parent: str) -> list[DocumentDB]:
    """List all documents directly under `parent`, ordered by document id."""
    result = await session.execute(
        select(DocumentDB).where(DocumentDB.parent == parent.strip("/")).order_by(DocumentDB.doc_id)
    )
    return list(result.scalars().all())
