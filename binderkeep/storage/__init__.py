"""
Storage collaborators.

Async key-value and document stores consumed by the caching and
synchronization services.
"""

from binderkeep.storage.documents import (
    DocumentStore,
    MemoryDocumentStore,
    SqlDocumentStore,
    binder_order_path,
    collection_doc_path,
    collections_path,
)
from binderkeep.storage.errors import StorageError, StoreNotInitializedError
from binderkeep.storage.key_value import KeyValueStore, MemoryKeyValueStore, SqlKeyValueStore

__all__ = [
    "DocumentStore",
    "KeyValueStore",
    "MemoryDocumentStore",
    "MemoryKeyValueStore",
    "SqlDocumentStore",
    "SqlKeyValueStore",
    "StorageError",
    "StoreNotInitializedError",
    "binder_order_path",
    "collection_doc_path",
    "collections_path",
]
