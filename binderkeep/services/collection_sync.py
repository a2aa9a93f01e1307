"""
Collection synchronizer.

Reconciles a user's collection list with the remote document store:
- users/{uid}/collections/{collectionId}: one document per collection
- users/{uid}/binderOrder: {"order": [collectionId, ...]}

push() is the authority for deletions: after writing every passed
collection it deletes each remote document whose id is not in the list.
The write and cleanup steps are not transactional. A crash between them
leaves orphans that the next successful push removes, since cleanup always
re-evaluates against the latest list. Concurrent pushes from one device
must be serialized by the caller.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from binderkeep.models.collection import REQUIRED_DOCUMENT_FIELDS, Collection
from binderkeep.storage.documents import (
    DocumentStore,
    binder_order_path,
    collection_doc_path,
    collections_path,
)
from binderkeep.storage.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SyncContext:
    """
    Who the current caller is, as decided by the auth layer.

    `uid` is None when nobody is signed in; callers then work against
    device-local storage only.
    """

    uid: str | None = None

    @property
    def signed_in(self) -> bool:
        return bool(self.uid)


def parse_collection_document(doc_id: str, data: Any) -> Collection | None:
    """
    Validate one remote document.

    Returns None (and logs) for documents missing id/name/slots or failing
    model validation.
    """
    if not isinstance(data, dict) or any(f not in data for f in REQUIRED_DOCUMENT_FIELDS):
        logger.warning("Dropping collection document %s: missing required fields", doc_id)
        return None
    try:
        return Collection.model_validate(data)
    except ValidationError as e:
        logger.warning("Dropping collection document %s: %s", doc_id, e.error_count())
        return None


class CollectionSynchronizer:
    """Push/pull of collections and binder order for one document store."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def pull(self, uid: str, *, strict: bool = False) -> list[Collection]:
        """
        Read every valid collection document for `uid`.

        Invalid documents are dropped individually. A store failure yields
        an empty list, which callers must read as "unknown" rather than
        "no collections". Pass strict=True to have StorageError propagate.
        """
        try:
            documents = await self._store.list_documents(collections_path(uid))
        except StorageError as e:
            if strict:
                raise
            logger.warning("Could not pull collections for %s: %s", uid, e)
            return []

        collections = []
        for doc_id, data in documents:
            collection = parse_collection_document(doc_id, data)
            if collection is not None:
                collections.append(collection)

        logger.debug("Pulled %d of %d collection documents for %s", len(collections), len(documents), uid)
        return collections

    async def push(self, uid: str, collections: Sequence[Collection]) -> None:
        """
        Make the remote collection set equal to `collections`.

        Every collection is written as a full-document overwrite, then every
        remote document whose id is absent from `collections` is deleted.
        StorageError propagates; retry the whole push.
        """
        for collection in collections:
            await self._store.set_document(collection_doc_path(uid, collection.id), collection.to_document())

        keep = {c.id for c in collections}
        remote = await self._store.list_documents(collections_path(uid))
        stale = [doc_id for doc_id, _ in remote if doc_id not in keep]
        for doc_id in stale:
            await self._store.delete_document(collection_doc_path(uid, doc_id))

        logger.info("Pushed %d collections for %s (%d removed)", len(keep), uid, len(stale))

    async def pull_order(self, uid: str) -> list[str]:
        """
        Read the binder order for `uid`.

        Missing or malformed documents and store failures all yield [],
        meaning "no explicit order". Non-string entries are dropped.
        """
        try:
            data = await self._store.get_document(binder_order_path(uid))
        except StorageError as e:
            logger.warning("Could not pull binder order for %s: %s", uid, e)
            return []

        order = data.get("order") if isinstance(data, dict) else None
        if not isinstance(order, list):
            return []
        return [cid for cid in order if isinstance(cid, str)]

    async def push_order(self, uid: str, order: Sequence[str]) -> None:
        """Overwrite the binder order document. StorageError propagates."""
        await self._store.set_document(binder_order_path(uid), {"order": list(order)})
