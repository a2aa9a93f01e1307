"""
Collection sync endpoints.

Expose pull/push of a user's collections and binder order, plus the
device-local removed-slot ledger (which never touches the remote store).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from binderkeep.api.deps import AppServices, get_services
from binderkeep.models.collection import Collection
from binderkeep.storage.errors import StorageError

router = APIRouter(tags=["collections"])

Services = Annotated[AppServices, Depends(get_services)]


class CollectionsResponse(BaseModel):
    """Response model for a pull."""

    uid: str
    collections: list[Collection] = Field(default_factory=list)


class CollectionsPushRequest(BaseModel):
    """Request model for a push. The list is the complete desired state."""

    collections: list[Collection] = Field(
        ...,
        description="Every collection the user should have; absent ones are deleted remotely",
    )


class BinderOrder(BaseModel):
    order: list[str] = Field(default_factory=list)


class LocalRemovedResponse(BaseModel):
    collection_id: str
    slot_keys: list[str] = Field(default_factory=list)


@router.get("/users/{uid}/collections", response_model=CollectionsResponse)
async def pull_collections(uid: str, services: Services) -> CollectionsResponse:
    """
    Pull a user's collections.

    Malformed documents are skipped. An empty list may also mean the
    remote store was unreachable.
    """
    collections = await services.synchronizer.pull(uid)
    return CollectionsResponse(uid=uid, collections=collections)


@router.put("/users/{uid}/collections", response_model=CollectionsResponse)
async def push_collections(
    uid: str, request: CollectionsPushRequest, services: Services
) -> CollectionsResponse:
    """
    Push a user's full collection list.

    Overwrites each listed document and deletes the rest.
    """
    ids = [c.id for c in request.collections]
    if len(ids) != len(set(ids)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Collection ids must be unique",
        )

    try:
        await services.synchronizer.push(uid, request.collections)
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Collection store unavailable. Retry the whole push.",
        ) from e

    return CollectionsResponse(uid=uid, collections=request.collections)


@router.get("/users/{uid}/binder-order", response_model=BinderOrder)
async def pull_binder_order(uid: str, services: Services) -> BinderOrder:
    return BinderOrder(order=await services.synchronizer.pull_order(uid))


@router.put("/users/{uid}/binder-order", response_model=BinderOrder)
async def push_binder_order(uid: str, request: BinderOrder, services: Services) -> BinderOrder:
    try:
        await services.synchronizer.push_order(uid, request.order)
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Collection store unavailable.",
        ) from e
    return request


@router.get("/collections/{collection_id}/local-removed", response_model=LocalRemovedResponse)
async def get_local_removed(collection_id: str, services: Services) -> LocalRemovedResponse:
    keys = await services.local_removed.get(collection_id)
    return LocalRemovedResponse(collection_id=collection_id, slot_keys=sorted(keys))


@router.put(
    "/collections/{collection_id}/local-removed/{slot_key}",
    response_model=LocalRemovedResponse,
)
async def hide_slot(collection_id: str, slot_key: str, services: Services) -> LocalRemovedResponse:
    """Hide a slot on this device only."""
    await services.local_removed.add(collection_id, slot_key)
    return await get_local_removed(collection_id, services)


@router.delete(
    "/collections/{collection_id}/local-removed/{slot_key}",
    response_model=LocalRemovedResponse,
)
async def unhide_slot(collection_id: str, slot_key: str, services: Services) -> LocalRemovedResponse:
    await services.local_removed.remove(collection_id, slot_key)
    return await get_local_removed(collection_id, services)
