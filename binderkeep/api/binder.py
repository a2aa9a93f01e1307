"""
Binder shelf endpoints.

Operate on the caller's collections through the repository: signed-in
callers (uid given) go to the remote store, everyone else to the device.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from binderkeep.api.deps import AppServices, get_services
from binderkeep.models.collection import Collection, CollectionType, SlotCard
from binderkeep.services.collection_sync import SyncContext

router = APIRouter(prefix="/binder", tags=["binder"])

Services = Annotated[AppServices, Depends(get_services)]


def get_context(
    uid: Annotated[str | None, Query(description="Signed-in user id; omit for device-only")] = None,
) -> SyncContext:
    return SyncContext(uid=uid)


Context = Annotated[SyncContext, Depends(get_context)]


class CreateCollectionRequest(BaseModel):
    """Request model for creating a collection."""

    type: CollectionType
    name: str = Field(..., min_length=1)
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra Collection fields, e.g. set_id or single_pokemon_dex_id",
    )


class SetSlotRequest(BaseModel):
    card: SlotCard | None = None


@router.get("", response_model=list[Collection])
async def get_shelf(ctx: Context, services: Services) -> list[Collection]:
    """Collections in display order, refreshing the display cache."""
    return await services.repository.preload_for_display(ctx)


@router.post("/collections", response_model=Collection, status_code=status.HTTP_201_CREATED)
async def create_collection(
    request: CreateCollectionRequest, ctx: Context, services: Services
) -> Collection:
    try:
        return await services.repository.create_collection(
            ctx, request.type, request.name, request.options
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.patch("/collections/{collection_id}", response_model=Collection)
async def update_collection(
    collection_id: str, updates: dict[str, Any], ctx: Context, services: Services
) -> Collection:
    """Update editable fields. The collection type cannot change."""
    try:
        updated = await services.repository.update_collection(ctx, collection_id, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection '{collection_id}' not found",
        )
    return updated


@router.delete("/collections/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(collection_id: str, ctx: Context, services: Services) -> None:
    if not await services.repository.delete_collection(ctx, collection_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection '{collection_id}' not found",
        )


@router.put("/collections/{collection_id}/slots/{slot_key}", response_model=Collection)
async def set_slot(
    collection_id: str,
    slot_key: str,
    request: SetSlotRequest,
    ctx: Context,
    services: Services,
) -> Collection:
    """Put a card in a slot, or empty it when `card` is null."""
    updated = await services.repository.set_slot(ctx, collection_id, slot_key, request.card)
    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection '{collection_id}' not found",
        )
    return updated


@router.put("/order", response_model=list[Collection])
async def save_order(order: list[str], ctx: Context, services: Services) -> list[Collection]:
    await services.repository.save_binder_order(ctx, order)
    return await services.repository.preload_for_display(ctx)
