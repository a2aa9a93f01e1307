"""
Catalog endpoints.

Cached set and species lists (served from the device cache, refreshed in
the background when stale), cached card lookups and name searches, cache
status, and an explicit refresh.
"""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from binderkeep.api.deps import AppServices, get_services
from binderkeep.clients.base import CatalogFetchError
from binderkeep.services.catalog_cache import CatalogRefreshError

router = APIRouter(prefix="/catalog", tags=["catalog"])

Services = Annotated[AppServices, Depends(get_services)]


class CatalogStatusResponse(BaseModel):
    stale: bool
    last_sync_at: datetime | None = None


class SpeciesResponse(BaseModel):
    dex_id: int
    name: str
    form: str | None = None


def _unavailable(e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Catalog unavailable and nothing cached: {e}",
    )


@router.get("/status", response_model=CatalogStatusResponse)
async def catalog_status(services: Services) -> CatalogStatusResponse:
    return CatalogStatusResponse(
        stale=await services.refresher.is_cache_stale(),
        last_sync_at=await services.refresher.get_last_sync_at(),
    )


@router.post("/refresh", response_model=CatalogStatusResponse)
async def refresh_catalog(services: Services) -> CatalogStatusResponse:
    """
    Refresh cached catalog data now.

    On failure the previous cache stays in place and 503 is returned.
    """
    try:
        await services.refresher.sync_card_data()
    except CatalogRefreshError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Catalog refresh failed. Cached data is still available.",
        ) from e
    return await catalog_status(services)


@router.get("/sets")
async def list_sets(services: Services) -> list[dict[str, Any]]:
    """Sets with cards, excluding Pocket sets and sets known to be empty."""
    try:
        sets = await services.refresher.get_sets_with_cache()
    except CatalogFetchError as e:
        raise _unavailable(e) from e
    excluded = set(await services.refresher.get_excluded_set_ids())
    return [s for s in sets if s.get("id") not in excluded]


@router.get("/sets/{set_id}")
async def get_set(set_id: str, services: Services) -> dict[str, Any]:
    try:
        set_data = await services.refresher.get_set_with_cache(set_id)
    except CatalogFetchError as e:
        raise _unavailable(e) from e
    if not set_data.get("cards"):
        await services.refresher.add_excluded_set_id(set_id)
    return set_data


@router.get("/species", response_model=list[SpeciesResponse])
async def list_species(services: Services) -> list[SpeciesResponse]:
    try:
        species = await services.refresher.get_species_with_cache()
    except CatalogFetchError as e:
        raise _unavailable(e) from e
    return [SpeciesResponse(dex_id=s.dex_id, name=s.name, form=s.form) for s in species]


@router.get("/cards")
async def search_cards(
    services: Services, name: str, lang: str = "en", exact: bool = False
) -> list[dict[str, Any]]:
    """Card briefs by name; `exact` requires the whole name to match."""
    try:
        return await services.refresher.get_cards_by_name_with_cache(lang, name, exact)
    except CatalogFetchError as e:
        raise _unavailable(e) from e


@router.get("/cards/{card_id}")
async def get_card(card_id: str, services: Services, lang: str = "en") -> dict[str, Any]:
    try:
        return await services.refresher.get_card_with_cache(lang, card_id)
    except CatalogFetchError as e:
        raise _unavailable(e) from e
