"""
Card display endpoints.

Resolve what a card cell shows: the winning image source and the variant
list including any bonus variant.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from binderkeep.api.deps import AppServices, get_services
from binderkeep.models.collection import CardVariant
from binderkeep.services.card_display import ImageSource, display_variants, split_card_id
from binderkeep.services.image_overrides import OverrideNamespace

router = APIRouter(prefix="/cards", tags=["cards"])

Services = Annotated[AppServices, Depends(get_services)]


class CardImageResponse(BaseModel):
    uri: str
    source: ImageSource


class CardDisplayResponse(BaseModel):
    card_id: str
    image: CardImageResponse | None = None
    variants: list[CardVariant] = Field(default_factory=list)


class CardVariantsResponse(BaseModel):
    card_id: str
    set_id: str
    local_number: str
    variants: list[CardVariant] = Field(default_factory=list)


class FallbackCardResponse(BaseModel):
    card_id: str
    image_large: str
    image_small: str
    name: str | None = None
    set_id: str | None = None
    set_name: str | None = None


class OverrideListResponse(BaseModel):
    namespace: OverrideNamespace
    card_ids: list[str] = Field(default_factory=list)


@router.get("/{card_id}/display", response_model=CardDisplayResponse)
async def card_display(
    card_id: str,
    services: Services,
    image: Annotated[str | None, Query(description="Image URL from the primary catalog")] = None,
    name: Annotated[str | None, Query(description="Card name, used for variant rules")] = None,
) -> CardDisplayResponse:
    """
    Resolve a card's display image and variants.

    Image precedence: admin override, user override, catalog image,
    fallback catalog.
    """
    set_id, local_number = split_card_id(card_id)
    resolved = await services.display.resolve_image(card_id, catalog_image=image)
    return CardDisplayResponse(
        card_id=card_id,
        image=CardImageResponse(uri=resolved.uri, source=resolved.source) if resolved else None,
        variants=display_variants({"name": name} if name else None, set_id, local_number),
    )


@router.get("/{card_id}/variants", response_model=CardVariantsResponse)
async def card_variants(
    card_id: str,
    name: Annotated[str | None, Query(description="Card name, used for variant rules")] = None,
) -> CardVariantsResponse:
    """Variants a binder cell offers for this card, including any bonus variant."""
    set_id, local_number = split_card_id(card_id)
    return CardVariantsResponse(
        card_id=card_id,
        set_id=set_id,
        local_number=local_number,
        variants=display_variants({"name": name} if name else None, set_id, local_number),
    )


@router.get("/{card_id}/fallback", response_model=FallbackCardResponse)
async def card_fallback(card_id: str, services: Services) -> FallbackCardResponse:
    card = await services.fallback.resolve(card_id)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No fallback image available for '{card_id}'",
        )
    return FallbackCardResponse(
        card_id=card_id,
        image_large=card.image_large,
        image_small=card.image_small,
        name=card.name,
        set_id=card.set.id if card.set else None,
        set_name=card.set.name if card.set else None,
    )


@router.get("/overrides/{namespace}", response_model=OverrideListResponse)
async def list_overrides(namespace: OverrideNamespace, services: Services) -> OverrideListResponse:
    return OverrideListResponse(
        namespace=namespace,
        card_ids=await services.overrides.list_overrides(namespace),
    )


@router.delete("/{card_id}/overrides/{namespace}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_override(card_id: str, namespace: OverrideNamespace, services: Services) -> None:
    await services.overrides.remove_override(card_id, namespace)
