"""
Pokémon TCG API (pokemontcg.io) v2 client.

Secondary source for card images and data, used when the primary catalog
has no image for a card. Card ids share the primary catalog's
"{setId}-{localNumber}" format.
"""

from urllib.parse import quote

import httpx

from binderkeep.clients.base import CatalogFetchError, fetch_json
from binderkeep.config import settings
from binderkeep.models.catalog import FallbackCard, SetRef

# Minimal projection requested for fallback lookups
CARD_FIELDS = "id,name,number,set,images"


async def fetch_card(
    card_id: str,
    client: httpx.AsyncClient | None = None,
    *,
    base_url: str | None = None,
    api_key: str | None = None,
) -> FallbackCard | None:
    """
    Fetch a single card's images and metadata.

    Args:
        card_id: Card id like "base1-4" or "swsh4-25"
        client: Optional httpx client for connection reuse
        base_url: API root, defaults to settings
        api_key: Optional X-Api-Key value, defaults to settings

    Returns:
        FallbackCard, or None if the card is unknown or has no image.

    Raises:
        CatalogFetchError: On network failure or unexpected HTTP status
    """
    base = (base_url or settings.pokemon_tcg_api_url).rstrip("/")
    key = settings.pokemon_tcg_api_key if api_key is None else api_key

    headers = {"Accept": "application/json"}
    if key:
        headers["X-Api-Key"] = key

    url = f"{base}/cards/{quote(card_id, safe='')}"
    try:
        payload = await fetch_json(url, params={"select": CARD_FIELDS}, headers=headers, client=client)
    except CatalogFetchError as e:
        if isinstance(e.__cause__, httpx.HTTPStatusError) and e.__cause__.response.status_code == 404:
            return None
        raise

    return parse_card(payload)


def parse_card(payload: object) -> FallbackCard | None:
    """
    Build a FallbackCard from a /cards/{id} response body.

    A response with neither a large nor a small image is not usable.
    """
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None

    images = data.get("images") or {}
    large = images.get("large") or ""
    small = images.get("small") or ""
    if not large and not small:
        return None

    set_data = data.get("set")
    set_ref = None
    if isinstance(set_data, dict) and set_data.get("id"):
        set_ref = SetRef(id=str(set_data["id"]), name=str(set_data.get("name", "")))

    return FallbackCard(
        image_large=large or small,
        image_small=small or large,
        name=data.get("name"),
        set=set_ref,
    )
