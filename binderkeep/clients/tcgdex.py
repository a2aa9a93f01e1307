"""
TCGdex API client (primary card catalog).

Base: https://api.tcgdex.net/v2/{lang}/
"""

from typing import Any
from urllib.parse import quote

import httpx

from binderkeep.clients.base import CatalogFetchError, fetch_json
from binderkeep.config import settings

# Sets the API lists but returns no cards for
SET_IDS_WITHOUT_CARDS = ("wp", "jumbo")

# Serie id for Pokémon TCG Pocket (mobile game); excluded everywhere
SERIE_ID_TCG_POCKET = "tcgp"


def to_api_lang(lang: str) -> str:
    """TCGdex paths use lowercase language codes (zh-tw, not zh-TW)."""
    return lang.lower()


def _lang_base(lang: str) -> str:
    return f"{settings.tcgdex_api_url.rstrip('/')}/{to_api_lang(lang)}"


def is_pocket_set(set_brief: dict[str, Any]) -> bool:
    """True if the set belongs to Pokémon TCG Pocket."""
    serie = set_brief.get("serie") or {}
    if isinstance(serie, dict) and serie.get("id") == SERIE_ID_TCG_POCKET:
        return True
    logo = set_brief.get("logo") or ""
    symbol = set_brief.get("symbol") or ""
    return "/tcgp/" in logo or "/tcgp/" in symbol


async def get_sets_raw(
    lang: str = "en",
    client: httpx.AsyncClient | None = None,
) -> list[dict[str, Any]]:
    """
    Fetch the full set list for a language, Pocket sets included.

    Raises:
        CatalogFetchError: If the request fails or the body is not a list
    """
    url = f"{_lang_base(lang)}/sets"
    data = await fetch_json(url, client=client)
    if not isinstance(data, list):
        raise CatalogFetchError(f"Unexpected set list payload from {url}")
    return [s for s in data if isinstance(s, dict) and s.get("id")]


async def get_set(
    set_id: str,
    lang: str = "en",
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """
    Fetch one set with its card briefs.

    Raises:
        CatalogFetchError: If the request fails or the body has no cards list
    """
    url = f"{_lang_base(lang)}/sets/{quote(set_id, safe='')}"
    data = await fetch_json(url, client=client)
    if not isinstance(data, dict) or not data.get("id") or not isinstance(data.get("cards"), list):
        raise CatalogFetchError(f"Unexpected set payload from {url}")
    return data


async def get_card(
    card_id: str,
    lang: str = "en",
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """
    Fetch one card with its full details (variants, dexId, set).

    Raises:
        CatalogFetchError: If the request fails or the body has no id
    """
    url = f"{_lang_base(lang)}/cards/{quote(card_id, safe='')}"
    data = await fetch_json(url, client=client)
    if not isinstance(data, dict) or not data.get("id"):
        raise CatalogFetchError(f"Unexpected card payload from {url}")
    return data


async def get_cards_by_name(
    name: str,
    lang: str = "en",
    exact: bool = False,
    client: httpx.AsyncClient | None = None,
) -> list[dict[str, Any]]:
    """
    Search card briefs by name. `exact` switches from a lax to a strict match.

    Raises:
        CatalogFetchError: If the request fails or the body is not a list
    """
    url = f"{_lang_base(lang)}/cards"
    data = await fetch_json(url, params={"name": f"eq:{name}" if exact else name}, client=client)
    if not isinstance(data, list):
        raise CatalogFetchError(f"Unexpected card search payload from {url}")
    return [c for c in data if isinstance(c, dict) and c.get("id")]
