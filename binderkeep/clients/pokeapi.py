"""PokeAPI client: national species list for dex-style binders."""

import re

import httpx

from binderkeep.clients.base import CatalogFetchError, fetch_json
from binderkeep.config import SPECIES_LIMIT, settings
from binderkeep.models.catalog import SpeciesSummary

_SPECIES_ID_PATTERN = re.compile(r"pokemon-species/(\d+)/")


def _display_name(slug: str) -> str:
    """'mr-mime' -> 'Mr Mime'."""
    return " ".join(part.capitalize() for part in slug.split("-"))


async def get_species_list(
    limit: int = SPECIES_LIMIT,
    offset: int = 0,
    client: httpx.AsyncClient | None = None,
) -> list[SpeciesSummary]:
    """
    Fetch the species list sorted by national dex number.

    Raises:
        CatalogFetchError: If the request fails or the payload is malformed
    """
    url = f"{settings.pokeapi_url.rstrip('/')}/pokemon-species"
    data = await fetch_json(url, params={"limit": str(limit), "offset": str(offset)}, client=client)
    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        raise CatalogFetchError(f"Unexpected species payload from {url}")

    species: list[SpeciesSummary] = []
    for entry in data["results"]:
        if not isinstance(entry, dict):
            continue
        match = _SPECIES_ID_PATTERN.search(entry.get("url", ""))
        dex_id = int(match.group(1)) if match else 0
        species.append(SpeciesSummary(dex_id=dex_id, name=_display_name(entry.get("name", ""))))

    return sorted(species, key=lambda s: s.dex_id)
