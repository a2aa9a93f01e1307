"""Shared HTTP plumbing for the catalog API clients."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from binderkeep.config import settings

USER_AGENT = "BinderKeep/1.0"


class CatalogFetchError(Exception):
    """Raised when a catalog API request fails (network or HTTP status)."""

    pass


def create_client() -> httpx.AsyncClient:
    """Client with the project headers and timeout. The caller must close it."""
    return httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        timeout=settings.http_timeout,
    )


@asynccontextmanager
async def http_client(client: httpx.AsyncClient | None = None) -> AsyncIterator[httpx.AsyncClient]:
    """
    Yield `client` if given, otherwise a short-lived client.

    Injected clients are never closed here; the caller owns them.
    """
    if client is not None:
        yield client
        return

    async with create_client() as owned:
        yield owned


async def fetch_json(
    url: str,
    *,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    client: httpx.AsyncClient | None = None,
) -> Any:
    """
    GET `url` and decode the JSON body.

    Raises:
        CatalogFetchError: On transport errors, non-2xx status, or invalid JSON
    """
    try:
        async with http_client(client) as http:
            response = await http.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        raise CatalogFetchError(f"Failed to fetch {url}: HTTP {e.response.status_code}") from e
    except httpx.RequestError as e:
        raise CatalogFetchError(f"Failed to fetch {url}: {e}") from e
    except ValueError as e:
        raise CatalogFetchError(f"Failed to decode response from {url}: {e}") from e
