from binderkeep.clients.base import CatalogFetchError, create_client, fetch_json, http_client

__all__ = [
    "CatalogFetchError",
    "create_client",
    "fetch_json",
    "http_client",
]
