"""HTTP clients for the catalog backend."""

from catalog_search.clients.catalog_client import CatalogClient
from catalog_search.clients.errors import (
    CatalogApiError,
    HttpError,
    NetworkError,
    ParseError,
    RequestTimeoutError,
)

__all__ = [
    "CatalogClient",
    "CatalogApiError",
    "HttpError",
    "NetworkError",
    "ParseError",
    "RequestTimeoutError",
]
