"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

from catalog_search import config
from catalog_search.clients.catalog_client import CatalogClient
from catalog_search.models.search import SearchMetrics, SearchResultPage, TableSummary
from catalog_search.stub_api import create_app


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Drop the cached global settings so each test reads its own environment."""
    monkeypatch.setattr(config, "_settings", None)
    yield


@pytest.fixture
def stub_app():
    """Stub catalog API over the sample tables."""
    return create_app()


@pytest_asyncio.fixture
async def catalog_client(stub_app):
    """Catalog client talking to the stub API in-process."""
    transport = httpx.ASGITransport(app=stub_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield CatalogClient(http_client=http)


@pytest.fixture
def mock_client():
    """Catalog client with every network method mocked."""
    client = MagicMock(spec=CatalogClient)
    client.get_suggestions = AsyncMock(return_value=[])
    client.search_tables = AsyncMock(return_value=make_page(0))
    client.execute_query = AsyncMock()
    client.close = AsyncMock()
    return client


def make_page(total: int, names: list[str] | None = None) -> SearchResultPage:
    """Build a result page reporting ``total`` hits."""
    names = names if names is not None else [f"table_{i}" for i in range(min(total, 3))]
    return SearchResultPage(
        results=[TableSummary(id=i + 1, name=name) for i, name in enumerate(names)],
        metrics=SearchMetrics(total_results=total),
    )


@pytest.fixture
def page_factory():
    """Factory for result pages with a given total."""
    return make_page
