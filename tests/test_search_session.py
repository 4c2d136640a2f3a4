"""End-to-end tests for the search session against the stub API."""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from catalog_search.clients.errors import NetworkError
from catalog_search.config import Settings
from catalog_search.models.filters import DateRange
from catalog_search.models.search import SuggestionItem, SuggestionType
from catalog_search.services import SearchSession, SearchStatus
from catalog_search.services.commands import (
    ClearFilters,
    GoToPage,
    RefineFacet,
    SelectSuggestion,
    SetDateRange,
    SetFlag,
    SetQuery,
    SetRange,
    ToggleSelection,
)


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, suggestion_debounce_ms=10, search_page_size=2)


@pytest_asyncio.fixture
async def session(catalog_client, test_settings):
    async with SearchSession(client=catalog_client, settings=test_settings) as search_session:
        yield search_session


class TestFilterCommands:
    """Test that every filter command searches from page 1."""

    @pytest.mark.asyncio
    async def test_query_searches_and_suggests(self, session):
        session.handle(SetQuery("customer"))
        await asyncio.sleep(0.05)
        await session.wait_idle()

        assert session.filters.query == "customer"
        assert {t.name for t in session.results.results} == {"customers", "customer_churn"}
        assert any(s.value == "customers" for s in session.suggestions)
        assert session.status is SearchStatus.IDLE

    @pytest.mark.asyncio
    async def test_toggle_selection(self, session):
        session.handle(ToggleSelection("schemas", "analytics", True))
        await session.wait_idle()

        assert session.results.metrics.total_results == 2
        assert session.filters.active_filter_count == 1

    @pytest.mark.asyncio
    async def test_flags_and_ranges(self, session):
        session.handle(SetFlag("hasDescription", True))
        session.handle(SetRange("quality_score_range", (80, 100)))
        await session.wait_idle()

        assert {t.name for t in session.results.results} <= {"customers", "orders", "daily_revenue"}
        assert session.results.metrics.total_results == 3

    @pytest.mark.asyncio
    async def test_flag_command_rejects_other_fields(self, session):
        with pytest.raises(ValueError):
            session.handle(SetFlag("tags", True))
        with pytest.raises(ValueError):
            session.handle(SetRange("has_description", (0, 1)))

    @pytest.mark.asyncio
    async def test_date_range(self, session):
        session.handle(
            SetDateRange(DateRange(start=datetime(2024, 5, 1), end=datetime(2024, 5, 31)))
        )
        await session.wait_idle()

        assert [t.name for t in session.results.results] == ["raw_events"]

    @pytest.mark.asyncio
    async def test_clear(self, session):
        session.handle(ToggleSelection("tags", "kpi", True))
        await session.wait_idle()
        session.handle(ClearFilters())
        await session.wait_idle()

        assert session.filters.is_empty
        assert session.results.metrics.total_results == 6

    @pytest.mark.asyncio
    async def test_unknown_command(self, session):
        with pytest.raises(TypeError):
            session.handle("search for orders")


class TestPagingAndFacets:
    """Test navigation and refinement through the session."""

    @pytest.mark.asyncio
    async def test_filter_change_returns_to_first_page(self, session):
        session.refresh()
        await session.wait_idle()
        assert session.total_pages == 3

        await session.handle(GoToPage(3))
        assert session.current_page == 3

        session.handle(ToggleSelection("sourceIds", 1, True))
        await session.wait_idle()

        assert session.current_page == 1
        assert session.total_pages == 2

    @pytest.mark.asyncio
    async def test_rejected_page(self, session):
        session.refresh()
        await session.wait_idle()

        assert session.handle(GoToPage(4)) is None
        assert session.current_page == 1

    @pytest.mark.asyncio
    async def test_refine_facet_replaces_selection(self, session):
        session.handle(ToggleSelection("schemas", "public", True))
        session.handle(ToggleSelection("schemas", "staging", True))
        await session.wait_idle()

        session.handle(RefineFacet("schemas", "analytics"))
        await session.wait_idle()

        assert session.filters.schemas == frozenset({"analytics"})
        assert {t.schema_name for t in session.results.results} == {"analytics"}

    @pytest.mark.asyncio
    async def test_refine_source_facet(self, session):
        session.handle(RefineFacet("sources", "3"))
        await session.wait_idle()

        assert session.filters.source_ids == frozenset({3})
        assert [t.name for t in session.results.results] == ["raw_events"]


class TestSuggestionSelection:
    @pytest.mark.asyncio
    async def test_select_suggestion_sets_query_and_hides(self, session):
        session.handle(SetQuery("reve"))
        await asyncio.sleep(0.05)
        await session.wait_idle()
        assert session.suggestion_engine.visible

        item = SuggestionItem(type=SuggestionType.TABLE, value="daily_revenue")
        session.handle(SelectSuggestion(item))
        await asyncio.sleep(0.05)
        await session.wait_idle()

        assert session.filters.query == "daily_revenue"
        assert not session.suggestion_engine.visible
        assert [t.name for t in session.results.results] == ["daily_revenue"]

    @pytest.mark.asyncio
    async def test_wait_idle_includes_debounced_lookup(self, session):
        session.handle(SetQuery("reve"))
        await session.wait_idle()

        assert "daily_revenue" in [s.value for s in session.suggestions]


class TestNotifications:
    @pytest.mark.asyncio
    async def test_listeners(self, session):
        filters_seen, results_seen = [], []
        session.on_filters_changed(filters_seen.append)
        session.on_results_changed(results_seen.append)

        session.handle(SetQuery("orders"))
        await session.wait_idle()

        assert [f.query for f in filters_seen] == ["orders"]
        assert len(results_seen) == 1
        assert not results_seen[0].failed


@pytest.mark.asyncio
async def test_search_failure_keeps_results(mock_client, page_factory, test_settings):
    shown = page_factory(4)
    mock_client.search_tables = AsyncMock(side_effect=[shown, NetworkError("offline")])

    async with SearchSession(client=mock_client, settings=test_settings) as session:
        session.handle(SetQuery("orders"))
        await session.wait_idle()
        session.handle(ToggleSelection("tags", "pii", True))
        await session.wait_idle()

        assert session.results is shown
        assert session.failed
        assert session.failure_notice == "Search failed, try again"
        assert not session.is_searching
        assert session.status is SearchStatus.ERROR

    mock_client.close.assert_not_awaited()
