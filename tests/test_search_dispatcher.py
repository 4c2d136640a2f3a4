"""Unit tests for search dispatch and supersession."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from catalog_search.clients.errors import HttpError, NetworkError
from catalog_search.models.filters import FilterState
from catalog_search.services.search_dispatcher import (
    SEARCH_FAILED_NOTICE,
    SearchDispatcher,
    SearchStatus,
)


class Gate:
    """Holds each search until released, keyed by query text."""

    def __init__(self, pages):
        self.pages = pages
        self.events = {query: asyncio.Event() for query in pages}

    async def respond(self, request):
        query = request.filters.query
        await self.events[query].wait()
        outcome = self.pages[query]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def release(self, query):
        self.events[query].set()


@pytest.mark.asyncio
async def test_successful_search(mock_client, page_factory):
    mock_client.search_tables = AsyncMock(return_value=page_factory(120))
    dispatcher = SearchDispatcher(mock_client)
    events = []
    dispatcher.subscribe(events.append)

    page = await dispatcher.search(FilterState(query="orders"))

    assert page.metrics.total_results == 120
    assert dispatcher.page is page
    assert not dispatcher.is_searching
    assert dispatcher.status is SearchStatus.IDLE
    assert len(events) == 1 and not events[0].failed

    request = mock_client.search_tables.await_args.args[0]
    assert request.limit == 50
    assert request.offset == 0


@pytest.mark.asyncio
async def test_out_of_order_responses_keep_latest(mock_client, page_factory):
    """D1 issued before D2 but resolving after it never replaces D2's results."""
    first, second = page_factory(10, ["old"]), page_factory(1, ["new"])
    gate = Gate({"old": first, "new": second})
    mock_client.search_tables = AsyncMock(side_effect=gate.respond)
    dispatcher = SearchDispatcher(mock_client)

    d1 = dispatcher.dispatch(FilterState(query="old"))
    d2 = dispatcher.dispatch(FilterState(query="new"))
    await asyncio.sleep(0)

    gate.release("new")
    await d2
    assert dispatcher.page is second
    assert not dispatcher.is_searching

    gate.release("old")
    assert await d1 is None
    assert dispatcher.page is second
    assert dispatcher.latest_sequence == 2


@pytest.mark.asyncio
async def test_stale_response_does_not_clear_searching(mock_client, page_factory):
    gate = Gate({"old": page_factory(10), "new": page_factory(1)})
    mock_client.search_tables = AsyncMock(side_effect=gate.respond)
    dispatcher = SearchDispatcher(mock_client)

    d1 = dispatcher.dispatch(FilterState(query="old"))
    d2 = dispatcher.dispatch(FilterState(query="new"))
    await asyncio.sleep(0)

    gate.release("old")
    await d1
    assert dispatcher.is_searching
    assert dispatcher.page is None

    gate.release("new")
    await d2
    assert not dispatcher.is_searching


@pytest.mark.asyncio
async def test_stale_failure_is_dropped(mock_client, page_factory):
    fresh = page_factory(5)
    gate = Gate({"old": NetworkError("offline"), "new": fresh})
    mock_client.search_tables = AsyncMock(side_effect=gate.respond)
    dispatcher = SearchDispatcher(mock_client)
    events = []
    dispatcher.subscribe(events.append)

    d1 = dispatcher.dispatch(FilterState(query="old"))
    d2 = dispatcher.dispatch(FilterState(query="new"))
    await asyncio.sleep(0)

    gate.release("old")
    await d1
    assert dispatcher.error is None
    assert dispatcher.is_searching

    gate.release("new")
    await d2
    assert dispatcher.page is fresh
    assert [e.failed for e in events] == [False]


@pytest.mark.asyncio
async def test_failure_keeps_previous_results(mock_client, page_factory):
    shown = page_factory(42)
    mock_client.search_tables = AsyncMock(side_effect=[shown, HttpError(500), page_factory(3)])
    dispatcher = SearchDispatcher(mock_client)
    events = []
    dispatcher.subscribe(events.append)

    await dispatcher.search(FilterState(query="orders"))
    result = await dispatcher.search(FilterState(query="customers"))

    assert result is None
    assert dispatcher.page is shown
    assert not dispatcher.is_searching
    assert dispatcher.failed
    assert dispatcher.status is SearchStatus.ERROR
    assert events[-1].page is shown
    assert events[-1].notice == SEARCH_FAILED_NOTICE

    await dispatcher.search(FilterState(query="customers"))

    assert not dispatcher.failed
    assert dispatcher.status is SearchStatus.IDLE
    assert dispatcher.page.metrics.total_results == 3


@pytest.mark.asyncio
async def test_unexpected_client_error_ends_search(mock_client, page_factory):
    shown = page_factory(7)
    mock_client.search_tables = AsyncMock(side_effect=[shown, RuntimeError("boom")])
    dispatcher = SearchDispatcher(mock_client)
    events = []
    dispatcher.subscribe(events.append)

    await dispatcher.search(FilterState(query="orders"))
    result = await dispatcher.search(FilterState(query="customers"))

    assert result is None
    assert not dispatcher.is_searching
    assert dispatcher.failed
    assert dispatcher.status is SearchStatus.ERROR
    assert dispatcher.error.code == "UNKNOWN_ERROR"
    assert dispatcher.page is shown
    assert events[-1].notice == SEARCH_FAILED_NOTICE


@pytest.mark.asyncio
async def test_searching_status_overrides_error(mock_client, page_factory):
    gate = Gate({"retry": page_factory(1)})
    mock_client.search_tables = AsyncMock(side_effect=NetworkError("offline"))
    dispatcher = SearchDispatcher(mock_client)

    await dispatcher.search(FilterState(query="first"))
    assert dispatcher.status is SearchStatus.ERROR

    mock_client.search_tables = AsyncMock(side_effect=gate.respond)
    task = dispatcher.dispatch(FilterState(query="retry"))
    assert dispatcher.status is SearchStatus.SEARCHING

    gate.release("retry")
    await task
    assert dispatcher.status is SearchStatus.IDLE


@pytest.mark.asyncio
async def test_dispatch_uses_given_window(mock_client):
    dispatcher = SearchDispatcher(mock_client, page_size=25)

    await dispatcher.dispatch(FilterState(), offset=75)

    request = mock_client.search_tables.await_args.args[0]
    assert request.limit == 25
    assert request.offset == 75


@pytest.mark.asyncio
async def test_close_cancels_outstanding(mock_client):
    never = asyncio.Event()

    async def hang(request):
        await never.wait()

    mock_client.search_tables = AsyncMock(side_effect=hang)
    dispatcher = SearchDispatcher(mock_client)
    task = dispatcher.dispatch(FilterState())
    await asyncio.sleep(0)

    await dispatcher.close()

    assert task.cancelled()
