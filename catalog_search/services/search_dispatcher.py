"""Search dispatch with last-issued-wins supersession."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from catalog_search.clients.catalog_client import CatalogClient
from catalog_search.clients.errors import CatalogApiError
from catalog_search.logging_config import get_logger
from catalog_search.models.filters import FilterState
from catalog_search.models.search import SearchRequest, SearchResultPage

logger = get_logger(__name__)

SEARCH_FAILED_NOTICE = "Search failed, try again"


class SearchStatus(str, Enum):
    """Session-level search status."""

    IDLE = "idle"
    SEARCHING = "searching"
    ERROR = "error"


@dataclass(frozen=True)
class ResultsChanged:
    """Notification sent to rendering collaborators after a dispatch resolves.

    On failure ``page`` still holds the previously displayed results.
    """

    page: SearchResultPage | None
    request: SearchRequest
    error: CatalogApiError | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def notice(self) -> str | None:
        return SEARCH_FAILED_NOTICE if self.failed else None


ResultsListener = Callable[[ResultsChanged], None]


class SearchDispatcher:
    """Runs faceted searches and keeps displayed results consistent.

    Every dispatch is tagged with an increasing sequence number. Only the
    most recently issued request may change displayed state: a superseded
    request's response or failure is dropped on arrival, and it never
    clears ``is_searching`` for a newer request still pending.

    Failures never propagate to callers. They set ``error`` (shown to the
    user as "Search failed, try again") and leave ``page`` untouched until
    the next successful dispatch.
    """

    def __init__(self, client: CatalogClient, page_size: int = 50):
        """Initialize search dispatcher.

        Args:
            client: Catalog API client
            page_size: Default limit per request (default: 50)
        """
        self.client = client
        self.page_size = page_size

        self.page: SearchResultPage | None = None
        self.error: CatalogApiError | None = None
        self.is_searching = False
        self._issued = 0
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[ResultsListener] = []

    @property
    def status(self) -> SearchStatus:
        if self.is_searching:
            return SearchStatus.SEARCHING
        if self.error is not None:
            return SearchStatus.ERROR
        return SearchStatus.IDLE

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def latest_sequence(self) -> int:
        return self._issued

    def subscribe(self, listener: ResultsListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def search(
        self,
        filters: FilterState,
        limit: int | None = None,
        offset: int = 0,
    ) -> SearchResultPage | None:
        """Run one search and apply it if it is still the latest request.

        Args:
            filters: Filter snapshot to search with
            limit: Page size (default: dispatcher page_size)
            offset: Result offset

        Returns:
            The page now displayed, or None if the request failed or was
            superseded before it resolved
        """
        request, sequence = self._issue(filters, limit, offset)
        return await self._run(request, sequence)

    def _issue(
        self,
        filters: FilterState,
        limit: int | None,
        offset: int,
    ) -> tuple[SearchRequest, int]:
        request = SearchRequest(
            filters=filters,
            limit=limit if limit is not None else self.page_size,
            offset=offset,
        )
        self._issued += 1
        self.is_searching = True
        logger.info(
            f"→ Search #{self._issued}: query={filters.query!r}, "
            f"active_filters={filters.active_filter_count}, "
            f"limit={request.limit}, offset={request.offset}"
        )
        return request, self._issued

    async def _run(self, request: SearchRequest, sequence: int) -> SearchResultPage | None:
        try:
            page = await self.client.search_tables(request)
        except CatalogApiError as e:
            return self._fail(request, sequence, e)
        except Exception as e:
            logger.error(f"Search #{sequence} raised {type(e).__name__}: {e}", exc_info=True)
            error = CatalogApiError(f"Unexpected error: {e}", details=type(e).__name__)
            return self._fail(request, sequence, error)

        if sequence != self._issued:
            logger.debug(f"Dropping stale response of search #{sequence} (latest #{self._issued})")
            return None

        self.page = page
        self.error = None
        self.is_searching = False
        logger.info(
            f"✓ Search #{sequence}: {len(page.results)} results "
            f"of {page.metrics.total_results}"
        )
        self._notify(ResultsChanged(page=page, request=request))
        return page

    def _fail(self, request: SearchRequest, sequence: int, error: CatalogApiError) -> None:
        if sequence != self._issued:
            logger.debug(f"Dropping failure of superseded search #{sequence}: {error.message}")
            return None
        logger.error(f"Search #{sequence} failed: {error.code}: {error.message}")
        self.error = error
        self.is_searching = False
        self._notify(ResultsChanged(page=self.page, request=request, error=error))
        return None

    def dispatch(
        self,
        filters: FilterState,
        limit: int | None = None,
        offset: int = 0,
    ) -> asyncio.Task:
        """Schedule ``search`` on the running loop and return its task.

        The sequence number is taken synchronously, so dispatch order is
        issuance order even before the task starts running.
        """
        request, sequence = self._issue(filters, limit, offset)
        task = asyncio.get_running_loop().create_task(self._run(request, sequence))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _notify(self, event: ResultsChanged) -> None:
        for listener in list(self._listeners):
            listener(event)

    async def wait_idle(self) -> None:
        """Wait for every dispatched search to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel outstanding searches."""
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
