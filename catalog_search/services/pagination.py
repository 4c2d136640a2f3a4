"""Page tracking for search results."""

import asyncio
import math
from collections.abc import Callable

from catalog_search.logging_config import get_logger
from catalog_search.models.filters import FilterState
from catalog_search.services.search_dispatcher import ResultsChanged, SearchDispatcher

logger = get_logger(__name__)


class PaginationController:
    """Tracks the current page and re-dispatches searches on navigation.

    ``total_pages`` follows the total of the most recently displayed page;
    a failed search leaves it unchanged. Filter changes go through
    ``reset`` so every new filter set starts at page 1.
    """

    def __init__(
        self,
        dispatcher: SearchDispatcher,
        current_filters: Callable[[], FilterState],
        limit: int = 50,
    ):
        """Initialize pagination controller.

        Args:
            dispatcher: Search dispatcher used for every page load
            current_filters: Returns the filter snapshot to paginate over
            limit: Results per page (default: 50)
        """
        self.dispatcher = dispatcher
        self.current_filters = current_filters
        self.limit = limit
        self.current_page = 1
        self.total_results = 0

        dispatcher.subscribe(self._on_results)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_results / self.limit)

    @property
    def offset(self) -> int:
        return (self.current_page - 1) * self.limit

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def go_to_page(self, page: int) -> asyncio.Task | None:
        """Navigate to ``page`` and dispatch its search.

        Pages outside ``1..total_pages`` are ignored.

        Returns:
            The dispatched search task, or None if the page was rejected
        """
        if page < 1 or page > self.total_pages:
            logger.debug(f"Ignoring page {page}: valid range is 1..{self.total_pages}")
            return None

        self.current_page = page
        return self.dispatcher.dispatch(self.current_filters(), self.limit, self.offset)

    def next_page(self) -> asyncio.Task | None:
        return self.go_to_page(self.current_page + 1)

    def previous_page(self) -> asyncio.Task | None:
        return self.go_to_page(self.current_page - 1)

    def reset(self, filters: FilterState | None = None) -> asyncio.Task:
        """Return to page 1 and dispatch a fresh search."""
        self.current_page = 1
        if filters is None:
            filters = self.current_filters()
        return self.dispatcher.dispatch(filters, self.limit, 0)

    def _on_results(self, event: ResultsChanged) -> None:
        if event.failed or event.page is None:
            return
        self.total_results = event.page.metrics.total_results
