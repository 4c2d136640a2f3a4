"""Search session wiring the filter, suggestion, dispatch and paging components."""

import asyncio
import uuid
from collections.abc import Callable
from typing import Any

from catalog_search.clients.catalog_client import CatalogClient
from catalog_search.config import Settings, get_settings
from catalog_search.logging_config import clear_session_id, get_logger, set_session_id
from catalog_search.models.filters import FLAG_FIELDS, RANGE_FIELDS, FilterState, resolve_field
from catalog_search.models.search import SearchResultPage, SuggestionItem
from catalog_search.services.commands import (
    ClearFilters,
    Command,
    GoToPage,
    RefineFacet,
    SelectSuggestion,
    SetDateRange,
    SetFlag,
    SetQuery,
    SetRange,
    ToggleSelection,
)
from catalog_search.services.facet_refinement import FacetRefinementBridge
from catalog_search.services.filter_store import FilterChange, FilterStore
from catalog_search.services.pagination import PaginationController
from catalog_search.services.search_dispatcher import (
    SEARCH_FAILED_NOTICE,
    ResultsChanged,
    SearchDispatcher,
    SearchStatus,
)
from catalog_search.services.suggestion_engine import SuggestionEngine

logger = get_logger(__name__)

FiltersListener = Callable[[FilterState], None]


class SearchSession:
    """One user's faceted search session.

    Flow for every filter change:
    1. The FilterStore swaps in a new snapshot
    2. Pagination resets to page 1 and the dispatcher searches (offset 0)
    3. If the query text changed, the suggestion engine schedules a lookup
    4. Filters-changed listeners receive the new snapshot

    Dispatcher results feed the pagination total and the results-changed
    listeners. Commands are handled synchronously; network work runs as
    tasks on the current event loop, so ``handle`` must be called from
    inside a running loop.
    """

    def __init__(
        self,
        client: CatalogClient | None = None,
        settings: Settings | None = None,
        session_id: str | None = None,
    ):
        """Initialize search session.

        Args:
            client: Catalog API client (creates one from settings if None)
            settings: Settings (uses global settings if None)
            session_id: Identifier used in log records (random if None)
        """
        self.settings = settings or get_settings()
        self.session_id = session_id or uuid.uuid4().hex[:12]

        self._owns_client = client is None
        self.client = client or CatalogClient(
            base_url=self.settings.api_base_url,
            timeout=self.settings.request_timeout,
            query_timeout_ms=self.settings.query_timeout_ms,
            slow_query_threshold_ms=self.settings.slow_query_threshold_ms,
        )

        self.store = FilterStore()
        self.suggestion_engine = SuggestionEngine(
            self.client,
            debounce=self.settings.suggestion_debounce,
            min_length=self.settings.suggestion_min_length,
            limit=self.settings.suggestion_limit,
        )
        self.dispatcher = SearchDispatcher(self.client, page_size=self.settings.search_page_size)
        self.pagination = PaginationController(
            self.dispatcher,
            current_filters=lambda: self.store.state,
            limit=self.settings.search_page_size,
        )
        self.facets = FacetRefinementBridge(self.store)

        self._filters_listeners: list[FiltersListener] = []
        self.store.subscribe(self._on_filters_changed)

        logger.info(
            f"SearchSession {self.session_id} initialized: "
            f"page_size={self.settings.search_page_size}, "
            f"debounce={self.settings.suggestion_debounce_ms}ms"
        )

    # State exposed to rendering collaborators

    @property
    def filters(self) -> FilterState:
        return self.store.state

    @property
    def results(self) -> SearchResultPage | None:
        return self.dispatcher.page

    @property
    def suggestions(self) -> list[SuggestionItem]:
        return self.suggestion_engine.suggestions

    @property
    def is_searching(self) -> bool:
        return self.dispatcher.is_searching

    @property
    def status(self) -> SearchStatus:
        return self.dispatcher.status

    @property
    def failed(self) -> bool:
        return self.dispatcher.failed

    @property
    def failure_notice(self) -> str | None:
        return SEARCH_FAILED_NOTICE if self.dispatcher.failed else None

    @property
    def current_page(self) -> int:
        return self.pagination.current_page

    @property
    def total_pages(self) -> int:
        return self.pagination.total_pages

    def on_filters_changed(self, listener: FiltersListener) -> Callable[[], None]:
        self._filters_listeners.append(listener)
        return lambda: self._filters_listeners.remove(listener)

    def on_results_changed(
        self, listener: Callable[[ResultsChanged], None]
    ) -> Callable[[], None]:
        return self.dispatcher.subscribe(listener)

    def on_suggestions_changed(
        self, listener: Callable[[list[SuggestionItem]], None]
    ) -> Callable[[], None]:
        return self.suggestion_engine.subscribe(listener)

    # Commands

    def handle(self, command: Command) -> Any:
        """Apply one user action.

        Returns:
            The new FilterState for filter commands, the dispatched task (or
            None when rejected) for GoToPage

        Raises:
            ValueError: If the command carries an invalid field or value
            TypeError: If ``command`` is not a known command
        """
        logger.debug(f"Handling {command!r}")

        if isinstance(command, SetQuery):
            return self.store.apply({"query": command.text})

        if isinstance(command, ToggleSelection):
            return self.store.toggle(command.field, command.value, command.checked)

        if isinstance(command, SetFlag):
            field = self._require(command.field, FLAG_FIELDS)
            return self.store.apply({field: command.value})

        if isinstance(command, SetRange):
            field = self._require(command.field, RANGE_FIELDS)
            return self.store.apply({field: command.value})

        if isinstance(command, SetDateRange):
            return self.store.apply({"date_range": command.date_range})

        if isinstance(command, SelectSuggestion):
            state = self.store.apply({"query": command.suggestion.value})
            self.suggestion_engine.hide()
            return state

        if isinstance(command, RefineFacet):
            return self.facets.refine(command.facet_type, command.value)

        if isinstance(command, GoToPage):
            return self.pagination.go_to_page(command.page)

        if isinstance(command, ClearFilters):
            return self.store.clear()

        raise TypeError(f"Unsupported command: {command!r}")

    def refresh(self) -> asyncio.Task:
        """Re-run the search for the current filters and page."""
        return self.dispatcher.dispatch(
            self.store.state, self.pagination.limit, self.pagination.offset
        )

    @staticmethod
    def _require(field: str, allowed: tuple[str, ...]) -> str:
        name = resolve_field(field)
        if name not in allowed:
            raise ValueError(f"'{field}' must be one of {allowed}")
        return name

    def _on_filters_changed(self, change: FilterChange) -> None:
        self.pagination.reset(change.current)
        if change.query_changed:
            self.suggestion_engine.on_query_change(change.current.query)
        for listener in list(self._filters_listeners):
            listener(change.current)

    # Lifecycle

    async def wait_idle(self) -> None:
        """Wait until no suggestion lookup or search is outstanding."""
        await self.suggestion_engine.wait_idle()
        await self.dispatcher.wait_idle()

    async def close(self) -> None:
        """Cancel timers and outstanding requests, then release the client."""
        await self.suggestion_engine.close()
        await self.dispatcher.close()
        if self._owns_client:
            await self.client.close()
        logger.info(f"SearchSession {self.session_id} closed")

    async def __aenter__(self):
        """Async context manager entry."""
        set_session_id(self.session_id)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
        clear_session_id()
