"""Debounced lookahead suggestions for the search box."""

import asyncio
from collections.abc import Callable

from catalog_search.clients.catalog_client import CatalogClient
from catalog_search.clients.errors import CatalogApiError
from catalog_search.logging_config import get_logger
from catalog_search.models.search import SuggestionItem

logger = get_logger(__name__)

SuggestionListener = Callable[[list[SuggestionItem]], None]


class SuggestionEngine:
    """Debounced, last-issued-wins suggestion lookups.

    Input shorter than ``min_length + 1`` characters (after trimming) clears
    the suggestions at once and issues nothing. Longer input (re)starts a
    debounce timer, so only the final keystroke of a burst reaches the
    suggestion service. Each issued fetch gets a sequence number and only
    the response of the most recently issued fetch is applied.

    Failed lookups are logged and leave the last good suggestions in place.
    """

    def __init__(
        self,
        client: CatalogClient,
        debounce: float = 0.3,
        min_length: int = 2,
        limit: int = 10,
    ):
        """Initialize suggestion engine.

        Args:
            client: Catalog API client
            debounce: Debounce window in seconds (default: 0.3)
            min_length: Input must be longer than this to fetch (default: 2)
            limit: Maximum suggestions per lookup (default: 10)
        """
        self.client = client
        self.debounce = debounce
        self.min_length = min_length
        self.limit = limit

        self.visible = False
        self._suggestions: list[SuggestionItem] = []
        self._timer: asyncio.TimerHandle | None = None
        self._issued = 0
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[SuggestionListener] = []

    @property
    def suggestions(self) -> list[SuggestionItem]:
        return list(self._suggestions)

    @property
    def pending(self) -> bool:
        """True while a debounce timer is waiting to fire."""
        return self._timer is not None

    @property
    def in_flight(self) -> bool:
        return bool(self._tasks)

    def subscribe(self, listener: SuggestionListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def on_query_change(self, text: str | None) -> None:
        """Schedule a lookup for ``text``, cancelling any pending one.

        Must be called from within a running event loop.
        """
        self._cancel_timer()
        term = (text or "").strip()

        if len(term) <= self.min_length:
            # Invalidate any lookup still in flight for longer input
            self._issued += 1
            self._set([], visible=False)
            return

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce, self._issue, term)

    def hide(self) -> None:
        """Hide the list and drop any pending or in-flight lookup.

        The last suggestions are kept.
        """
        self._cancel_timer()
        self._issued += 1
        if self.visible:
            self.visible = False
            self._notify()

    def _issue(self, term: str) -> None:
        self._timer = None
        self._issued += 1
        task = asyncio.get_running_loop().create_task(self._fetch(self._issued, term))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fetch(self, sequence: int, term: str) -> None:
        logger.debug(f"Suggestion lookup #{sequence} for {term!r}")
        try:
            items = await self.client.get_suggestions(term, limit=self.limit)
        except CatalogApiError as e:
            logger.warning(f"Suggestion lookup for {term!r} failed: {e.code}: {e.message}")
            return
        except Exception as e:
            logger.error(
                f"Suggestion lookup for {term!r} raised {type(e).__name__}: {e}", exc_info=True
            )
            return

        if sequence != self._issued:
            logger.debug(f"Discarding stale suggestions #{sequence} (latest #{self._issued})")
            return

        self._set(items, visible=bool(items))

    def _set(self, items: list[SuggestionItem], visible: bool) -> None:
        self._suggestions = list(items)
        self.visible = visible
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.suggestions)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def wait_idle(self) -> None:
        """Wait for a pending debounce timer to fire and every issued lookup to finish."""
        loop = asyncio.get_running_loop()
        while self._timer is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(max(0.0, self._timer.when() - loop.time()))

    async def close(self) -> None:
        """Cancel the debounce timer and any outstanding lookups."""
        self._cancel_timer()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
