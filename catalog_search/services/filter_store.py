"""Holder of the current filter snapshot and its change notifications."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from catalog_search.logging_config import get_logger
from catalog_search.models.filters import FilterState

logger = get_logger(__name__)


@dataclass(frozen=True)
class FilterChange:
    """Transition between two filter snapshots."""

    previous: FilterState
    current: FilterState

    @property
    def query_changed(self) -> bool:
        return self.previous.query != self.current.query


FilterListener = Callable[[FilterChange], None]


class FilterStore:
    """Owns the current FilterState snapshot.

    Snapshots are immutable; every ``apply``/``clear`` swaps in a new one
    and notifies listeners in registration order, so readers never see a
    partially updated state.
    """

    def __init__(self, initial: FilterState | None = None):
        self._state = initial or FilterState()
        self._listeners: list[FilterListener] = []

    @property
    def state(self) -> FilterState:
        return self._state

    def subscribe(self, listener: FilterListener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def apply(self, patch: Mapping[str, Any]) -> FilterState:
        """Apply a partial update and notify listeners.

        Raises:
            ValueError: If the patch is malformed; the current state is kept
        """
        return self._replace(self._state.apply(patch))

    def toggle(self, field: str, value: Any, checked: bool) -> FilterState:
        """Add or remove one member of a set-valued field."""
        return self._replace(self._state.toggle(field, value, checked))

    def clear(self) -> FilterState:
        """Reset to the empty state and notify listeners."""
        return self._replace(self._state.clear())

    def _replace(self, new_state: FilterState) -> FilterState:
        change = FilterChange(previous=self._state, current=new_state)
        self._state = new_state
        logger.debug(
            f"Filters updated: active={new_state.active_filter_count}, "
            f"query={new_state.query!r}"
        )
        for listener in list(self._listeners):
            listener(change)
        return new_state
