"""Unit tests for the filter store."""

import pytest
from pydantic import ValidationError

from catalog_search.models.filters import FilterState
from catalog_search.services.filter_store import FilterStore


def test_apply_swaps_snapshot():
    store = FilterStore()
    first = store.state

    second = store.apply({"query": "orders"})

    assert store.state is second
    assert first.query is None


def test_listeners_notified_in_order():
    store = FilterStore()
    seen = []
    store.subscribe(lambda change: seen.append(("a", change.current.query)))
    store.subscribe(lambda change: seen.append(("b", change.current.query)))

    store.apply({"query": "orders"})

    assert seen == [("a", "orders"), ("b", "orders")]


def test_unsubscribe():
    store = FilterStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)

    unsubscribe()
    store.apply({"query": "orders"})

    assert seen == []


def test_query_changed_flag():
    store = FilterStore(FilterState(query="orders"))
    changes = []
    store.subscribe(changes.append)

    store.toggle("tags", "pii", True)
    store.apply({"query": "customers"})

    assert [c.query_changed for c in changes] == [False, True]


def test_invalid_patch_keeps_state():
    store = FilterStore(FilterState(tags={"pii"}))
    before = store.state

    with pytest.raises(ValidationError):
        store.apply({"quality_score_range": (90, 10)})

    assert store.state is before


def test_clear():
    store = FilterStore(FilterState(query="orders", has_description=True))

    assert store.clear().is_empty
    assert store.state.is_empty
