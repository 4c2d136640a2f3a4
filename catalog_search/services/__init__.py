"""Search orchestration services."""

from catalog_search.services.facet_refinement import FacetRefinementBridge
from catalog_search.services.filter_store import FilterChange, FilterStore
from catalog_search.services.pagination import PaginationController
from catalog_search.services.search_dispatcher import (
    ResultsChanged,
    SearchDispatcher,
    SearchStatus,
)
from catalog_search.services.search_session import SearchSession
from catalog_search.services.suggestion_engine import SuggestionEngine

__all__ = [
    "FacetRefinementBridge",
    "FilterChange",
    "FilterStore",
    "PaginationController",
    "ResultsChanged",
    "SearchDispatcher",
    "SearchSession",
    "SearchStatus",
    "SuggestionEngine",
]
