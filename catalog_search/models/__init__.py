"""Pydantic models for the catalog search core."""

from catalog_search.models.error import ErrorResponse
from catalog_search.models.filters import (
    QUALITY_SCORE_BOUNDS,
    ROW_COUNT_BOUNDS,
    DateField,
    DateRange,
    FilterState,
)
from catalog_search.models.query import QueryExecutionRequest, QueryResult
from catalog_search.models.search import (
    SearchMetrics,
    SearchRequest,
    SearchResultPage,
    SuggestionItem,
    SuggestionType,
    TableSummary,
    quality_label,
)

__all__ = [
    # Filter models
    "FilterState",
    "DateRange",
    "DateField",
    "QUALITY_SCORE_BOUNDS",
    "ROW_COUNT_BOUNDS",
    # Search models
    "SearchRequest",
    "SearchResultPage",
    "SearchMetrics",
    "TableSummary",
    "SuggestionItem",
    "SuggestionType",
    "quality_label",
    # Query models
    "QueryExecutionRequest",
    "QueryResult",
    # Error models
    "ErrorResponse",
]
