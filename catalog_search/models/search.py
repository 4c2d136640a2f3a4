"""Search request, result and suggestion models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from catalog_search.models.filters import FilterState

_WIRE_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)


class SuggestionType(str, Enum):
    """Kind of catalog entity a suggestion points at."""

    TABLE = "table"
    FIELD = "field"
    TAG = "tag"
    BUSINESS_TERM = "business_term"


class SuggestionItem(BaseModel):
    """Lookahead suggestion returned by the suggestion service."""

    model_config = _WIRE_CONFIG

    type: SuggestionType
    value: str
    category: str = ""
    frequency: int = Field(default=0, ge=0)


class TableSummary(BaseModel):
    """One table in a search result page."""

    model_config = _WIRE_CONFIG

    id: int
    name: str
    full_name: str | None = None
    schema_name: str | None = Field(default=None, alias="schema")
    source_id: int | None = None
    source_name: str | None = None
    source_type: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    row_count: int | None = Field(default=None, ge=0)
    field_count: int | None = Field(default=None, ge=0)
    quality_score: float | None = Field(default=None, ge=0.0, le=100.0)
    last_scanned_at: datetime | None = None
    relevance_score: float = 0.0
    matched_fields: list[str] = Field(default_factory=list)
    business_terms: list[str] = Field(default_factory=list)

    @property
    def quality_label(self) -> str:
        return quality_label(self.quality_score)


class SearchMetrics(BaseModel):
    """Result metadata: total hit count and per-facet value counts."""

    model_config = _WIRE_CONFIG

    total_results: int = Field(default=0, ge=0)
    facet_counts: dict[str, dict[str, int]] = Field(default_factory=dict)
    search_time: float | None = Field(default=None, ge=0.0, description="Milliseconds")

    @model_validator(mode="before")
    @classmethod
    def fold_facet_lists(cls, data: Any) -> Any:
        """Accept the list-shaped ``facets`` payload as well as ``facetCounts``.

        ``{"sources": [{"name": "warehouse", "count": 3}]}`` becomes
        ``{"sources": {"warehouse": 3}}``; quality buckets use ``range``.
        """
        if not isinstance(data, dict):
            return data
        if "facets" not in data or "facetCounts" in data or "facet_counts" in data:
            return data

        facets = data.get("facets") or {}
        if not isinstance(facets, dict):
            raise ValueError(f"facets must be an object, got {type(facets).__name__}")

        facet_counts: dict[str, dict[str, int]] = {}
        for facet_name, entries in facets.items():
            if entries is not None and not isinstance(entries, list):
                raise ValueError(f"facet '{facet_name}' must be a list of entries")
            bucket: dict[str, int] = {}
            for entry in entries or []:
                if not isinstance(entry, dict):
                    raise ValueError(f"facet '{facet_name}' entries must be objects")
                label = entry.get("name", entry.get("range"))
                if label is None:
                    continue
                try:
                    bucket[str(label)] = int(entry.get("count", 0))
                except (TypeError, ValueError):
                    raise ValueError(
                        f"facet '{facet_name}' count for {label!r} is not a number"
                    ) from None
            facet_counts[facet_name] = bucket

        data = {k: v for k, v in data.items() if k != "facets"}
        data["facetCounts"] = facet_counts
        return data


class SearchResultPage(BaseModel):
    """One page of faceted search results."""

    model_config = _WIRE_CONFIG

    results: list[TableSummary] = Field(default_factory=list)
    metrics: SearchMetrics = Field(default_factory=SearchMetrics)


class SearchRequest(BaseModel):
    """A single faceted search dispatch; built fresh for every request."""

    model_config = ConfigDict(frozen=True)

    filters: FilterState = Field(default_factory=FilterState)
    limit: int = Field(default=50, ge=1)
    offset: int = Field(default=0, ge=0)

    def to_payload(self) -> dict[str, Any]:
        """Flat request body: filter fields plus limit and offset."""
        return {**self.filters.to_payload(), "limit": self.limit, "offset": self.offset}


def quality_label(score: float | None) -> str:
    """Map a quality score to its display band."""
    if score is None:
        return "Unknown"
    if score >= 90:
        return "Excellent"
    if score >= 80:
        return "Good"
    if score >= 70:
        return "Fair"
    if score >= 60:
        return "Poor"
    return "Critical"
