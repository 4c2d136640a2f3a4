"""User actions accepted by a search session."""

from dataclasses import dataclass
from typing import Any

from catalog_search.models.filters import DateRange
from catalog_search.models.search import SuggestionItem


@dataclass(frozen=True)
class SetQuery:
    """Free-text input changed."""

    text: str


@dataclass(frozen=True)
class ToggleSelection:
    """A checkbox in a set-valued filter (sources, schemas, table types, tags)."""

    field: str
    value: Any
    checked: bool


@dataclass(frozen=True)
class SetFlag:
    """A boolean filter checkbox; False means "no constraint"."""

    field: str
    value: bool


@dataclass(frozen=True)
class SetRange:
    """A range slider moved; None removes the constraint."""

    field: str
    value: tuple[int, int] | None


@dataclass(frozen=True)
class SetDateRange:
    date_range: DateRange | None


@dataclass(frozen=True)
class SelectSuggestion:
    suggestion: SuggestionItem


@dataclass(frozen=True)
class RefineFacet:
    """A facet value clicked in the results view."""

    facet_type: str
    value: str


@dataclass(frozen=True)
class GoToPage:
    page: int


@dataclass(frozen=True)
class ClearFilters:
    pass


Command = (
    SetQuery
    | ToggleSelection
    | SetFlag
    | SetRange
    | SetDateRange
    | SelectSuggestion
    | RefineFacet
    | GoToPage
    | ClearFilters
)
