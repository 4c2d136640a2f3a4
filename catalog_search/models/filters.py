"""Filter state models for faceted catalog search."""

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationInfo,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

QUALITY_SCORE_BOUNDS = (0, 100)
ROW_COUNT_BOUNDS = (0, 1_000_000)

_RANGE_BOUNDS = {
    "quality_score_range": QUALITY_SCORE_BOUNDS,
    "row_count_range": ROW_COUNT_BOUNDS,
}

SET_FIELDS = ("source_ids", "schemas", "table_types", "tags")
FLAG_FIELDS = ("has_business_terms", "has_description")
RANGE_FIELDS = tuple(_RANGE_BOUNDS)


class DateField(str, Enum):
    """Timestamp attribute a date range filters on."""

    CREATED_AT = "createdAt"
    LAST_SCANNED_AT = "lastScannedAt"


class DateRange(BaseModel):
    """Inclusive date window on one of the table timestamps."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    field: DateField = DateField.CREATED_AT

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError(
                f"date range start ({self.start.isoformat()}) must not be after "
                f"end ({self.end.isoformat()})"
            )
        return self


class FilterState(BaseModel):
    """Immutable snapshot of every active search constraint.

    Each field is either None (no constraint) or a well-formed, non-empty
    constraint. Normalization happens on construction, so any snapshot a
    caller holds is already canonical:

    - blank query text becomes None
    - empty sets become None
    - False flags become None (an unchecked box is "no constraint")
    - ranges must satisfy low <= high within their bounds

    Full-bound ranges are kept and transmitted, but do not count as active.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    query: str | None = None
    source_ids: frozenset[int] | None = None
    schemas: frozenset[str] | None = None
    table_types: frozenset[str] | None = None
    tags: frozenset[str] | None = None
    has_business_terms: bool | None = None
    has_description: bool | None = None
    quality_score_range: tuple[int, int] | None = None
    row_count_range: tuple[int, int] | None = None
    date_range: DateRange | None = None

    @field_validator("query", mode="before")
    @classmethod
    def normalize_query(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator(*SET_FIELDS, mode="before")
    @classmethod
    def wrap_single_value(cls, v: Any) -> Any:
        # A bare string would otherwise be split into characters
        if isinstance(v, (str, int)) and not isinstance(v, bool):
            return [v]
        return v

    @field_validator(*SET_FIELDS)
    @classmethod
    def drop_empty_set(cls, v: frozenset | None) -> frozenset | None:
        return v or None

    @field_validator(*FLAG_FIELDS)
    @classmethod
    def drop_false_flag(cls, v: bool | None) -> bool | None:
        return True if v else None

    @field_validator(*RANGE_FIELDS)
    @classmethod
    def check_range(cls, v: tuple[int, int] | None, info: ValidationInfo) -> tuple[int, int] | None:
        if v is None:
            return v
        low, high = v
        lower_bound, upper_bound = _RANGE_BOUNDS[info.field_name]
        if low > high:
            raise ValueError(f"{info.field_name} low ({low}) must not exceed high ({high})")
        if low < lower_bound or high > upper_bound:
            raise ValueError(
                f"{info.field_name} must lie within [{lower_bound}, {upper_bound}], "
                f"got ({low}, {high})"
            )
        return v

    @field_serializer(*SET_FIELDS)
    def serialize_set(self, v: frozenset | None) -> list | None:
        return sorted(v) if v is not None else None

    def apply(self, patch: Mapping[str, Any]) -> "FilterState":
        """Return a new normalized snapshot with ``patch`` applied.

        Keys may be field names or their camelCase wire names. A value of
        None removes that constraint. The receiver is never modified.

        Args:
            patch: Partial filter state

        Returns:
            New FilterState snapshot

        Raises:
            ValueError: If a key does not name a filter field
            pydantic.ValidationError: If a value is malformed
        """
        data = self.model_dump()
        for key, value in patch.items():
            data[resolve_field(key)] = value
        return FilterState.model_validate(data)

    def clear(self) -> "FilterState":
        """Return the empty state."""
        return FilterState()

    def toggle(self, field: str, value: Any, checked: bool) -> "FilterState":
        """Add or remove one member of a set-valued field.

        Removing the last member leaves the field absent. ``value`` is
        coerced to the field's element type first.

        Raises:
            ValueError: If ``field`` is not set-valued
            pydantic.ValidationError: If ``value`` cannot be coerced
        """
        name = resolve_field(field)
        if name not in SET_FIELDS:
            raise ValueError(f"'{field}' is not a set-valued filter field")
        # Coerce to the stored element type so "1" and 1 name the same source
        (value,) = getattr(FilterState.model_validate({name: [value]}), name)
        current = set(getattr(self, name) or ())
        if checked:
            current.add(value)
        else:
            current.discard(value)
        return self.apply({name: current})

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in type(self).model_fields)

    @property
    def active_filter_count(self) -> int:
        """Number of active structured constraints (query text excluded)."""
        count = sum(1 for name in SET_FIELDS if getattr(self, name))
        count += sum(1 for name in FLAG_FIELDS if getattr(self, name))
        count += sum(1 for name in RANGE_FIELDS if self.is_range_active(name))
        if self.date_range is not None:
            count += 1
        return count

    def is_range_active(self, name: str) -> bool:
        """A range is active unless absent or equal to its full bounds."""
        value = getattr(self, name)
        return value is not None and tuple(value) != _RANGE_BOUNDS[name]

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase wire shape, omitting absent fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


_FIELD_NAMES: dict[str, str] = {}
for _name, _info in FilterState.model_fields.items():
    _FIELD_NAMES[_name] = _name
    _FIELD_NAMES[_info.alias or _name] = _name


def resolve_field(name: str) -> str:
    """Map a field name or its camelCase wire name to the field name.

    Raises:
        ValueError: If ``name`` is not a filter field
    """
    try:
        return _FIELD_NAMES[name]
    except KeyError:
        raise ValueError(f"Unknown filter field: '{name}'") from None
