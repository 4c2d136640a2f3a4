"""Translate facet clicks into filter updates."""

from catalog_search.logging_config import get_logger
from catalog_search.models.filters import FilterState
from catalog_search.services.filter_store import FilterStore

logger = get_logger(__name__)

# facet type -> (filter field, value parser)
FACET_FIELDS = {
    "sources": ("source_ids", int),
    "schemas": ("schemas", str),
    "tags": ("tags", str),
}

# Result views emit singular facet names
FACET_ALIASES = {
    "source": "sources",
    "schema": "schemas",
    "tag": "tags",
}


class FacetRefinementBridge:
    """Narrows one facet dimension to exactly the clicked value."""

    def __init__(self, store: FilterStore):
        self.store = store

    def refine(self, facet_type: str, value: str | int) -> FilterState:
        """Replace one facet's selection with ``{value}``.

        This is a replace, not a union. Other dimensions are untouched.

        Args:
            facet_type: One of sources, schemas, tags (singular forms accepted)
            value: Facet value; parsed as an integer for sources

        Returns:
            The new filter snapshot

        Raises:
            ValueError: If the facet type is unknown or a source id is not numeric
        """
        facet = FACET_ALIASES.get(facet_type, facet_type)
        if facet not in FACET_FIELDS:
            raise ValueError(
                f"Unknown facet type '{facet_type}', expected one of {sorted(FACET_FIELDS)}"
            )

        field, parse = FACET_FIELDS[facet]
        try:
            parsed = parse(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid {facet} facet value: {value!r}") from e

        logger.info(f"Refining {facet} to {parsed!r}")
        return self.store.apply({field: {parsed}})
