"""Faceted search and filter orchestration for a data-catalog explorer."""
