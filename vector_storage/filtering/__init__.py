"""Document filtering module."""

from vector_storage.filtering.filters import filter_documents, matches_criteria

__all__ = [
    "filter_documents",
    "matches_criteria",
]
