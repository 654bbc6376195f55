"""Document and query data models."""

from vector_storage.documents.models import (
    Document,
    FilterCriteria,
    FilterOptions,
    QueryEmbedding,
    SimilarityItem,
    SimilaritySearchParams,
    SimilaritySearchResponse,
)

__all__ = [
    "Document",
    "FilterCriteria",
    "FilterOptions",
    "QueryEmbedding",
    "SimilarityItem",
    "SimilaritySearchParams",
    "SimilaritySearchResponse",
]
