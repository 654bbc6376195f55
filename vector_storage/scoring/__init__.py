"""Similarity scoring module."""

from vector_storage.scoring.similarity import (
    cosine_score,
    dot_product,
    magnitude,
    normalize_score,
    rank_scores,
    score_documents,
)

__all__ = [
    "cosine_score",
    "dot_product",
    "magnitude",
    "normalize_score",
    "rank_scores",
    "score_documents",
]
