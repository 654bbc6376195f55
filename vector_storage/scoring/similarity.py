"""Cosine similarity scoring.

Pure functions over raw vectors. Scores exposed to callers are
normalized to [0, 1]; raw cosine stays internal to this module and the
store.
"""

import math
from collections.abc import Iterable, Sequence

from vector_storage.documents.models import Document
from vector_storage.exceptions import DimensionMismatchError


def magnitude(vector: Sequence[float]) -> float:
    """Euclidean norm of a vector."""
    return math.sqrt(sum(value * value for value in vector))


def dot_product(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Dot product of two vectors of equal length.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    if len(vec_a) != len(vec_b):
        raise DimensionMismatchError(
            f"Cannot compare vectors of length {len(vec_a)} and {len(vec_b)}",
            details={"left": len(vec_a), "right": len(vec_b)},
        )
    return math.fsum(a * b for a, b in zip(vec_a, vec_b))


def cosine_score(dot: float, mag_a: float, mag_b: float) -> float | None:
    """Cosine similarity from a dot product and two magnitudes.

    Returns:
        The cosine in [-1, 1], or None when either magnitude is zero
        and the cosine is undefined.
    """
    denominator = mag_a * mag_b
    if denominator == 0:
        return None
    # Float error can push identical vectors just past 1.0
    return max(-1.0, min(1.0, dot / denominator))


def normalize_score(score: float) -> float:
    """Map a cosine in [-1, 1] onto [0, 1]."""
    return (score + 1) / 2


def score_documents(
    documents: Iterable[Document],
    query_vector: Sequence[float],
    query_mag: float,
) -> list[tuple[Document, float | None]]:
    """Score documents against a query vector.

    Args:
        documents: Candidate documents.
        query_vector: Query embedding.
        query_mag: Precomputed magnitude of the query embedding.

    Returns:
        (document, normalized score) pairs in input order. The score is
        None for documents whose cosine is undefined, including every
        document when the query itself is empty or all zeros.

    Raises:
        DimensionMismatchError: If a non-zero document vector has a
            different length than a non-zero query.
    """
    scored: list[tuple[Document, float | None]] = []
    for document in documents:
        # Empty and all-zero vectors have no direction to compare.
        if document.vector_mag == 0 or query_mag == 0:
            scored.append((document, None))
            continue
        dot = dot_product(document.vector, query_vector)
        cosine = cosine_score(dot, document.vector_mag, query_mag)
        scored.append((document, None if cosine is None else normalize_score(cosine)))
    return scored


def rank_scores(
    scored: list[tuple[Document, float | None]],
) -> list[tuple[Document, float | None]]:
    """Sort scored pairs by descending score.

    The sort is stable, so equal scores keep collection order. Undefined
    scores rank below every defined score.
    """
    return sorted(
        scored,
        key=lambda pair: (pair[1] is None, -(pair[1] or 0.0)),
    )
