"""Document data models."""

import time
from typing import Any

from pydantic import BaseModel, Field


def now_ms() -> int:
    """Current time in milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


class Document(BaseModel):
    """A stored text with its embedding.

    Attributes:
        text: The original text. Unique within a store.
        metadata: Application-defined data attached to the text.
        vector: The embedding vector. Empty until embedded.
        vector_mag: Euclidean norm of ``vector``, precomputed by the store.
        timestamp: Creation time in milliseconds since the epoch.
        hits: Number of times returned by a similarity search.
    """

    text: str = Field(description="Original text content")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Application-defined metadata",
    )
    vector: list[float] = Field(
        default_factory=list,
        description="Embedding vector",
    )
    vector_mag: float = Field(
        default=0.0,
        ge=0.0,
        description="Precomputed vector magnitude",
    )
    timestamp: int = Field(
        default_factory=now_ms,
        description="Creation time (ms since epoch)",
    )
    hits: int = Field(
        default=0,
        ge=0,
        description="Search hit counter",
    )


class SimilarityItem(BaseModel):
    """A document returned by a similarity search.

    ``vector`` and ``vector_mag`` are only populated when the search was
    run with ``include_vectors=True``.
    """

    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: int
    hits: int = 0
    vector: list[float] | None = None
    vector_mag: float | None = None
    score: float | None = Field(
        description="Normalized cosine similarity in [0, 1]; None if undefined",
    )

    @classmethod
    def from_document(
        cls,
        document: Document,
        score: float | None,
        include_vectors: bool = False,
    ) -> "SimilarityItem":
        """Build a detached copy of a live document."""
        return cls(
            text=document.text,
            metadata=dict(document.metadata),
            timestamp=document.timestamp,
            hits=document.hits,
            vector=list(document.vector) if include_vectors else None,
            vector_mag=document.vector_mag if include_vectors else None,
            score=score,
        )


class FilterCriteria(BaseModel):
    """A predicate over a document.

    Attributes:
        metadata: Key/value pairs that must all be equal on the document.
        text: One or more exact texts; the document must match one of them.
    """

    metadata: dict[str, Any] | None = None
    text: str | list[str] | None = None


class FilterOptions(BaseModel):
    """Include/exclude predicates applied before scoring."""

    include: FilterCriteria | None = None
    exclude: FilterCriteria | None = None


class SimilaritySearchParams(BaseModel):
    """Parameters of a similarity search.

    Attributes:
        query: Query text, or an already computed query vector.
        k: Maximum number of results.
        filter_options: Optional include/exclude filters.
        include_vectors: Return vectors with the results.
    """

    query: str | list[float] = Field(description="Query text or vector")
    k: int = Field(default=4, ge=0, description="Maximum results")
    filter_options: FilterOptions | None = None
    include_vectors: bool = False


class QueryEmbedding(BaseModel):
    """The query that was searched and its embedding."""

    text: str | None = Field(
        default=None,
        description="Query text (None when a vector was passed)",
    )
    embedding: list[float]


class SimilaritySearchResponse(BaseModel):
    """Ranked search results plus the query embedding."""

    similar_items: list[SimilarityItem] = Field(default_factory=list)
    query: QueryEmbedding
