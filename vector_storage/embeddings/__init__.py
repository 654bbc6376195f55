"""Embedding service module."""

from vector_storage.embeddings.models import EmbeddingResult
from vector_storage.embeddings.service import (
    CallableEmbeddingService,
    EmbeddingService,
    HTTPEmbeddingService,
)

__all__ = [
    "CallableEmbeddingService",
    "EmbeddingResult",
    "EmbeddingService",
    "HTTPEmbeddingService",
]
