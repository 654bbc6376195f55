"""Document store module."""

from vector_storage.store.service import VectorStorage

__all__ = [
    "VectorStorage",
]
