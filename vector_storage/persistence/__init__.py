"""Persistence module."""

from vector_storage.persistence.backend import (
    InMemoryBackend,
    JSONFileBackend,
    PersistenceBackend,
)
from vector_storage.persistence.debounce import DebouncedSaver

__all__ = [
    "DebouncedSaver",
    "InMemoryBackend",
    "JSONFileBackend",
    "PersistenceBackend",
]
