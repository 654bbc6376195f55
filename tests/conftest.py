"""Pytest configuration and shared fixtures."""

from collections.abc import Callable

import pytest

from vector_storage.config import StorageSettings
from vector_storage.persistence.backend import InMemoryBackend, PersistenceBackend
from vector_storage.store.service import VectorStorage

UNIT_VECTORS: dict[str, list[float]] = {
    "a": [1.0, 0.0, 0.0],
    "b": [0.0, 1.0, 0.0],
    "c": [0.0, 0.0, 1.0],
    "zero": [0.0, 0.0, 0.0],
}


class FakeEmbedder:
    """Deterministic embedding function that records its calls.

    Known texts map to fixed vectors; anything else maps to a vector
    derived from its length.
    """

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = dict(UNIT_VECTORS if vectors is None else vectors)
        self.calls: list[list[str]] = []
        self.error: Exception | None = None

    def __call__(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.error is not None:
            raise self.error
        return [self.vectors.get(text, [1.0, float(len(text)), 1.0]) for text in texts]


@pytest.fixture
def embedder() -> FakeEmbedder:
    """Fresh fake embedding function."""
    return FakeEmbedder()


@pytest.fixture
def backend() -> InMemoryBackend:
    """Empty in-memory persistence backend."""
    return InMemoryBackend()


@pytest.fixture
def make_store(
    embedder: FakeEmbedder,
    backend: InMemoryBackend,
) -> Callable[..., VectorStorage]:
    """Factory for stores wired to the fake embedder and in-memory backend."""

    def _make(
        max_size_in_mb: float = 5.0,
        debounce_time_ms: int = 0,
        store_backend: PersistenceBackend | None = None,
    ) -> VectorStorage:
        settings = StorageSettings(
            max_size_in_mb=max_size_in_mb,
            debounce_time_ms=debounce_time_ms,
        )
        return VectorStorage(
            backend=store_backend or backend,
            settings=settings,
            embed_fn=embedder,
        )

    return _make
