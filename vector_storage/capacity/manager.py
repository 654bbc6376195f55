"""Size-bounded eviction of stored documents.

The collection size is estimated from the length of its JSON
serialization, not from its real memory footprint. This keeps the
budget meaningful for small client-side stores where the persisted
form is what has to fit.
"""

from pydantic import TypeAdapter

from vector_storage.documents.models import Document
from vector_storage.exceptions import ConfigurationError
from vector_storage.logging_config import get_logger
from vector_storage.observability.metrics import track_evictions

logger = get_logger(__name__)

MAX_SIZE_CEILING_MB = 5.0

_BYTES_PER_MB = 1024 * 1024
_DOCUMENTS_ADAPTER = TypeAdapter(list[Document])


def serialized_size_bytes(documents: list[Document]) -> int:
    """Length in bytes of the compact JSON array of ``documents``."""
    return len(_DOCUMENTS_ADAPTER.dump_json(documents))


def _array_size_bytes(item_sizes: list[int]) -> int:
    # Brackets plus one comma between items, matching the compact array form.
    return 2 + sum(item_sizes) + max(len(item_sizes) - 1, 0)


class CapacityManager:
    """Keeps a document collection under a size budget.

    Eviction removes the document with the fewest hits first, breaking
    ties by the oldest timestamp. Access frequency therefore dominates
    recency. The last remaining document is never evicted, even when it
    alone exceeds the budget.
    """

    def __init__(self, max_size_in_mb: float) -> None:
        """Initialize the capacity manager.

        Args:
            max_size_in_mb: Size budget in megabytes.

        Raises:
            ConfigurationError: If the budget is not positive or exceeds
                the hard ceiling.
        """
        if max_size_in_mb <= 0 or max_size_in_mb > MAX_SIZE_CEILING_MB:
            raise ConfigurationError(
                f"max_size_in_mb must be in (0, {MAX_SIZE_CEILING_MB}], "
                f"got {max_size_in_mb}",
                details={
                    "max_size_in_mb": max_size_in_mb,
                    "ceiling": MAX_SIZE_CEILING_MB,
                },
            )
        self._max_size_in_mb = max_size_in_mb

    @property
    def max_size_in_mb(self) -> float:
        """Configured size budget."""
        return self._max_size_in_mb

    def size_in_mb(self, documents: list[Document]) -> float:
        """Estimated serialized size of a collection in megabytes."""
        return serialized_size_bytes(documents) / _BYTES_PER_MB

    def is_over_budget(self, documents: list[Document]) -> bool:
        """Check whether a collection exceeds the size budget."""
        return self.size_in_mb(documents) > self._max_size_in_mb

    def enforce(self, documents: list[Document]) -> list[Document]:
        """Evict documents until the collection fits the budget.

        The list is modified in place. When eviction is needed it is
        first sorted ascending by ``(hits, timestamp)`` and documents are
        removed from the front one at a time, re-measuring after each
        removal.

        Args:
            documents: The live collection.

        Returns:
            The evicted documents, in eviction order.
        """
        if not self.is_over_budget(documents):
            return []

        documents.sort(key=lambda doc: (doc.hits, doc.timestamp))

        budget_bytes = self._max_size_in_mb * _BYTES_PER_MB
        item_sizes = [len(doc.model_dump_json().encode()) for doc in documents]
        evicted: list[Document] = []

        while len(documents) > 1 and _array_size_bytes(item_sizes) > budget_bytes:
            evicted.append(documents.pop(0))
            item_sizes.pop(0)

        if _array_size_bytes(item_sizes) > budget_bytes:
            logger.warning(
                "Single remaining document exceeds the size budget",
                extra={
                    "size_mb": _array_size_bytes(item_sizes) / _BYTES_PER_MB,
                    "max_size_in_mb": self._max_size_in_mb,
                },
            )

        if evicted:
            logger.info(
                f"Evicted {len(evicted)} documents to stay under budget",
                extra={
                    "evicted": len(evicted),
                    "remaining": len(documents),
                    "max_size_in_mb": self._max_size_in_mb,
                },
            )
            track_evictions(len(evicted))

        return evicted
