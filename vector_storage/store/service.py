"""Document store orchestrating embedding, search, eviction and persistence."""

import asyncio
from collections.abc import Sequence
from types import TracebackType
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from vector_storage.capacity.manager import CapacityManager
from vector_storage.config import StorageSettings, get_settings
from vector_storage.documents.models import (
    Document,
    FilterOptions,
    QueryEmbedding,
    SimilarityItem,
    SimilaritySearchParams,
    SimilaritySearchResponse,
    now_ms,
)
from vector_storage.embeddings.service import (
    CallableEmbeddingService,
    EmbedFn,
    EmbeddingService,
    HTTPEmbeddingService,
)
from vector_storage.exceptions import ValidationError
from vector_storage.filtering.filters import filter_documents
from vector_storage.logging_config import get_logger
from vector_storage.observability.metrics import (
    track_search_request,
    update_store_gauges,
)
from vector_storage.persistence.backend import JSONFileBackend, PersistenceBackend
from vector_storage.persistence.debounce import DebouncedSaver
from vector_storage.scoring.similarity import magnitude, rank_scores, score_documents

logger = get_logger(__name__)


class VectorStorage:
    """Capacity-bounded store of embedded texts with cosine search.

    Texts are embedded once and cached; adding a text that is already
    stored does not call the embedding provider again. Every search
    increments the hit counter of the documents it returns, and when the
    serialized collection grows past ``max_size_in_mb`` the least hit,
    oldest documents are evicted.

    Mutating operations are serialized by a single lock, so concurrent
    coroutines never observe a half-applied insert or search.

    Example:
        async with await VectorStorage.create(embed_fn=my_embed) as store:
            await store.add_texts(["a", "b"], [{}, {}])
            response = await store.similarity_search(query="a", k=1)
    """

    def __init__(
        self,
        embedding_service: EmbeddingService | None = None,
        backend: PersistenceBackend | None = None,
        settings: StorageSettings | None = None,
        embed_fn: EmbedFn | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            embedding_service: Embedding provider. Defaults to the HTTP
                service configured from the environment.
            backend: Persistence backend. Defaults to a JSON file at
                ``settings.store_path``.
            settings: Store configuration. Uses defaults if not provided.
            embed_fn: Custom embedding function. When given it replaces
                the embedding service entirely.

        Raises:
            ConfigurationError: If ``max_size_in_mb`` exceeds the ceiling.
        """
        self._settings = settings or get_settings().storage
        self._capacity = CapacityManager(self._settings.max_size_in_mb)

        if embed_fn is not None:
            self._embedding_service: EmbeddingService = CallableEmbeddingService(embed_fn)
            self._owns_embedding_service = True
        elif embedding_service is not None:
            self._embedding_service = embedding_service
            self._owns_embedding_service = False
        else:
            self._embedding_service = HTTPEmbeddingService()
            self._owns_embedding_service = True

        self._backend = backend or JSONFileBackend(self._settings.store_path)
        self._saver = DebouncedSaver(
            self._backend,
            self._snapshot,
            self._settings.debounce_time_ms,
        )
        self._documents: list[Document] = []
        self._lock = asyncio.Lock()
        self._initialized = False

    @classmethod
    async def create(cls, **kwargs: Any) -> "VectorStorage":
        """Create a store and load its persisted documents.

        Args:
            **kwargs: Arguments forwarded to the constructor.

        Returns:
            Initialized VectorStorage instance.
        """
        store = cls(**kwargs)
        await store.initialize()
        return store

    async def __aenter__(self) -> "VectorStorage":
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def initialize(self) -> None:
        """Load persisted documents.

        Load failures are logged and the store starts empty. Loaded
        documents are trimmed to the size budget.
        """
        async with self._lock:
            await self._ensure_initialized()

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        self._initialized = True

        try:
            loaded = await self._backend.load_all()
        except Exception as e:
            logger.error(
                f"Failed to load documents, starting empty: {e}",
                extra={"details": getattr(e, "details", {})},
                exc_info=True,
            )
            return

        # Stored magnitudes are recomputed, never trusted.
        self._documents = [
            doc.model_copy(update={"vector_mag": magnitude(doc.vector)})
            for doc in loaded
        ]
        self._capacity.enforce(self._documents)
        self._update_gauges()
        logger.info(f"Loaded {len(self._documents)} documents")

    @property
    def documents(self) -> list[Document]:
        """Copies of the stored documents, in collection order."""
        return [doc.model_copy(deep=True) for doc in self._documents]

    @property
    def size_in_mb(self) -> float:
        """Estimated serialized size of the collection."""
        return self._capacity.size_in_mb(self._documents)

    @property
    def max_size_in_mb(self) -> float:
        """Configured size budget."""
        return self._capacity.max_size_in_mb

    def __len__(self) -> int:
        return len(self._documents)

    async def add_text(
        self,
        text: str,
        metadata: dict[str, Any] | None = None,
    ) -> Document | None:
        """Add a single text.

        Args:
            text: Text to store.
            metadata: Metadata to attach.

        Returns:
            The new document, or None if the text was already stored.

        Raises:
            EmbeddingError: If embedding fails.
        """
        documents = await self.add_texts([text], [metadata or {}])
        return documents[0] if documents else None

    async def add_texts(
        self,
        texts: Sequence[str],
        metadatas: Sequence[dict[str, Any]] | None = None,
    ) -> list[Document]:
        """Add texts that are not stored yet.

        Only novel texts are embedded, in one batched provider call. Texts
        repeated within ``texts`` are added once, with the metadata of
        their first occurrence.

        Args:
            texts: Texts to store.
            metadatas: One metadata dict per text. Defaults to empty dicts.

        Returns:
            The newly created documents; empty if every text was stored.

        Raises:
            ValidationError: If ``texts`` and ``metadatas`` differ in length.
            EmbeddingError: If embedding fails. Nothing is stored then.
        """
        if metadatas is None:
            metadatas = [{} for _ in texts]
        if len(texts) != len(metadatas):
            raise ValidationError(
                "The lengths of texts and metadatas must match",
                details={"texts": len(texts), "metadatas": len(metadatas)},
            )

        async with self._lock:
            await self._ensure_initialized()

            seen = {doc.text for doc in self._documents}
            pending: list[tuple[str, dict[str, Any]]] = []
            for text, metadata in zip(texts, metadatas):
                if text in seen:
                    continue
                seen.add(text)
                pending.append((text, metadata))

            if not pending:
                logger.debug("All texts already stored, nothing to embed")
                return []

            results = await self._embedding_service.embed_batch(
                [text for text, _ in pending]
            )

            new_documents = [
                Document(
                    text=text,
                    metadata=dict(metadata),
                    vector=result.embedding,
                    vector_mag=magnitude(result.embedding),
                    timestamp=now_ms(),
                )
                for (text, metadata), result in zip(pending, results)
            ]
            self._documents.extend(new_documents)
            self._capacity.enforce(self._documents)
            self._update_gauges()

            logger.info(
                f"Added {len(new_documents)} documents",
                extra={
                    "submitted": len(texts),
                    "added": len(new_documents),
                    "total": len(self._documents),
                },
            )

            await self._saver.request_save()
            return [doc.model_copy(deep=True) for doc in new_documents]

    async def similarity_search(
        self,
        params: SimilaritySearchParams | None = None,
        /,
        *,
        query: str | Sequence[float] | None = None,
        k: int = 4,
        filter_options: FilterOptions | dict[str, Any] | None = None,
        include_vectors: bool = False,
    ) -> SimilaritySearchResponse:
        """Find the stored documents most similar to a query.

        Accepts either a SimilaritySearchParams instance or the same
        fields as keyword arguments.

        Scores are normalized cosine similarity, ``(cosine + 1) / 2``, in
        [0, 1]. Documents whose cosine is undefined (zero-magnitude
        vectors) get a score of None and rank last. Equal scores keep
        collection order.

        Returns:
            Up to ``k`` results, best first, plus the query embedding.

        Raises:
            ValidationError: If the search parameters are invalid.
            EmbeddingError: If embedding a text query fails.
            DimensionMismatchError: If the query vector length differs
                from the stored vectors.
        """
        if params is None:
            if query is None:
                raise ValidationError("A query text or vector is required")
            try:
                params = SimilaritySearchParams(
                    query=query if isinstance(query, str) else list(query),
                    k=k,
                    filter_options=filter_options,
                    include_vectors=include_vectors,
                )
            except PydanticValidationError as e:
                raise ValidationError(
                    f"Invalid search parameters: {e}",
                    details={"errors": e.error_count()},
                ) from e

        if isinstance(params.query, str):
            query_text: str | None = params.query
            query_vector = (await self._embedding_service.embed(params.query)).embedding
        else:
            query_text = None
            query_vector = list(params.query)
        query_mag = magnitude(query_vector)

        async with self._lock:
            await self._ensure_initialized()

            candidates = filter_documents(self._documents, params.filter_options)
            ranked = rank_scores(score_documents(candidates, query_vector, query_mag))
            top = ranked[: params.k]

            for document, _ in top:
                document.hits += 1

            items = [
                SimilarityItem.from_document(document, score, params.include_vectors)
                for document, score in top
            ]

            if top:
                self._capacity.enforce(self._documents)
                self._update_gauges()
                await self._saver.request_save()

        track_search_request(len(items), items[0].score if items else None)
        logger.debug(
            f"Search returned {len(items)} results",
            extra={
                "candidates": len(candidates),
                "k": params.k,
                "results_count": len(items),
            },
        )

        return SimilaritySearchResponse(
            similar_items=items,
            query=QueryEmbedding(text=query_text, embedding=query_vector),
        )

    async def flush(self) -> None:
        """Write any pending debounced save now."""
        await self._saver.flush()

    async def close(self) -> None:
        """Flush pending saves and release owned resources."""
        await self._saver.flush()
        if self._owns_embedding_service:
            await self._embedding_service.close()
        await self._backend.close()

    def _snapshot(self) -> list[Document]:
        return [doc.model_copy(deep=True) for doc in self._documents]

    def _update_gauges(self) -> None:
        update_store_gauges(len(self._documents), self.size_in_mb)
