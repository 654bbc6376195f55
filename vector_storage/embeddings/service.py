"""Embedding service interface and implementations."""

import inspect
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence

import httpx

from vector_storage.config import EmbeddingSettings, get_settings
from vector_storage.embeddings.models import EmbeddingResult
from vector_storage.exceptions import EmbeddingError, ErrorCode
from vector_storage.logging_config import get_logger
from vector_storage.observability.metrics import track_embedding_request

logger = get_logger(__name__)

EmbedFn = Callable[
    [list[str]],
    Sequence[Sequence[float]] | Awaitable[Sequence[Sequence[float]]],
]


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Implementations map a batch of texts to vectors of equal length, in
    input order.
    """

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            EmbeddingError: If embedding fails.
        """
        results = await self.embed_batch([text])
        return results[0]

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts.

        Args:
            texts: List of texts to embed.

        Returns:
            One EmbeddingResult per text, in input order.

        Raises:
            EmbeddingError: If embedding fails or the provider returns
                malformed output.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    async def close(self) -> None:
        """Release any resources held by the service."""
        return None


def _build_results(
    texts: list[str],
    vectors: Sequence[Sequence[float]],
    model: str,
    expected_dimensions: int | None = None,
) -> list[EmbeddingResult]:
    """Pair texts with vectors, checking the provider's output shape.

    Args:
        texts: Texts sent to the provider.
        vectors: Vectors returned, one per text.
        model: Model label for the results.
        expected_dimensions: Vector length already seen from this
            provider, if any.

    Raises:
        EmbeddingError: If the count or the lengths of the vectors are
            inconsistent.
    """
    if len(vectors) != len(texts):
        raise EmbeddingError(
            f"Embedding provider returned {len(vectors)} vectors "
            f"for {len(texts)} texts",
            code=ErrorCode.EMBEDDING_INVALID_RESPONSE,
            details={"expected": len(texts), "received": len(vectors)},
        )

    try:
        lengths = sorted({len(vector) for vector in vectors})
    except TypeError as e:
        raise EmbeddingError(
            f"Invalid vector from embedding provider: {e}",
            code=ErrorCode.EMBEDDING_INVALID_RESPONSE,
            details={"error": str(e)},
        ) from e

    if len(lengths) > 1:
        raise EmbeddingError(
            f"Embedding provider returned vectors of differing lengths {lengths}",
            code=ErrorCode.EMBEDDING_INVALID_RESPONSE,
            details={"lengths": lengths},
        )
    if (
        expected_dimensions is not None
        and lengths
        and lengths[0] != expected_dimensions
    ):
        raise EmbeddingError(
            f"Embedding provider returned {lengths[0]} dimensions, "
            f"expected {expected_dimensions}",
            code=ErrorCode.EMBEDDING_INVALID_RESPONSE,
            details={"expected": expected_dimensions, "received": lengths[0]},
        )

    try:
        return [
            EmbeddingResult(
                text=text,
                embedding=list(vector),
                model=model,
                dimensions=len(vector),
            )
            for text, vector in zip(texts, vectors)
        ]
    except (TypeError, ValueError) as e:
        raise EmbeddingError(
            f"Invalid vector from embedding provider: {e}",
            code=ErrorCode.EMBEDDING_INVALID_RESPONSE,
            details={"error": str(e)},
        ) from e


class HTTPEmbeddingService(EmbeddingService):
    """Embedding service using HTTP API.

    Compatible with the OpenAI embeddings API and OpenAI-style servers
    such as text-embeddings-inference (TEI).
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "text-embedding-ada-002": 1536,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "BAAI/bge-large-en-v1.5": 1024,
        "BAAI/bge-base-en-v1.5": 768,
        "BAAI/bge-small-en-v1.5": 384,
    }

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HTTP embedding service.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None
        self._dimensions: int | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    @property
    def dimensions(self) -> int | None:
        """Embedding dimensions, once known."""
        if self._dimensions is not None:
            return self._dimensions
        return self.MODEL_DIMENSIONS.get(self._settings.model)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.api_key is not None:
            api_key = self._settings.api_key.get_secret_value()
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts.

        Texts are sent in chunks of ``batch_size``; results keep input
        order.
        """
        if not texts:
            return []

        client = await self._get_client()
        url = f"{self._settings.base_url.rstrip('/')}/embeddings"

        all_results: list[EmbeddingResult] = []
        batch_size = self._settings.batch_size

        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            batch_results = await self._embed_batch_request(client, url, batch)
            all_results.extend(batch_results)

        return all_results

    async def _embed_batch_request(
        self,
        client: httpx.AsyncClient,
        url: str,
        texts: list[str],
    ) -> list[EmbeddingResult]:
        """Make embedding request for a batch.

        Args:
            client: HTTP client.
            url: Embedding endpoint URL.
            texts: Batch of texts.

        Returns:
            List of EmbeddingResult objects.

        Raises:
            EmbeddingError: If request fails.
        """
        payload = {
            "input": texts,
            "model": self._settings.model,
        }
        start_time = time.perf_counter()

        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start_time, len(texts), False
            )
            logger.error(
                f"Embedding request failed: {e.response.status_code}",
                extra={"url": url, "status": e.response.status_code},
            )
            raise EmbeddingError(
                f"Embedding service returned {e.response.status_code}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start_time, len(texts), False
            )
            logger.error(
                f"Embedding request error: {e}",
                extra={"url": url},
            )
            raise EmbeddingError(
                f"Failed to connect to embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"url": url},
            ) from e

        try:
            data = response.json()
            # OpenAI may return items out of order; "index" restores it.
            items = sorted(
                data["data"],
                key=lambda item: item.get("index", 0),
            )
            vectors = [item["embedding"] for item in items]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start_time, len(texts), False
            )
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_INVALID_RESPONSE,
                details={"error": str(e)},
            ) from e

        try:
            results = _build_results(
                texts, vectors, self._settings.model, self._dimensions
            )
        except EmbeddingError:
            track_embedding_request(
                self.model_name, time.perf_counter() - start_time, len(texts), False
            )
            raise
        if self._dimensions is None and results:
            self._dimensions = results[0].dimensions

        track_embedding_request(
            self.model_name, time.perf_counter() - start_time, len(texts)
        )
        return results


class CallableEmbeddingService(EmbeddingService):
    """Embedding service backed by a user-supplied function.

    The function receives a list of texts and returns one vector per
    text. It may be a plain function or a coroutine function. No network
    provider is involved.
    """

    def __init__(self, embed_fn: EmbedFn, model_name: str = "custom") -> None:
        """Initialize the callable embedding service.

        Args:
            embed_fn: Function mapping texts to vectors.
            model_name: Label reported in results and metrics.
        """
        self._embed_fn = embed_fn
        self._model_name = model_name

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._model_name

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings by calling the wrapped function."""
        if not texts:
            return []

        start_time = time.perf_counter()
        try:
            vectors = self._embed_fn(list(texts))
            if inspect.isawaitable(vectors):
                vectors = await vectors
        except EmbeddingError:
            track_embedding_request(
                self._model_name, time.perf_counter() - start_time, len(texts), False
            )
            raise
        except Exception as e:
            track_embedding_request(
                self._model_name, time.perf_counter() - start_time, len(texts), False
            )
            logger.error(f"Custom embedding function failed: {e}")
            raise EmbeddingError(
                f"Custom embedding function failed: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e

        results = _build_results(list(texts), vectors, self._model_name)
        track_embedding_request(
            self._model_name, time.perf_counter() - start_time, len(texts)
        )
        return results
