"""Debounced persistence writes."""

import asyncio
from collections.abc import Callable

from vector_storage.documents.models import Document
from vector_storage.logging_config import get_logger
from vector_storage.observability.metrics import track_persistence_save
from vector_storage.persistence.backend import PersistenceBackend

logger = get_logger(__name__)


class DebouncedSaver:
    """Coalesces save requests into backend writes.

    With a zero delay every request writes inline. Otherwise each request
    restarts a quiet-period timer, and when the timer fires one write
    runs with the snapshot taken at that moment. The trailing write after
    the last request always runs. Write failures are logged and never
    raised; the in-memory collection stays authoritative.
    """

    def __init__(
        self,
        backend: PersistenceBackend,
        snapshot: Callable[[], list[Document]],
        debounce_time_ms: int = 0,
    ) -> None:
        """Initialize the saver.

        Args:
            backend: Backend receiving full snapshots.
            snapshot: Returns the current collection when called.
            debounce_time_ms: Quiet period before writing, in milliseconds.
        """
        self._backend = backend
        self._snapshot = snapshot
        self._delay = debounce_time_ms / 1000
        self._timer: asyncio.TimerHandle | None = None
        self._writes: set[asyncio.Task[None]] = set()
        self._write_lock = asyncio.Lock()

    @property
    def pending(self) -> bool:
        """Whether a write is waiting for its timer or still running."""
        return self._timer is not None or bool(self._writes)

    async def request_save(self) -> None:
        """Ask for the current collection to be persisted.

        Returns immediately when debouncing; the write happens once the
        quiet period elapses.
        """
        if self._delay <= 0:
            await self._save()
            return

        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        self._timer = None
        task = asyncio.get_running_loop().create_task(self._save())
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)

    async def _save(self) -> None:
        async with self._write_lock:
            documents = self._snapshot()
            try:
                await self._backend.replace_all(documents)
            except Exception as e:
                track_persistence_save(success=False)
                logger.error(
                    f"Failed to persist documents: {e}",
                    extra={
                        "documents": len(documents),
                        "details": getattr(e, "details", {}),
                    },
                    exc_info=True,
                )
                return

        track_persistence_save()
        logger.debug(f"Persisted {len(documents)} documents")

    async def flush(self) -> None:
        """Write any pending snapshot now and wait for running writes."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            await self._save()
        if self._writes:
            await asyncio.gather(*self._writes)
