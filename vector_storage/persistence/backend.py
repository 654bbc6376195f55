"""Persistence backend interface and implementations."""

import asyncio
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from vector_storage.documents.models import Document
from vector_storage.exceptions import ErrorCode, PersistenceError
from vector_storage.logging_config import get_logger

logger = get_logger(__name__)

_DOCUMENTS_ADAPTER = TypeAdapter(list[Document])


class PersistenceBackend(ABC):
    """Abstract base class for persistence backends.

    Backends bulk-load every document at startup and bulk-replace the
    whole collection on save. There are no incremental updates.
    """

    @abstractmethod
    async def load_all(self) -> list[Document]:
        """Load every stored document.

        Returns:
            Stored documents in saved order. Empty if nothing was saved.

        Raises:
            PersistenceError: If loading fails.
        """
        ...

    @abstractmethod
    async def replace_all(self, documents: list[Document]) -> None:
        """Replace the stored collection with ``documents``.

        Args:
            documents: Full snapshot of the collection.

        Raises:
            PersistenceError: If saving fails.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the backend."""
        return None


class InMemoryBackend(PersistenceBackend):
    """Backend that keeps a private copy of the last saved snapshot."""

    def __init__(self, documents: list[Document] | None = None) -> None:
        """Initialize the in-memory backend.

        Args:
            documents: Initial stored documents.
        """
        self._documents = [doc.model_copy(deep=True) for doc in documents or []]
        self.save_count = 0

    async def load_all(self) -> list[Document]:
        """Return copies of the stored documents."""
        return [doc.model_copy(deep=True) for doc in self._documents]

    async def replace_all(self, documents: list[Document]) -> None:
        """Store copies of ``documents``."""
        self._documents = [doc.model_copy(deep=True) for doc in documents]
        self.save_count += 1


class JSONFileBackend(PersistenceBackend):
    """Backend storing the collection as a JSON array in one file.

    Writes go to a temporary file in the same directory which then
    replaces the target, so a crash never leaves a half-written file.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the JSON file backend.

        Args:
            path: File holding the collection (UTF-8 JSON).
        """
        self.path = Path(path)

    async def load_all(self) -> list[Document]:
        """Load documents from the JSON file.

        A missing file is treated as an empty store.
        """
        return await asyncio.to_thread(self._read)

    async def replace_all(self, documents: list[Document]) -> None:
        """Write the whole collection to the JSON file."""
        payload = _DOCUMENTS_ADAPTER.dump_json(documents)
        await asyncio.to_thread(self._write, payload)

    def _read(self) -> list[Document]:
        if not self.path.exists():
            logger.debug(f"No store file at {self.path}, starting empty")
            return []

        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise PersistenceError(
                f"Failed to read store file: {e}",
                code=ErrorCode.PERSISTENCE_LOAD_FAILED,
                details={"path": str(self.path), "error": str(e)},
            ) from e

        if not raw.strip():
            return []

        try:
            return _DOCUMENTS_ADAPTER.validate_json(raw)
        except PydanticValidationError as e:
            raise PersistenceError(
                f"Store file is not a valid document list: {self.path}",
                code=ErrorCode.PERSISTENCE_LOAD_FAILED,
                details={"path": str(self.path), "errors": e.error_count()},
            ) from e

    def _write(self, payload: bytes) -> None:
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(
                f"Failed to write store file: {e}",
                code=ErrorCode.PERSISTENCE_SAVE_FAILED,
                details={"path": str(self.path), "error": str(e)},
            ) from e
