"""Application exception hierarchy.

All custom exceptions inherit from VectorStorageError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "VS-1000"
    CONFIGURATION_ERROR = "VS-1001"
    VALIDATION_ERROR = "VS-1002"

    # Embedding errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "VS-3000"
    EMBEDDING_DIMENSION_MISMATCH = "VS-3001"
    EMBEDDING_INVALID_RESPONSE = "VS-3002"

    # Persistence errors (4xxx)
    PERSISTENCE_ERROR = "VS-4000"
    PERSISTENCE_LOAD_FAILED = "VS-4001"
    PERSISTENCE_SAVE_FAILED = "VS-4002"


class VectorStorageError(Exception):
    """Base exception for all vector storage errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(VectorStorageError):
    """Invalid configuration, e.g. a size budget above the hard ceiling."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(VectorStorageError):
    """Invalid argument passed to a store operation."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class EmbeddingError(VectorStorageError):
    """Embedding provider failed or returned malformed output."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class DimensionMismatchError(VectorStorageError):
    """Vectors of unequal length were compared.

    This is a programming error: all documents in a store must come from
    the same embedding model.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.EMBEDDING_DIMENSION_MISMATCH, details)


class PersistenceError(VectorStorageError):
    """Persistence backend load or save failure."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PERSISTENCE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
