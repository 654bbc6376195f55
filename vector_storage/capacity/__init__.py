"""Capacity management module."""

from vector_storage.capacity.manager import (
    MAX_SIZE_CEILING_MB,
    CapacityManager,
    serialized_size_bytes,
)

__all__ = [
    "MAX_SIZE_CEILING_MB",
    "CapacityManager",
    "serialized_size_bytes",
]
