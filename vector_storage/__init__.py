"""Client-side vector storage with cosine search and size-bounded eviction."""

__version__ = "0.1.0"
