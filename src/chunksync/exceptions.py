"""Exception hierarchy shared by every chunksync component.

Configuration errors are defects to fix before running and are raised at
build time.  The remaining errors describe failures of a single source,
a single item or a single store call, and carry enough context (source
path, item id, operation) for a caller to retry a subset of the work.
"""

from __future__ import annotations


class ChunkSyncError(Exception):
    """Base class for all chunksync errors."""


class ConfigurationError(ChunkSyncError):
    """Invalid chunking bounds, missing builder inputs or unsupported options."""


class SourceReadError(ChunkSyncError):
    """A source could not be opened or parsed."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to read source {source!r}: {reason}")


class EmbeddingError(ChunkSyncError):
    """The embedding provider failed (or was cancelled) for an item."""

    def __init__(self, message: str, *, item_id: str | None = None, source: str | None = None) -> None:
        self.item_id = item_id
        self.source = source
        context = ", ".join(
            f"{name}={value!r}" for name, value in (("item_id", item_id), ("source", source)) if value
        )
        super().__init__(f"{message} ({context})" if context else message)


class StoreError(ChunkSyncError):
    """A vector-store operation failed."""

    def __init__(self, operation: str, message: str, *, item_id: str | None = None) -> None:
        self.operation = operation
        self.item_id = item_id
        suffix = f" (item_id={item_id!r})" if item_id else ""
        super().__init__(f"{operation} failed: {message}{suffix}")
