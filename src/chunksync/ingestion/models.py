"""Domain models for ingested chunks and streamed text records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

# Keys every item's metadata carries; caller-supplied metadata never overrides them.
RESERVED_METADATA_KEYS: tuple[str, ...] = ("text", "length", "source")


def merge_metadata(reserved: dict[str, Any], extra: dict[str, Any] | None) -> dict[str, Any]:
    """Return *reserved* followed by every key of *extra* it does not already define."""
    merged = dict(reserved)
    for key, value in (extra or {}).items():
        if key not in merged:
            merged[key] = value
    return merged


class IngestedItem(BaseModel):
    """A single chunk ready for embedding and upsert.

    Attributes
    ----------
    id:
        Stable identity of the chunk (content hash or positional id).
    text:
        Literal chunk content.  Cannot be reassigned.
    source:
        Identifier of the originating document or text record.
    metadata:
        Ordered metadata mapping; always holds ``text``, ``length`` and
        ``source``.
    vector:
        Embedding, populated once by the synchronization engine.
    """

    id: str
    text: str = Field(frozen=True)
    source: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    vector: list[float] | None = None

    @property
    def token_estimate(self) -> int:
        """Rough token count (≈4 characters per token)."""
        return len(self.text) // 4

    def attach_vector(self, vector: list[float]) -> None:
        """Set the embedding.  An item is embedded at most once."""
        if self.vector is not None:
            raise ValueError(f"Item {self.id!r} already has a vector")
        self.vector = list(vector)


class TextItem(BaseModel):
    """A piece of text pushed in directly rather than read from a file.

    Used for real-time ingestion (webhooks, streams, logs) where writing a
    temporary file would be pointless.
    """

    id: str
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = Field(default_factory=dict)

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def set_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def has_metadata(self, key: str) -> bool:
        return key in self.metadata
