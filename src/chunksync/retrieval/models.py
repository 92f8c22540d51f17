"""Records read back from a vector store and search results built from them."""

from __future__ import annotations

from typing import Any, Literal, NamedTuple

from pydantic import BaseModel, Field

FilterOperator = Literal["eq", "ne", "gt", "gte", "lt", "lte", "in", "nin"]


class MetadataRecord(NamedTuple):
    """A stored record's id and its metadata."""

    id: str
    metadata: dict[str, Any]


class MetadataFilter(BaseModel):
    """One server-side condition on a metadata field, used to narrow a search.

    Conditions passed together are combined with AND.  ``value`` is a list
    for ``in`` / ``nin``.
    """

    field: str
    operator: FilterOperator = "eq"
    value: Any = None

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)

    @classmethod
    def not_equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="ne", value=value)

    @classmethod
    def one_of(cls, field: str, values: list[Any]) -> MetadataFilter:
        return cls(field=field, operator="in", value=list(values))

    @classmethod
    def at_least(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="gte", value=value)

    @classmethod
    def at_most(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="lte", value=value)


class Citation(BaseModel):
    """Where a search hit came from.

    Attributes
    ----------
    document_id:
        Id of the stored chunk.
    source:
        File path or text-record id the chunk was cut from.
    chunk_index / chunk_count:
        Position of the chunk within its source, when metadata was kept.
    page:
        Page number, for sources whose metadata carries one.
    score:
        Similarity reported by the store (higher is closer).
    """

    document_id: str | None = None
    source: str = "unknown"
    chunk_index: int | None = None
    chunk_count: int | None = None
    page: int | None = None
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_hit(cls, hit: dict[str, Any]) -> Citation:
        meta = hit.get("metadata") or {}
        return cls(
            document_id=hit.get("id"),
            source=meta.get("source", "unknown"),
            chunk_index=meta.get("chunk_index"),
            chunk_count=meta.get("chunk_count"),
            page=meta.get("page"),
            score=hit.get("score"),
            metadata=meta,
        )

    def short_ref(self) -> str:
        """``[source§chunk]``, with ``?`` when the chunk index is unknown."""
        chunk = "?" if self.chunk_index is None else self.chunk_index
        return f"[{self.source}§{chunk}]"


class RetrievalResult(BaseModel):
    """Chunk text returned by a search, with its citation."""

    content: str
    citation: Citation

    @classmethod
    def from_hit(cls, hit: dict[str, Any]) -> RetrievalResult:
        # Stores that keep no separate document fall back to the metadata copy.
        content = hit.get("content") or (hit.get("metadata") or {}).get("text", "")
        return cls(content=content, citation=Citation.from_hit(hit))

    @property
    def score(self) -> float | None:
        return self.citation.score

    def __str__(self) -> str:
        return f"{self.citation.short_ref()} {self.content[:120]}…"
