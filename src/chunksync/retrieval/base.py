"""The vector-store contract the rest of chunksync is written against.

A backend stores one record per chunk id: a vector, the chunk text (as
metadata key ``text``) and the rest of the chunk metadata.  Synchronization,
metadata queries and search only ever see this class, so supporting another
database means implementing it and nothing else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from chunksync.retrieval.models import MetadataFilter, MetadataRecord


class VectorStoreBase(ABC):
    """One named collection in a vector database.

    Implementations raise :class:`~chunksync.exceptions.StoreError` for
    any failed backend call.  Every call may be a network round trip.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, id: str, vector: list[float], metadata: dict[str, Any]) -> None:
        """Write *vector* and *metadata* for *id* in one call, replacing any previous record."""
        ...

    @abstractmethod
    def delete(self, ids: str | list[str]) -> None:
        ...

    @abstractmethod
    def drop_collection(self) -> None:
        """Empty the collection and leave it ready for writes.

        If this raises, the collection may be half cleared.
        """
        ...

    @abstractmethod
    def search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        """Nearest records to *query_embedding*, best first.

        Each hit is a dict with ``id``, ``content`` (chunk text), ``score``
        (higher = closer) and ``metadata``.  At most *k* hits, fewer when the
        collection is smaller or *filters* exclude records.
        """
        ...

    @abstractmethod
    def exists(self, id: str) -> bool:
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def list_ids(self) -> list[str]:
        ...

    @abstractmethod
    def get_metadata(self, id: str) -> dict[str, Any] | None:
        """Stored metadata for *id*, ``None`` if there is no such record."""
        ...

    @abstractmethod
    def get_all_metadata(self) -> list[MetadataRecord]:
        """Every record's id and metadata.  Reads the whole collection."""
        ...

    # -- optional overrides ---------------------------------------------------

    def health_check(self) -> bool:
        return True
