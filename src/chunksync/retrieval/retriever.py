"""Query text → embedding → store search → cited results.

Usage::

    retriever = SemanticRetriever(store, embedder, score_threshold=0.3)
    for result in retriever.search("How are chunks deduplicated?", k=5):
        print(result.citation.short_ref(), result.content[:80])
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from chunksync.exceptions import ConfigurationError
from chunksync.retrieval.base import VectorStoreBase
from chunksync.retrieval.models import MetadataFilter, RetrievalResult

if TYPE_CHECKING:
    from chunksync.ingestion.embedder import Embedder


class SemanticRetriever:
    """Similarity search over a store, embedding queries with *embedder*.

    Parameters
    ----------
    store:
        Store to search.
    embedder:
        Must be the embedder the collection was trained with, or query and
        stored vectors are not comparable.
    default_k:
        Result count when a call gives none.
    score_threshold:
        Hits scoring below this are dropped after the store returns them,
        so a call can return fewer than ``k`` results.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: Embedder,
        *,
        default_k: int = 5,
        score_threshold: float = 0.0,
        logger: logging.Logger | None = None,
    ) -> None:
        if default_k <= 0:
            raise ConfigurationError(f"default_k must be positive, got {default_k}")
        self._store = store
        self._embedder = embedder
        self.default_k = default_k
        self.score_threshold = score_threshold
        self._log = logger or logging.getLogger(__name__)

    def search(
        self,
        query: str,
        *,
        k: int | None = None,
        filters: list[MetadataFilter] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[RetrievalResult]:
        """Embed *query* and return up to *k* results by descending score."""
        vector = self._embedder.embed(query, cancel_event)
        return self.search_by_embedding(vector, k=k, filters=filters)

    def search_by_embedding(
        self,
        embedding: list[float],
        *,
        k: int | None = None,
        filters: list[MetadataFilter] | None = None,
    ) -> list[RetrievalResult]:
        k = self.default_k if k is None else k
        if k <= 0:
            raise ConfigurationError(f"k must be positive, got {k}")

        hits = self._store.search(embedding, k=k, filters=filters)
        results = [
            RetrievalResult.from_hit(hit)
            for hit in hits
            if hit.get("score") is None or hit["score"] >= self.score_threshold
        ]
        self._log.debug(
            "Search on %r: %d hit(s), %d above threshold %.2f",
            self._store.collection_name, len(hits), len(results), self.score_threshold,
        )
        return results

    def search_texts(self, query: str, *, k: int | None = None) -> list[str]:
        """Chunk texts of the best matches only, e.g. to paste into a prompt."""
        return [result.content for result in self.search(query, k=k)]

    def search_context(self, query: str, *, k: int | None = None, separator: str = "\n\n") -> str:
        """Best matching chunk texts as one string, ``""`` when nothing matches."""
        return separator.join(self.search_texts(query, k=k))
