"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import hashlib
import math
import threading
from typing import Any

import pytest

from chunksync.exceptions import EmbeddingError, StoreError
from chunksync.ingestion.embedder import Embedder
from chunksync.retrieval.base import VectorStoreBase
from chunksync.retrieval.models import MetadataFilter, MetadataRecord


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class FakeEmbedder(Embedder):
    """Deterministic hash-based embedder that counts calls.

    Texts listed in ``fail_on`` raise :class:`EmbeddingError`.
    """

    provider_name = "fake"

    def __init__(self, dim: int = 8, fail_on: set[str] | None = None) -> None:
        self._dim = dim
        self.fail_on = fail_on or set()
        self.calls = 0
        self.on_embed = None  # optional hook(text) run after each successful call

    @property
    def dimension(self) -> int:
        return self._dim

    def embed(self, text: str, cancel_event: threading.Event | None = None) -> list[float]:
        if cancel_event is not None and cancel_event.is_set():
            raise EmbeddingError("Embedding cancelled")
        self.calls += 1
        if text in self.fail_on:
            raise EmbeddingError("fake provider refused text")
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        vector = [digest[i] / 255.0 + 0.01 for i in range(self._dim)]
        if self.on_embed is not None:
            self.on_embed(text)
        return vector


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    return dot / (na * nb) if na and nb else 0.0


class FakeVectorStore(VectorStoreBase):
    """In-memory store with call counters and injectable failures."""

    def __init__(self, collection_name: str = "test-collection") -> None:
        super().__init__(collection_name)
        self.records: dict[str, tuple[list[float], dict[str, Any]]] = {}
        self.upsert_calls = 0
        self.exists_calls = 0
        self.drop_calls = 0
        self.fail_drop = False
        self.fail_upsert_ids: set[str] = set()
        self.last_filters: list[MetadataFilter] | None = None

    def upsert(self, id: str, vector: list[float], metadata: dict[str, Any]) -> None:
        self.upsert_calls += 1
        if id in self.fail_upsert_ids:
            raise StoreError("upsert", "fake store refused write", item_id=id)
        self.records[id] = (list(vector), dict(metadata))

    def delete(self, ids: str | list[str]) -> None:
        for id in [ids] if isinstance(ids, str) else ids:
            self.records.pop(id, None)

    def drop_collection(self) -> None:
        self.drop_calls += 1
        if self.fail_drop:
            raise StoreError("drop_collection", "collection state is uncertain")
        self.records.clear()

    def search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        self.last_filters = filters
        hits = [
            {
                "id": id,
                "content": meta.get("text", ""),
                "score": _cosine(query_embedding, vector),
                "metadata": meta,
            }
            for id, (vector, meta) in self.records.items()
        ]
        hits.sort(key=lambda h: h["score"], reverse=True)
        return hits[:k]

    def exists(self, id: str) -> bool:
        self.exists_calls += 1
        return id in self.records

    def count(self) -> int:
        return len(self.records)

    def list_ids(self) -> list[str]:
        return list(self.records)

    def get_metadata(self, id: str) -> dict[str, Any] | None:
        record = self.records.get(id)
        return dict(record[1]) if record else None

    def get_all_metadata(self) -> list[MetadataRecord]:
        return [MetadataRecord(id, dict(meta)) for id, (_, meta) in self.records.items()]


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture()
def fake_store() -> FakeVectorStore:
    return FakeVectorStore()
