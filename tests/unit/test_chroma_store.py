"""Tests for the Chroma backend against an in-memory ``EphemeralClient``."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from chunksync.exceptions import StoreError
from chunksync.retrieval.models import MetadataFilter
from chunksync.retrieval.query import MetadataQuery

try:
    import chromadb

    from chunksync.retrieval.chroma_store import (
        METADATA_JSON_KEY,
        ChromaVectorStore,
        _build_chroma_where,
        _decode_metadata,
        _encode_metadata,
    )
except Exception:  # chromadb missing or incompatible
    pytest.skip("chromadb not importable in this environment", allow_module_level=True)


@pytest.fixture()
def store() -> ChromaVectorStore:
    return ChromaVectorStore(f"test-{uuid.uuid4().hex[:8]}", client=chromadb.EphemeralClient())


# ── where-clause builder ────────────────────────────────────────────────


class TestBuildChromaWhere:
    def test_single_filter(self) -> None:
        where = _build_chroma_where([MetadataFilter.equals("source", "a.md")])
        assert where == {"source": {"$eq": "a.md"}}

    def test_multiple_filters_produce_and(self) -> None:
        filters = [
            MetadataFilter.equals("source", "a.md"),
            MetadataFilter(field="chunk_index", operator="gte", value=5),
        ]
        where = _build_chroma_where(filters)
        assert len(where["$and"]) == 2

    def test_none_when_empty(self) -> None:
        assert _build_chroma_where([]) is None

    def test_unsupported_operator_raises(self) -> None:
        bogus = MetadataFilter.model_construct(field="x", operator="regex", value=".*")
        with pytest.raises(ValueError, match="Unsupported filter operator"):
            _build_chroma_where([bogus])


# ── metadata encoding ───────────────────────────────────────────────────


def test_metadata_round_trips_through_json_copy() -> None:
    when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    meta = {"text": "abc", "length": 3, "tags": ["a", "b"], "processed_at": when, "nothing": None}
    flat = _encode_metadata(meta)
    assert flat["processed_at"] == when.isoformat()
    assert flat["tags"] == '["a", "b"]'
    assert "nothing" not in flat
    assert METADATA_JSON_KEY in flat
    decoded = _decode_metadata(flat)
    assert decoded["tags"] == ["a", "b"]
    assert decoded["nothing"] is None
    assert decoded["processed_at"] == when.isoformat()


def test_decode_without_json_copy_uses_flat_fields() -> None:
    assert _decode_metadata({"source": "a.txt"}) == {"source": "a.txt"}
    assert _decode_metadata(None) == {}


# ── store operations ────────────────────────────────────────────────────


class TestChromaVectorStore:
    def test_upsert_exists_count(self, store: ChromaVectorStore) -> None:
        assert store.count() == 0
        store.upsert("a", [1.0, 0.0, 0.0], {"text": "alpha", "source": "a.txt"})
        assert store.exists("a")
        assert not store.exists("b")
        assert store.count() == 1
        assert store.list_ids() == ["a"]

    def test_upsert_replaces(self, store: ChromaVectorStore) -> None:
        store.upsert("a", [1.0, 0.0, 0.0], {"text": "old"})
        store.upsert("a", [0.0, 1.0, 0.0], {"text": "new"})
        assert store.count() == 1
        assert store.get_metadata("a")["text"] == "new"

    def test_search_orders_by_score(self, store: ChromaVectorStore) -> None:
        store.upsert("x", [1.0, 0.0, 0.0], {"text": "x-axis", "source": "x.txt"})
        store.upsert("y", [0.0, 1.0, 0.0], {"text": "y-axis", "source": "y.txt"})
        hits = store.search([0.9, 0.1, 0.0], k=5)
        assert [h["id"] for h in hits] == ["x", "y"]
        assert hits[0]["score"] >= hits[1]["score"]
        assert hits[0]["content"] == "x-axis"
        assert hits[0]["metadata"]["source"] == "x.txt"

    def test_search_with_filter(self, store: ChromaVectorStore) -> None:
        store.upsert("x", [1.0, 0.0, 0.0], {"text": "x-axis", "source": "x.txt"})
        store.upsert("y", [0.0, 1.0, 0.0], {"text": "y-axis", "source": "y.txt"})
        hits = store.search([1.0, 0.0, 0.0], k=5, filters=[MetadataFilter.equals("source", "y.txt")])
        assert [h["id"] for h in hits] == ["y"]

    def test_search_empty_collection(self, store: ChromaVectorStore) -> None:
        assert store.search([1.0, 0.0, 0.0]) == []

    def test_delete_one_and_many(self, store: ChromaVectorStore) -> None:
        for id in ("a", "b", "c"):
            store.upsert(id, [1.0, 0.0, 0.0], {"text": id})
        store.delete("a")
        store.delete(["b", "c"])
        assert store.count() == 0

    def test_drop_collection_empties_and_stays_usable(self, store: ChromaVectorStore) -> None:
        store.upsert("a", [1.0, 0.0, 0.0], {"text": "a"})
        store.drop_collection()
        assert store.count() == 0
        store.upsert("b", [1.0, 0.0, 0.0], {"text": "b"})
        assert store.list_ids() == ["b"]

    def test_metadata_scan_feeds_range_queries(self, store: ChromaVectorStore) -> None:
        for n in (5, 10, 15, 20, 25):
            store.upsert(f"doc-{n}", [float(n), 1.0, 0.0], {"text": f"chunk {n}", "n": n})
        records = MetadataQuery(store).get_by_range("n", 10, 20)
        assert sorted(r.id for r in records) == ["doc-10", "doc-15", "doc-20"]

    def test_datetime_filter_matches_after_round_trip(self, store: ChromaVectorStore) -> None:
        when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        store.upsert("a", [1.0, 0.0, 0.0], {"text": "a", "processed_at": when})
        assert MetadataQuery(store).get_ids("processed_at", when) == ["a"]

    def test_get_metadata_missing(self, store: ChromaVectorStore) -> None:
        assert store.get_metadata("missing") is None


class TestChromaFailures:
    def test_drop_failure_reports_uncertain_state(self) -> None:
        client = MagicMock()
        client.delete_collection.side_effect = RuntimeError("connection reset")
        store = ChromaVectorStore("broken", client=client)
        with pytest.raises(StoreError, match="uncertain"):
            store.drop_collection()

    def test_upsert_failure_carries_item_id(self) -> None:
        client = MagicMock()
        client.get_or_create_collection.return_value.upsert.side_effect = RuntimeError("boom")
        store = ChromaVectorStore("broken", client=client)
        with pytest.raises(StoreError) as excinfo:
            store.upsert("item-1", [0.1], {"text": "t"})
        assert excinfo.value.item_id == "item-1"
        assert excinfo.value.operation == "upsert"

    def test_health_check_false_when_unreachable(self) -> None:
        client = MagicMock()
        client.heartbeat.side_effect = ConnectionError("down")
        assert ChromaVectorStore("broken", client=client).health_check() is False
