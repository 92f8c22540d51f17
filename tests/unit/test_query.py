"""Unit tests for full-scan metadata queries."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from chunksync.retrieval.query import MetadataQuery, in_range, matches


@pytest.fixture()
def populated_store(fake_store):
    for n in (5, 10, 15, 20, 25):
        fake_store.upsert(
            f"doc-{n}",
            [float(n)],
            {"text": f"chunk {n}", "n": n, "source": f"file{n}.txt", "tags": ["even" if n % 2 == 0 else "odd"]},
        )
    return fake_store


class TestInRange:
    def test_numbers_inclusive(self) -> None:
        assert in_range(10, 10, 20)
        assert in_range(20, 10, 20)
        assert not in_range(21, 10, 20)

    def test_mixed_int_and_float(self) -> None:
        assert in_range(1.5, 1, 2)

    def test_booleans_are_not_numbers(self) -> None:
        assert not in_range(True, 0, 2)

    def test_strings_case_insensitive(self) -> None:
        assert in_range("Banana", "apple", "cherry")
        assert not in_range("date", "APPLE", "Cherry")

    def test_datetimes_and_iso_strings(self) -> None:
        lo = datetime(2024, 1, 1, tzinfo=timezone.utc)
        hi = lo + timedelta(days=30)
        assert in_range(lo + timedelta(days=1), lo, hi)
        assert in_range("2024-01-15T12:00:00+00:00", lo, hi)
        assert in_range(datetime(2024, 1, 2), lo, hi)  # naive taken as UTC
        assert not in_range("not a date", lo, hi)

    def test_type_mismatch_is_no_match(self) -> None:
        assert not in_range("15", 10, 20)
        assert not in_range(15, "a", "z")
        assert not in_range(None, 10, 20)


class TestMatches:
    def test_list_membership(self) -> None:
        assert matches(["a", "b"], "b")
        assert not matches(["a", "b"], "c")

    def test_numeric_equality_across_types(self) -> None:
        assert matches(3, 3.0)

    def test_no_cross_type_equality(self) -> None:
        assert not matches("3", 3)
        assert not matches(1, True)

    def test_datetime_matches_stored_iso_string(self) -> None:
        when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert matches(when.isoformat(), when)
        assert matches("2024-05-01T12:00:00", when)
        assert not matches((when + timedelta(seconds=1)).isoformat(), when)
        assert not matches("not a date", when)
        assert not matches(None, when)

    def test_list_membership_uses_same_rules(self) -> None:
        assert not matches([1, 2], True)
        assert matches([1, 2], 2.0)


class TestMetadataQuery:
    def test_range_returns_middle_records(self, populated_store) -> None:
        records = MetadataQuery(populated_store).get_by_range("n", 10, 20)
        assert sorted(r.metadata["n"] for r in records) == [10, 15, 20]

    def test_range_on_missing_key(self, populated_store) -> None:
        assert MetadataQuery(populated_store).get_by_range("absent", 0, 100) == []

    def test_filter_and_ids(self, populated_store) -> None:
        query = MetadataQuery(populated_store)
        assert [r.id for r in query.get_by_filter("source", "file15.txt")] == ["doc-15"]
        assert sorted(query.get_ids("tags", "even")) == ["doc-10", "doc-20"]

    def test_scan_all_and_get_one(self, populated_store) -> None:
        query = MetadataQuery(populated_store)
        assert len(query.scan_all()) == 5
        assert len(query.get_all()) == 5
        assert query.get_one("doc-5")["n"] == 5
        assert query.get_one("missing") is None

    def test_filter_by_datetime_on_iso_metadata(self, fake_store) -> None:
        when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        fake_store.upsert("a", [1.0], {"text": "a", "processed_at": when.isoformat()})
        fake_store.upsert("b", [2.0], {"text": "b", "processed_at": (when + timedelta(days=1)).isoformat()})
        assert MetadataQuery(fake_store).get_ids("processed_at", when) == ["a"]
