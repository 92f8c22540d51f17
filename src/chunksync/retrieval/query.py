"""Metadata queries by full collection scan.

Vector stores offer no general predicate index over arbitrary metadata,
so every query here enumerates the whole collection
(:meth:`VectorStoreBase.get_all_metadata`) and filters in memory.  Cost is
O(collection size) per call: fine for small and medium collections, not a
substitute for an indexed database query.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any

from chunksync.retrieval.base import VectorStoreBase
from chunksync.retrieval.models import MetadataRecord


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None
    # Naive values are taken as UTC so naive and aware values compare.
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def in_range(value: Any, minimum: Any, maximum: Any) -> bool:
    """Inclusive range check; a type mismatch is "no match", never an error.

    * numbers compare numerically (booleans are not numbers here),
    * strings compare case-insensitively,
    * datetimes compare chronologically; stored ISO-8601 strings are parsed
      when the bounds are datetimes.
    """
    if _is_number(value) and _is_number(minimum) and _is_number(maximum):
        return minimum <= value <= maximum

    if isinstance(minimum, (datetime, date)) and isinstance(maximum, (datetime, date)):
        dt, lo, hi = _as_datetime(value), _as_datetime(minimum), _as_datetime(maximum)
        if dt is None or lo is None or hi is None:
            return False
        return lo <= dt <= hi

    if isinstance(value, str) and isinstance(minimum, str) and isinstance(maximum, str):
        v = value.casefold()
        return minimum.casefold() <= v <= maximum.casefold()

    return False


def matches(value: Any, expected: Any) -> bool:
    """Equality; a list-valued field matches when it contains *expected*.

    A datetime or date *expected* matches a stored ISO-8601 string naming
    the same instant, since stores hand datetimes back as strings.
    """
    if isinstance(value, list) and not isinstance(expected, list):
        return any(matches(element, expected) for element in value)
    if isinstance(expected, (datetime, date)):
        dt, want = _as_datetime(value), _as_datetime(expected)
        return dt is not None and want is not None and dt == want
    if _is_number(value) and _is_number(expected):
        return value == expected
    return type(value) is type(expected) and value == expected


class MetadataQuery:
    """Filter and range queries over a store's metadata by scanning it.

    Parameters
    ----------
    store:
        The vector store to enumerate.
    """

    def __init__(self, store: VectorStoreBase, *, logger: logging.Logger | None = None) -> None:
        self._store = store
        self._log = logger or logging.getLogger(__name__)

    def scan_all(self) -> list[MetadataRecord]:
        """Enumerate every stored record (full scan)."""
        records = self._store.get_all_metadata()
        self._log.debug("Scanned %d records of %r", len(records), self._store.collection_name)
        return records

    def get_all(self) -> list[MetadataRecord]:
        return self.scan_all()

    def get_one(self, id: str) -> dict[str, Any] | None:
        return self._store.get_metadata(id)

    def get_by_filter(self, key: str, value: Any) -> list[MetadataRecord]:
        """Records whose metadata *key* equals *value*."""
        return [r for r in self.scan_all() if key in r.metadata and matches(r.metadata[key], value)]

    def get_by_range(self, key: str, minimum: Any, maximum: Any) -> list[MetadataRecord]:
        """Records with ``minimum <= metadata[key] <= maximum``."""
        return [r for r in self.scan_all() if key in r.metadata and in_range(r.metadata[key], minimum, maximum)]

    def get_ids(self, key: str, value: Any) -> list[str]:
        return [r.id for r in self.get_by_filter(key, value)]
