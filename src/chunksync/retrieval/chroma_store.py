"""Chroma implementation of the vector-store abstraction.

Chroma only stores flat ``str`` / ``int`` / ``float`` / ``bool`` metadata
values.  Each record therefore keeps two views of its metadata: the flat
scalar fields (usable by server-side ``where`` filters) and a JSON copy of
the full mapping under :data:`METADATA_JSON_KEY`, which is what reads
return.  Datetimes round-trip as ISO-8601 strings.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any

import chromadb

from chunksync.config import settings
from chunksync.exceptions import StoreError
from chunksync.retrieval.base import VectorStoreBase
from chunksync.retrieval.models import MetadataFilter, MetadataRecord

logger = logging.getLogger(__name__)

METADATA_JSON_KEY = "_metadata_json"

# Chroma spells each operator as "$" + name.
_WHERE_OPERATORS = frozenset({"eq", "ne", "gt", "gte", "lt", "lte", "in", "nin"})


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """AND together *filters* in Chroma ``where`` syntax; ``None`` when there are none."""
    if not filters:
        return None
    conditions: list[dict[str, Any]] = []
    for condition in filters:
        if condition.operator not in _WHERE_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {condition.operator!r}")
        conditions.append({condition.field: {f"${condition.operator}": condition.value}})
    return conditions[0] if len(conditions) == 1 else {"$and": conditions}


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _encode_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Flatten *metadata* for Chroma and attach the full JSON copy."""
    flat: dict[str, Any] = {}
    for key, value in metadata.items():
        if isinstance(value, (str, int, float, bool)):
            flat[key] = value
        elif isinstance(value, (datetime, date)):
            flat[key] = value.isoformat()
        elif isinstance(value, (list, tuple)):
            flat[key] = json.dumps(list(value), default=_json_default)
    flat[METADATA_JSON_KEY] = json.dumps(metadata, default=_json_default)
    return flat


def _decode_metadata(stored: dict[str, Any] | None) -> dict[str, Any]:
    if not stored:
        return {}
    raw = stored.get(METADATA_JSON_KEY)
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring undecodable metadata JSON; falling back to flat fields")
    return {k: v for k, v in stored.items() if k != METADATA_JSON_KEY}


def _hits_from_query(results: dict[str, Any]) -> list[dict[str, Any]]:
    """Turn the first row of a Chroma query result into best-first hit dicts."""

    def first_row(key: str) -> list[Any]:
        rows = results.get(key) or [[]]
        return rows[0] or []

    hits = [
        {
            "id": doc_id,
            "content": document or "",
            # Distance (lower is closer) mapped onto a (0, 1] similarity.
            "score": 1.0 / (1.0 + distance),
            "metadata": _decode_metadata(stored),
        }
        for doc_id, document, stored, distance in zip(
            first_row("ids"), first_row("documents"), first_row("metadatas"), first_row("distances")
        )
    ]
    return sorted(hits, key=lambda hit: hit["score"], reverse=True)


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    client:
        A ready Chroma client.  When omitted, a ``PersistentClient`` on
        *path* is opened (``chroma_mode="persistent"``) or an
        ``HttpClient`` on *host*/*port* (``chroma_mode="http"``).
    path:
        Directory holding the persistent collection.
    host / port:
        Chroma server address.
    distance_metric:
        ``cosine`` | ``l2`` | ``ip``; only used when the collection is created.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        client: Any | None = None,
        path: str | None = None,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        distance_metric: str = settings.chroma_distance_metric,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(collection_name)
        self._log = logger or logging.getLogger(__name__)
        if client is None:
            if path is not None or settings.chroma_mode == "persistent":
                client = chromadb.PersistentClient(path=path or settings.chroma_path)
            else:
                client = chromadb.HttpClient(host=host, port=port)
        self._client = client
        self._distance_metric = distance_metric
        self._collection = self._open_collection()

    def _open_collection(self) -> Any:
        return self._client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": self._distance_metric},
        )

    # -- writes ---------------------------------------------------------------

    def upsert(self, id: str, vector: list[float], metadata: dict[str, Any]) -> None:
        metadata = metadata or {}
        try:
            self._collection.upsert(
                ids=[id],
                embeddings=[list(vector)],
                documents=[str(metadata.get("text", ""))],
                metadatas=[_encode_metadata(metadata)],
            )
        except Exception as exc:
            raise StoreError("upsert", str(exc), item_id=id) from exc

    def delete(self, ids: str | list[str]) -> None:
        id_list = [ids] if isinstance(ids, str) else list(ids)
        if not id_list:
            return
        try:
            self._collection.delete(ids=id_list)
        except Exception as exc:
            raise StoreError("delete", str(exc)) from exc

    def drop_collection(self) -> None:
        try:
            self._client.delete_collection(self.collection_name)
        except Exception as exc:
            raise StoreError(
                "drop_collection",
                f"could not delete collection {self.collection_name!r}; its state is uncertain: {exc}",
            ) from exc
        try:
            self._collection = self._open_collection()
        except Exception as exc:
            raise StoreError(
                "drop_collection",
                f"collection {self.collection_name!r} was deleted but could not be recreated: {exc}",
            ) from exc
        self._log.info("Dropped collection %r", self.collection_name)

    # -- reads ----------------------------------------------------------------

    def search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        where = _build_chroma_where(filters) if filters else None
        n_results = min(k, self.count())
        if n_results <= 0:
            return []

        try:
            results = self._collection.query(
                query_embeddings=[list(query_embedding)],
                n_results=n_results,
                where=where,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise StoreError("search", str(exc)) from exc

        return _hits_from_query(results)

    def exists(self, id: str) -> bool:
        try:
            found = self._collection.get(ids=[id], include=[])
        except Exception as exc:
            raise StoreError("exists", str(exc), item_id=id) from exc
        return bool(found.get("ids"))

    def count(self) -> int:
        try:
            return self._collection.count()
        except Exception as exc:
            raise StoreError("count", str(exc)) from exc

    def list_ids(self) -> list[str]:
        try:
            return list(self._collection.get(include=[])["ids"])
        except Exception as exc:
            raise StoreError("list_ids", str(exc)) from exc

    def get_metadata(self, id: str) -> dict[str, Any] | None:
        try:
            found = self._collection.get(ids=[id], include=["metadatas"])
        except Exception as exc:
            raise StoreError("get_metadata", str(exc), item_id=id) from exc
        if not found.get("ids"):
            return None
        return _decode_metadata((found.get("metadatas") or [None])[0])

    def get_all_metadata(self) -> list[MetadataRecord]:
        try:
            found = self._collection.get(include=["metadatas"])
        except Exception as exc:
            raise StoreError("get_all_metadata", str(exc)) from exc
        metas = found.get("metadatas") or [None] * len(found["ids"])
        return [MetadataRecord(doc_id, _decode_metadata(meta)) for doc_id, meta in zip(found["ids"], metas)]

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            self._log.warning("Chroma health-check failed", exc_info=True)
            return False
