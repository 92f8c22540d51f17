"""Synchronize ingested items into a vector store under a training strategy.

The engine reads one :class:`~chunksync.training.strategy.StrategyRule`
and applies it:

1. optional pre-step: drop the destination collection,
2. per item: existence check (point lookup), then skip, or embed + upsert
   counted as *processed* (new) or *updated* (already existed).

An id already written earlier in the same run (identical chunk text under
content ids, or a repeated window) is counted as *skipped* and not written
again: the first occurrence wins, so its source stays in the metadata.

Items are handled sequentially.  Every embed and store call is a
blocking round trip, so incremental strategies cost one extra lookup per
item.  Cancellation is checked before the pre-step and between items; an
item that has started is finished, and upsert writes vector and metadata in a single call.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from chunksync.exceptions import ConfigurationError, EmbeddingError, StoreError
from chunksync.ingestion.models import IngestedItem
from chunksync.ingestion.orchestrator import SourceFailure
from chunksync.retrieval.base import VectorStoreBase
from chunksync.training.strategy import ExistingItemAction, StrategyRule, TrainingStrategy, rule_for

if TYPE_CHECKING:
    from chunksync.ingestion.embedder import Embedder


class ItemFailure(BaseModel):
    """An item whose embed/upsert failed while ``continue_on_error`` was on."""

    item_id: str
    source: str
    reason: str


class SyncReport(BaseModel):
    """Outcome accounting for one synchronization run.

    Attributes
    ----------
    total:
        Items handed to the engine.
    processed:
        Items embedded and written as new records.
    skipped:
        Items left alone because their id already existed, in the store or
        earlier in the same run.
    updated:
        Items embedded and written over an existing record.
    """

    strategy: TrainingStrategy
    total: int = 0
    processed: int = 0
    skipped: int = 0
    updated: int = 0
    failures: list[ItemFailure] = Field(default_factory=list)
    source_failures: list[SourceFailure] = Field(default_factory=list)
    cancelled: bool = False

    def __str__(self) -> str:
        return (
            f"{self.strategy.value}: total {self.total}, processed {self.processed}, "
            f"skipped {self.skipped}, updated {self.updated}, failed {len(self.failures)}"
            + (", cancelled" if self.cancelled else "")
        )


class SynchronizationEngine:
    """Apply a training strategy to a list of items.

    Parameters
    ----------
    embedder:
        Embedding provider.  Optional when only ``PROCESS_ONLY`` is used.
    store:
        Destination vector store.  Optional when only ``PROCESS_ONLY`` is used.
    continue_on_error:
        ``False`` (default) aborts the run on the first embedding or store
        failure for an item.  ``True`` records the failure in
        :attr:`SyncReport.failures` and carries on with the next item.
        A failed collection drop always aborts.
    """

    def __init__(
        self,
        embedder: Embedder | None,
        store: VectorStoreBase | None,
        *,
        continue_on_error: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self.continue_on_error = continue_on_error
        self._log = logger or logging.getLogger(__name__)

    def synchronize(
        self,
        items: list[IngestedItem],
        strategy: TrainingStrategy,
        *,
        cancel_event: threading.Event | None = None,
    ) -> SyncReport:
        rule = rule_for(strategy)
        report = SyncReport(strategy=TrainingStrategy(strategy), total=len(items))

        if not rule.vector_operations:
            self._log.info("%s: %d item(s) chunked, no vector operations", report.strategy.value, len(items))
            return report
        if self._embedder is None or self._store is None:
            raise ConfigurationError(f"{report.strategy.value} needs both an embedder and a vector store")

        if self._cancelled(cancel_event, report):
            return report

        if rule.drop_collection:
            self._log.info("Dropping collection %r before retraining", self._store.collection_name)
            self._store.drop_collection()

        seen: set[str] = set()
        for item in items:
            if self._cancelled(cancel_event, report):
                break
            try:
                self._sync_item(item, rule, report, seen)
            except (EmbeddingError, StoreError) as exc:
                if not self.continue_on_error:
                    raise
                self._log.warning("Failed to synchronize %s from %s: %s", item.id, item.source, exc)
                report.failures.append(ItemFailure(item_id=item.id, source=item.source, reason=str(exc)))

        self._log.info("Synchronization finished: %s", report)
        return report

    # -- internals ------------------------------------------------------------

    def _cancelled(self, cancel_event: threading.Event | None, report: SyncReport) -> bool:
        if cancel_event is None or not cancel_event.is_set():
            return False
        report.cancelled = True
        self._log.warning("Synchronization cancelled after %d item(s)", self._handled(report))
        return True

    @staticmethod
    def _handled(report: SyncReport) -> int:
        return report.processed + report.skipped + report.updated + len(report.failures)

    def _sync_item(
        self, item: IngestedItem, rule: StrategyRule, report: SyncReport, seen: set[str]
    ) -> None:
        if item.id in seen:
            report.skipped += 1
            return

        existed = False
        if rule.check_existing:
            existed = self._store.exists(item.id)
            if existed and rule.on_existing is ExistingItemAction.SKIP:
                report.skipped += 1
                return

        vector = item.vector if item.vector is not None else self._embed(item)
        self._store.upsert(item.id, vector, item.metadata)
        if item.vector is None:
            item.attach_vector(vector)
        seen.add(item.id)

        if existed and rule.on_existing is ExistingItemAction.UPDATE:
            report.updated += 1
        else:
            report.processed += 1

    def _embed(self, item: IngestedItem) -> list[float]:
        try:
            return self._embedder.embed(item.text)
        except EmbeddingError as exc:
            raise EmbeddingError(str(exc), item_id=item.id, source=item.source) from exc
        except Exception as exc:
            raise EmbeddingError(f"Embedding provider raised {exc!r}", item_id=item.id, source=item.source) from exc
