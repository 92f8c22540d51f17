"""Training pipeline facade and its builder.

Usage::

    from chunksync.training import PipelineBuilder, TrainingStrategy

    pipeline = (
        PipelineBuilder()
        .with_embedder(embedder)
        .with_vector_store(store)
        .with_training_strategy(TrainingStrategy.INCREMENTAL_ADD)
        .with_pdf_options(ChunkingOptions(max_size=1200, overlap=500))
        .with_text_options(ChunkingOptions(max_size=1000, overlap=200))
        .with_training_files(["manual.pdf", "notes.txt"])
        .build()
    )
    items, report = pipeline.train()
    print(report)   # "incremental_add: total 42, processed 3, skipped 39, ..."
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any, NamedTuple

from chunksync.config import Settings, settings as default_settings
from chunksync.exceptions import ConfigurationError
from chunksync.ingestion.dispatcher import SourceDispatcher
from chunksync.ingestion.engines import IngestionEngine, PdfIngestionEngine, TextIngestionEngine
from chunksync.ingestion.identity import IdentityScheme
from chunksync.ingestion.models import IngestedItem, TextItem
from chunksync.ingestion.options import WILDCARD, ChunkingOptions, OptionsResolver
from chunksync.ingestion.orchestrator import IngestionOrchestrator, IngestionResult
from chunksync.retrieval.base import VectorStoreBase
from chunksync.retrieval.models import MetadataFilter, MetadataRecord, RetrievalResult
from chunksync.retrieval.query import MetadataQuery
from chunksync.retrieval.retriever import SemanticRetriever
from chunksync.training.strategy import TrainingStrategy, rule_for
from chunksync.training.sync import SyncReport, SynchronizationEngine

if TYPE_CHECKING:
    from chunksync.ingestion.embedder import Embedder


class TrainingResult(NamedTuple):
    """Items produced by a training call and the synchronization report."""

    items: list[IngestedItem]
    report: SyncReport


class TrainingPipeline:
    """A configured ingestion + synchronization pipeline.

    Built by :class:`PipelineBuilder`, which validates the configuration;
    construct directly only in tests.
    """

    def __init__(
        self,
        *,
        embedder: Embedder | None,
        store: VectorStoreBase | None,
        strategy: TrainingStrategy,
        orchestrator: IngestionOrchestrator,
        training_files: Sequence[str] = (),
        record_identity: IdentityScheme = IdentityScheme.POSITIONAL,
        continue_on_error: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.strategy = strategy
        self.orchestrator = orchestrator
        self.training_files = list(training_files)
        self.record_identity = record_identity
        self._log = logger or logging.getLogger(__name__)
        self.sync_engine = SynchronizationEngine(
            embedder, store, continue_on_error=continue_on_error, logger=self._log
        )

    # -- training -------------------------------------------------------------

    def train(
        self,
        sources: Sequence[str | Path] | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> TrainingResult:
        """Chunk *sources* (or the configured training files) and synchronize them."""
        sources = list(sources) if sources is not None else self.training_files
        if not sources:
            if rule_for(self.strategy).vector_operations:
                raise ConfigurationError("Training files must be set before training")
            return TrainingResult(items=[], report=SyncReport(strategy=self.strategy))

        self._log.info("Chunking %d source(s)...", len(sources))
        return self._synchronize(self.orchestrator.ingest(sources), cancel_event)

    def train_directory(
        self,
        directory: str | Path,
        glob: str = "**/*",
        *,
        cancel_event: threading.Event | None = None,
    ) -> TrainingResult:
        """Chunk every file under *directory* matching *glob* and synchronize them.

        Raises :class:`~chunksync.exceptions.SourceReadError` when
        *directory* does not exist.
        """
        return self._synchronize(self.orchestrator.ingest_directory(directory, glob), cancel_event)

    def _synchronize(
        self, ingestion: IngestionResult, cancel_event: threading.Event | None
    ) -> TrainingResult:
        if not ingestion.items:
            # Nothing to write: leave the collection untouched, even for a retrain.
            if ingestion.failures:
                self._log.error("No source could be read; collection left unchanged")
            else:
                self._log.warning("Sources produced no chunks; collection left unchanged")
            report = SyncReport(strategy=self.strategy, source_failures=ingestion.failures)
            return TrainingResult(items=[], report=report)

        report = self.sync_engine.synchronize(ingestion.items, self.strategy, cancel_event=cancel_event)
        report.source_failures = ingestion.failures
        return TrainingResult(items=ingestion.items, report=report)

    def train_with_text(
        self,
        records: Iterable[TextItem],
        *,
        options: ChunkingOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> TrainingResult:
        """Chunk streamed text records and synchronize them (no files involved)."""
        items = self.orchestrator.ingest_records(records, options, scheme=self.record_identity)
        report = self.sync_engine.synchronize(items, self.strategy, cancel_event=cancel_event)
        return TrainingResult(items=items, report=report)

    def ingest(self, sources: Sequence[str | Path] | None = None) -> IngestionResult:
        """Chunk only; never touches the embedder or the store."""
        sources = list(sources) if sources is not None else self.training_files
        return self.orchestrator.ingest(sources)

    # -- search ---------------------------------------------------------------

    def _retriever(self) -> SemanticRetriever:
        if self.embedder is None or self.store is None:
            raise ConfigurationError("Search needs both an embedder and a vector store")
        return SemanticRetriever(self.store, self.embedder)

    def search(
        self, query: str, k: int = 5, filters: list[MetadataFilter] | None = None
    ) -> list[RetrievalResult]:
        return self._retriever().search(query, k=k, filters=filters)

    def search_by_vector(self, vector: list[float], k: int = 5) -> list[RetrievalResult]:
        return self._retriever().search_by_embedding(vector, k=k)

    def search_texts(self, query: str, k: int = 5) -> list[str]:
        return self._retriever().search_texts(query, k=k)

    def search_context(self, query: str, k: int = 5) -> str:
        """Best matching chunk texts joined by blank lines."""
        return self._retriever().search_context(query, k=k)

    # -- document management --------------------------------------------------

    def _require_store(self) -> VectorStoreBase:
        if self.store is None:
            raise ConfigurationError("No vector store configured")
        return self.store

    def document_count(self) -> int:
        return self._require_store().count()

    def document_ids(self) -> list[str]:
        return self._require_store().list_ids()

    def document_exists(self, id: str) -> bool:
        return self._require_store().exists(id)

    def delete_documents(self, ids: str | list[str]) -> None:
        self._require_store().delete(ids)

    # -- metadata queries (full scans) ----------------------------------------

    @property
    def metadata(self) -> MetadataQuery:
        return MetadataQuery(self._require_store(), logger=self._log)

    def get_document_metadata(self, id: str) -> dict[str, Any] | None:
        return self.metadata.get_one(id)

    def scan_all_metadata(self) -> list[MetadataRecord]:
        return self.metadata.scan_all()

    def get_documents_by_metadata(self, key: str, value: Any) -> list[MetadataRecord]:
        return self.metadata.get_by_filter(key, value)

    def get_documents_by_metadata_range(self, key: str, minimum: Any, maximum: Any) -> list[MetadataRecord]:
        return self.metadata.get_by_range(key, minimum, maximum)

    def get_document_ids_by_metadata(self, key: str, value: Any) -> list[str]:
        return self.metadata.get_ids(key, value)


class PipelineBuilder:
    """Fluent, validating builder for :class:`TrainingPipeline`.

    ``build()`` raises :class:`~chunksync.exceptions.ConfigurationError`
    when a required input is missing, so misconfiguration never reaches
    a running batch.  The embedder and the vector store are required
    unless the strategy is ``PROCESS_ONLY``.
    """

    def __init__(self) -> None:
        self._embedder: Embedder | None = None
        self._store: VectorStoreBase | None = None
        self._strategy = TrainingStrategy.RETRAIN_FROM_SCRATCH
        self._training_files: list[str] = []
        self._resolver = OptionsResolver()
        self._engines: dict[str, IngestionEngine] = {}
        self._identity: IdentityScheme | None = None
        self._continue_on_error = False
        self._logger: logging.Logger | None = None

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> PipelineBuilder:
        """Builder pre-wired with the HuggingFace embedder and Chroma store from *config*."""
        from chunksync.ingestion.embedder import HuggingFaceEmbedder
        from chunksync.retrieval.chroma_store import ChromaVectorStore

        config = config or default_settings
        store_kwargs: dict[str, Any] = {"distance_metric": config.chroma_distance_metric}
        if config.chroma_mode == "persistent":
            store_kwargs["path"] = config.chroma_path
        else:
            store_kwargs.update(host=config.chroma_host, port=config.chroma_port)

        options = ChunkingOptions(
            min_size=config.chunk_min_size,
            max_size=config.chunk_size,
            overlap=config.chunk_overlap,
            use_metadata=config.use_metadata,
        )
        return (
            cls()
            .with_embedder(
                HuggingFaceEmbedder(config.embedding_model, normalize_embeddings=config.normalize_embeddings)
            )
            .with_vector_store(ChromaVectorStore(config.chroma_collection, **store_kwargs))
            .with_training_strategy(config.training_strategy)
            .with_text_options(options)
            .continue_on_error(config.continue_on_error)
        )

    @classmethod
    def for_state_management(cls, embedder: Embedder, store: VectorStoreBase) -> PipelineBuilder:
        """Builder for counting, listing, searching and deleting without training files."""
        return cls().with_embedder(embedder).with_vector_store(store).with_training_strategy(
            TrainingStrategy.PROCESS_ONLY
        )

    def with_embedder(self, embedder: Embedder) -> PipelineBuilder:
        self._embedder = embedder
        return self

    def with_vector_store(self, store: VectorStoreBase) -> PipelineBuilder:
        self._store = store
        return self

    def with_training_strategy(self, strategy: TrainingStrategy | str) -> PipelineBuilder:
        try:
            self._strategy = TrainingStrategy(strategy)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown training strategy {strategy!r}") from exc
        return self

    def with_training_files(self, files: Iterable[str | Path]) -> PipelineBuilder:
        if files is None:
            raise ConfigurationError("Training files cannot be None")
        self._training_files = [str(f) for f in files]
        return self

    def with_file_type_options(self, extension: str, options: ChunkingOptions) -> PipelineBuilder:
        self._resolver.set(extension, options)
        return self

    def with_pdf_options(self, options: ChunkingOptions) -> PipelineBuilder:
        return self.with_file_type_options(".pdf", options)

    def with_text_options(self, options: ChunkingOptions) -> PipelineBuilder:
        """Options for every extension without its own override."""
        return self.with_file_type_options(WILDCARD, options)

    def with_engine(self, extension: str, engine: IngestionEngine) -> PipelineBuilder:
        self._engines[extension] = engine
        return self

    def with_identity_scheme(self, scheme: IdentityScheme | str) -> PipelineBuilder:
        """Use one identity scheme for files and text records alike."""
        self._identity = IdentityScheme(scheme)
        return self

    def continue_on_error(self, enabled: bool = True) -> PipelineBuilder:
        self._continue_on_error = enabled
        return self

    def with_logger(self, log: logging.Logger) -> PipelineBuilder:
        self._logger = log
        return self

    def _validate(self, *, require_files: bool) -> None:
        if rule_for(self._strategy).vector_operations:
            if self._embedder is None:
                raise ConfigurationError("Embedding model must be set before building")
            if self._store is None:
                raise ConfigurationError("Vector database must be set before building")
        if require_files and not self._training_files:
            raise ConfigurationError("Training files must be set before building")

    def _dispatcher(self) -> SourceDispatcher:
        file_identity = self._identity or IdentityScheme.CONTENT
        engines: dict[str, IngestionEngine] = {
            ".pdf": PdfIngestionEngine(file_identity, logger=self._logger)
        }
        engines.update(self._engines)
        default = engines.pop(WILDCARD, None) or TextIngestionEngine(file_identity, logger=self._logger)
        return SourceDispatcher(engines, default_engine=default)

    def build(self, *, require_files: bool = False) -> TrainingPipeline:
        self._validate(require_files=require_files)
        orchestrator = IngestionOrchestrator(self._dispatcher(), self._resolver, logger=self._logger)
        return TrainingPipeline(
            embedder=self._embedder,
            store=self._store,
            strategy=self._strategy,
            orchestrator=orchestrator,
            training_files=self._training_files,
            record_identity=self._identity or IdentityScheme.POSITIONAL,
            continue_on_error=self._continue_on_error,
            logger=self._logger,
        )

    def build_and_train(self, *, cancel_event: threading.Event | None = None) -> TrainingResult:
        """Build with training files required, then train on them."""
        return self.build(require_files=True).train(cancel_event=cancel_event)
