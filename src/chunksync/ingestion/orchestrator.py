"""Multi-format ingestion: group sources, chunk each group, collect failures."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from pydantic import BaseModel, Field

from chunksync.exceptions import SourceReadError
from chunksync.ingestion.dispatcher import SourceDispatcher, extension_of
from chunksync.ingestion.engines import ingest_text_items
from chunksync.ingestion.identity import IdentityScheme
from chunksync.ingestion.models import IngestedItem, TextItem
from chunksync.ingestion.options import WILDCARD, ChunkingOptions, OptionsResolver


class SourceFailure(BaseModel):
    """A source that could not be read, and why."""

    source: str
    reason: str


class IngestionResult(BaseModel):
    """Items produced by one ingestion call plus the sources that failed."""

    items: list[IngestedItem] = Field(default_factory=list)
    failures: list[SourceFailure] = Field(default_factory=list)

    @property
    def failed_sources(self) -> list[str]:
        return [f.source for f in self.failures]


class IngestionOrchestrator:
    """Fan sources out to their engines and gather the results.

    Parameters
    ----------
    dispatcher:
        Extension → engine resolution.
    resolver:
        Per-extension options (exact extension, then ``"*"``, then defaults).
    logger:
        Logger to report through; defaults to this module's logger.
    """

    def __init__(
        self,
        dispatcher: SourceDispatcher | None = None,
        resolver: OptionsResolver | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.dispatcher = dispatcher or SourceDispatcher()
        self.resolver = resolver or OptionsResolver()
        self._log = logger or logging.getLogger(__name__)

    def ingest(
        self,
        sources: Sequence[str | Path],
        overrides: dict[str, ChunkingOptions] | None = None,
    ) -> IngestionResult:
        """Chunk every source, grouped by extension.

        All sources of one extension share one options object.  An
        unreadable source is recorded in :attr:`IngestionResult.failures`
        and the rest of the batch continues.
        """
        resolver = self.resolver.merged_with(overrides)
        result = IngestionResult()

        for ext, paths in self.dispatcher.partition(sources).items():
            engine = self.dispatcher.engine_for_extension(ext)
            options = resolver.resolve(ext)
            self._log.info(
                "Ingesting %d %s source(s) with %s (max_size=%d, overlap=%d)",
                len(paths), ext or "<no extension>", type(engine).__name__,
                options.max_size, options.overlap,
            )
            for path in paths:
                try:
                    result.items.extend(engine.ingest(path, options))
                except SourceReadError as exc:
                    self._log.warning("Skipping %s: %s", exc.source, exc.reason)
                    result.failures.append(SourceFailure(source=exc.source, reason=exc.reason))

        if result.failures:
            self._log.warning(
                "%d of %d source(s) failed: %s",
                len(result.failures), len(sources), ", ".join(result.failed_sources),
            )
        self._log.info("Chunked %d items from %d source(s)", len(result.items), len(sources))
        return result

    def ingest_directory(
        self,
        directory: str | Path,
        glob: str = "**/*",
        overrides: dict[str, ChunkingOptions] | None = None,
    ) -> IngestionResult:
        """Chunk every file under *directory* matching *glob*.

        The default pattern walks the tree recursively.  Matches are sorted
        so ids and item order do not depend on filesystem order.

        Raises
        ------
        SourceReadError
            If *directory* does not exist or is not a directory.
        """
        root = Path(directory)
        if not root.is_dir():
            raise SourceReadError(str(directory), "directory not found")
        paths = sorted(p for p in root.glob(glob) if p.is_file())
        self._log.info("Found %d file(s) under %s matching %r", len(paths), root, glob)
        return self.ingest(paths, overrides)

    def ingest_single_type(
        self,
        sources: Sequence[str | Path],
        options: ChunkingOptions | None = None,
    ) -> list[IngestedItem]:
        """Chunk a batch of one extension; failures propagate.

        Raises :class:`~chunksync.exceptions.ConfigurationError` for mixed
        batches.
        """
        engine = self.dispatcher.engine_for_batch(sources)
        return engine.ingest(list(sources), options or self.resolver.resolve(extension_of(sources[0])))

    def ingest_records(
        self,
        records: Iterable[TextItem],
        options: ChunkingOptions | None = None,
        *,
        scheme: IdentityScheme = IdentityScheme.POSITIONAL,
    ) -> list[IngestedItem]:
        """Chunk streamed text records with the wildcard (text) options."""
        items = ingest_text_items(records, options or self.resolver.resolve(WILDCARD), scheme=scheme)
        self._log.info("Chunked %d items from text records", len(items))
        return items
