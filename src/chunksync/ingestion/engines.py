"""Ingestion engines — turn one source type into chunked :class:`IngestedItem` s.

An engine only knows how to get text out of its source type; chunking,
identity assignment and metadata are shared through :func:`build_items`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from chunksync.ingestion.chunker import apply_min_size, chunk_text
from chunksync.ingestion.identity import IdentityScheme, assign_id
from chunksync.ingestion.loader import load_pdf_text, load_plain_text
from chunksync.ingestion.models import IngestedItem, TextItem, merge_metadata
from chunksync.ingestion.options import ChunkingOptions, pdf_defaults, text_defaults


def build_items(
    text: str,
    source: str,
    options: ChunkingOptions,
    *,
    scheme: IdentityScheme = IdentityScheme.CONTENT,
    chunk_type: str = "text_fixed_size",
    extra_metadata: dict[str, Any] | None = None,
) -> list[IngestedItem]:
    """Chunk *text* and wrap every chunk in an :class:`IngestedItem`.

    With ``options.use_metadata`` the reserved keys are followed by
    ``chunk_type``, ``chunk_index``, ``chunk_count``, ``processed_at`` and
    then *extra_metadata*.  Without it only the reserved keys are kept.
    """
    chunks = apply_min_size(chunk_text(text, options.max_size, options.overlap), options.min_size)
    processed_at = datetime.now(timezone.utc)

    items: list[IngestedItem] = []
    for index, chunk in enumerate(chunks):
        metadata: dict[str, Any] = {"text": chunk, "length": len(chunk), "source": source}
        if options.use_metadata:
            metadata.update(
                chunk_type=chunk_type,
                chunk_index=index,
                chunk_count=len(chunks),
                processed_at=processed_at,
            )
            metadata = merge_metadata(metadata, extra_metadata)
        items.append(
            IngestedItem(
                id=assign_id(scheme, chunk, source, index),
                text=chunk,
                source=source,
                metadata=metadata,
            )
        )
    return items


class IngestionEngine(ABC):
    """Base class for per-source-type engines.

    Parameters
    ----------
    identity_scheme:
        How chunk ids are derived.  File engines default to content hashes.
    logger:
        Logger to report through; defaults to this module's logger.
    """

    chunk_type: str = "text_fixed_size"

    def __init__(
        self,
        identity_scheme: IdentityScheme = IdentityScheme.CONTENT,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.identity_scheme = IdentityScheme(identity_scheme)
        self._log = logger or logging.getLogger(__name__)

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def extract_text(self, source: str) -> str:
        """Return the full text of *source* or raise ``SourceReadError``."""
        ...

    @abstractmethod
    def default_options(self) -> ChunkingOptions:
        ...

    # -- public API -----------------------------------------------------------

    def ingest(
        self,
        source: str | Path | Sequence[str | Path],
        options: ChunkingOptions | None = None,
    ) -> list[IngestedItem]:
        """Chunk one source, or every source of a batch in order.

        A batch stops at the first unreadable source; use the
        orchestrator to keep going past failures.
        """
        if isinstance(source, (str, Path)):
            return self._ingest_one(str(source), options or self.default_options())
        items: list[IngestedItem] = []
        for one in source:
            items.extend(self._ingest_one(str(one), options or self.default_options()))
        return items

    # -- internals ------------------------------------------------------------

    def _ingest_one(self, source: str, options: ChunkingOptions) -> list[IngestedItem]:
        text = self.extract_text(source)
        items = build_items(
            text,
            source,
            options,
            scheme=self.identity_scheme,
            chunk_type=self.chunk_type,
        )
        self._log.info("Processed %s -> %d chunks", Path(source).name, len(items))
        return items


class PdfIngestionEngine(IngestionEngine):
    """Chunks the extracted text of PDF documents."""

    chunk_type = "pdf_fixed_size"

    def extract_text(self, source: str) -> str:
        return load_pdf_text(source)

    def default_options(self) -> ChunkingOptions:
        return pdf_defaults()


class TextIngestionEngine(IngestionEngine):
    """Chunks any file readable as text; the dispatcher's default engine."""

    chunk_type = "text_fixed_size"

    def __init__(
        self,
        identity_scheme: IdentityScheme = IdentityScheme.CONTENT,
        *,
        encoding: str = "utf-8",
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(identity_scheme, logger=logger)
        self.encoding = encoding

    def extract_text(self, source: str) -> str:
        return load_plain_text(source, encoding=self.encoding)

    def default_options(self) -> ChunkingOptions:
        return text_defaults()


def ingest_text_items(
    records: Iterable[TextItem],
    options: ChunkingOptions | None = None,
    *,
    scheme: IdentityScheme = IdentityScheme.POSITIONAL,
) -> list[IngestedItem]:
    """Chunk streamed text records.

    The record id is the item source, so positional ids read
    ``"<record id>_chunk_<n>"``.  The record timestamp and its metadata
    are merged in without overriding reserved keys.
    """
    options = options or text_defaults()
    items: list[IngestedItem] = []
    for record in records:
        extra = merge_metadata({"timestamp": record.timestamp}, record.metadata)
        items.extend(
            build_items(
                record.content,
                record.id,
                options,
                scheme=scheme,
                chunk_type="text_record",
                extra_metadata=extra,
            )
        )
    return items
