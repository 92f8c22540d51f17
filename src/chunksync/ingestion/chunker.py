"""Fixed-size text chunking with overlap."""

from __future__ import annotations

from typing import Any

from langchain_core.documents import Document
from langchain_text_splitters import TextSplitter

from chunksync.ingestion.options import ChunkingOptions, validate_bounds


def chunk_text(text: str, max_size: int, overlap: int) -> list[str]:
    """Split *text* into windows of at most *max_size* characters.

    Consecutive windows share exactly *overlap* characters; the window
    start advances by ``max_size - overlap`` until a window reaches the
    end of the text.  The last chunk may be shorter than *max_size*.

    Parameters
    ----------
    text:
        Source text.  Empty or whitespace-only text yields no chunks.
    max_size:
        Maximum number of characters per chunk.
    overlap:
        Number of characters shared by consecutive chunks.

    Returns
    -------
    list[str]
        Chunks in document order.
    """
    validate_bounds(max_size, overlap)
    if not text or not text.strip():
        return []

    step = max_size - overlap
    chunks: list[str] = []
    offset = 0
    while True:
        end = min(offset + max_size, len(text))
        chunks.append(text[offset:end])
        if end == len(text):
            return chunks
        offset += step


def apply_min_size(chunks: list[str], min_size: int) -> list[str]:
    """Drop chunks shorter than *min_size*, always keeping at least the first."""
    if min_size <= 0 or not chunks:
        return chunks
    kept = [c for c in chunks if len(c) >= min_size]
    return kept or chunks[:1]


class FixedSizeTextSplitter(TextSplitter):
    """LangChain splitter running :func:`chunk_text`.

    Lets the same algorithm split LangChain ``Document`` objects (for
    example pages returned by a document loader) while preserving their
    metadata.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200, **kwargs: Any) -> None:
        validate_bounds(chunk_size, chunk_overlap)
        # Whitespace is content here: chunks must tile the text exactly.
        kwargs.setdefault("strip_whitespace", False)
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, **kwargs)

    def split_text(self, text: str) -> list[str]:
        return chunk_text(text, self._chunk_size, self._chunk_overlap)


def chunk_documents(
    documents: list[Document],
    options: ChunkingOptions | None = None,
) -> list[Document]:
    """Split *documents* into fixed-size chunks.

    Each chunk inherits its parent's metadata plus ``chunk_index``.
    """
    options = options or ChunkingOptions()
    splitter = FixedSizeTextSplitter(chunk_size=options.max_size, chunk_overlap=options.overlap)
    chunks: list[Document] = []
    for doc in documents:
        pieces = apply_min_size(splitter.split_text(doc.page_content), options.min_size)
        for idx, piece in enumerate(pieces):
            chunks.append(Document(page_content=piece, metadata={**doc.metadata, "chunk_index": idx}))
    return chunks
