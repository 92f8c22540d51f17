"""
Retrieval — vector-store access, metadata queries and semantic search.

This module wraps the vector store behind a clean interface so that
the training layer never needs to know which DB is backing it.

Public surface
--------------
- :class:`VectorStoreBase` — abstract backend (subclass for Pinecone, etc.).
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`MetadataQuery` — full-scan metadata filter / range queries.
- :class:`SemanticRetriever` — query text → results with citations.
- :class:`Citation`, :class:`RetrievalResult`, :class:`MetadataFilter`,
  :class:`MetadataRecord` — data models.
"""

from chunksync.retrieval.base import VectorStoreBase
from chunksync.retrieval.models import Citation, MetadataFilter, MetadataRecord, RetrievalResult
from chunksync.retrieval.query import MetadataQuery
from chunksync.retrieval.retriever import SemanticRetriever

__all__ = [
    "Citation",
    "ChromaVectorStore",
    "MetadataFilter",
    "MetadataQuery",
    "MetadataRecord",
    "RetrievalResult",
    "SemanticRetriever",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from chunksync.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
