"""Embedding providers.

:class:`Embedder` is the interface the synchronization engine and the
retriever depend on.  :class:`HuggingFaceEmbedder` is the default
sentence-transformer implementation.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

from langchain_huggingface import HuggingFaceEmbeddings

from chunksync.config import settings
from chunksync.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise EmbeddingError("Embedding cancelled")


class Embedder(ABC):
    """Text → fixed-length vector.

    Both methods accept an optional ``cancel_event``; once it is set no new
    embedding call is started and :class:`EmbeddingError` is raised.
    """

    provider_name: str = "unknown"

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector this embedder returns."""
        ...

    @abstractmethod
    def embed(self, text: str, cancel_event: threading.Event | None = None) -> list[float]:
        ...

    def embed_batch(
        self, texts: list[str], cancel_event: threading.Event | None = None
    ) -> list[list[float]]:
        """Embed *texts* one by one.  Override when the backend batches natively."""
        return [self.embed(text, cancel_event) for text in texts]


class HuggingFaceEmbedder(Embedder):
    """Sentence-transformer embeddings via ``langchain-huggingface``.

    Parameters
    ----------
    model_name:
        HuggingFace model id.
    normalize_embeddings:
        Whether to L2-normalise vectors (recommended for cosine similarity).
    """

    provider_name = "huggingface"

    def __init__(
        self,
        model_name: str = settings.embedding_model,
        *,
        normalize_embeddings: bool = settings.normalize_embeddings,
    ) -> None:
        self.model_name = model_name
        self._client = HuggingFaceEmbeddings(
            model_name=model_name,
            encode_kwargs={"normalize_embeddings": normalize_embeddings},
        )
        self._dimension: int | None = None

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            self._dimension = len(self.embed("dimension probe"))
        return self._dimension

    def embed(self, text: str, cancel_event: threading.Event | None = None) -> list[float]:
        _check_cancelled(cancel_event)
        try:
            return self._client.embed_query(text)
        except Exception as exc:
            raise EmbeddingError(f"{self.model_name} failed to embed text: {exc}") from exc

    def embed_batch(
        self, texts: list[str], cancel_event: threading.Event | None = None
    ) -> list[list[float]]:
        _check_cancelled(cancel_event)
        if not texts:
            return []
        try:
            vectors = self._client.embed_documents(texts)
        except Exception as exc:
            raise EmbeddingError(f"{self.model_name} failed to embed {len(texts)} texts: {exc}") from exc
        logger.debug("Embedded %d texts with %s", len(texts), self.model_name)
        return vectors
