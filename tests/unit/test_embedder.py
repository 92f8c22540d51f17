"""Unit tests for the HuggingFace embedder wrapper (model loading patched out)."""

from __future__ import annotations

import threading
from unittest.mock import patch

import pytest

from chunksync.exceptions import EmbeddingError
from chunksync.ingestion.embedder import HuggingFaceEmbedder
from chunksync.ingestion.models import IngestedItem


@pytest.fixture()
def hf_client():
    with patch("chunksync.ingestion.embedder.HuggingFaceEmbeddings") as cls:
        client = cls.return_value
        client.embed_query.return_value = [0.1, 0.2, 0.3]
        client.embed_documents.side_effect = lambda texts: [[0.1, 0.2, 0.3] for _ in texts]
        yield cls


def test_client_configuration(hf_client) -> None:
    HuggingFaceEmbedder("some/model", normalize_embeddings=False)
    hf_client.assert_called_once_with(
        model_name="some/model", encode_kwargs={"normalize_embeddings": False}
    )


def test_embed_and_dimension(hf_client) -> None:
    embedder = HuggingFaceEmbedder("some/model")
    assert embedder.embed("hello") == [0.1, 0.2, 0.3]
    assert embedder.dimension == 3
    assert embedder.provider_name == "huggingface"


def test_embed_batch(hf_client) -> None:
    embedder = HuggingFaceEmbedder("some/model")
    assert len(embedder.embed_batch(["a", "b"])) == 2
    assert embedder.embed_batch([]) == []


def test_provider_failure_wrapped(hf_client) -> None:
    hf_client.return_value.embed_query.side_effect = RuntimeError("CUDA out of memory")
    with pytest.raises(EmbeddingError, match="CUDA out of memory"):
        HuggingFaceEmbedder("some/model").embed("hello")


def test_cancelled_before_call(hf_client) -> None:
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(EmbeddingError, match="cancelled"):
        HuggingFaceEmbedder("some/model").embed("hello", cancel_event=cancel)
    hf_client.return_value.embed_query.assert_not_called()


def test_token_estimate() -> None:
    item = IngestedItem(id="x", text="a" * 41, source="s")
    assert item.token_estimate == 10
