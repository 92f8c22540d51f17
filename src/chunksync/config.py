"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from chunksync.training.strategy import TrainingStrategy


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Vector store
    chroma_mode: Literal["persistent", "http"] = Field(
        default="persistent",
        description="'persistent' keeps the collection in a local directory; 'http' talks to a Chroma server.",
    )
    chroma_path: str = "./chroma_data"
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "chunksync"
    chroma_distance_metric: Literal["cosine", "l2", "ip"] = "cosine"

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    normalize_embeddings: bool = True

    # Chunking (applied to every extension unless overridden per extension)
    chunk_size: int = Field(default=1000, description="Maximum number of characters per chunk")
    chunk_overlap: int = Field(default=200, description="Characters shared by consecutive chunks")
    chunk_min_size: int = 0
    use_metadata: bool = True

    # Training
    training_strategy: TrainingStrategy = TrainingStrategy.RETRAIN_FROM_SCRATCH
    continue_on_error: bool = Field(
        default=False,
        description="Record per-item embedding/store failures and keep going instead of aborting the run.",
    )

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def configure_logging(level: str | int | None = None) -> None:
    """Install a basic root handler for applications and scripts.

    Library code never calls this; components log through the logger they
    were given (or their module logger).
    """
    logging.basicConfig(
        level=level if level is not None else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Shared instance read by adapter defaults; tests build their own Settings.
settings = Settings()
