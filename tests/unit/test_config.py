"""Unit tests for environment-driven settings."""

import logging

import pytest

from chunksync.config import Settings, configure_logging
from chunksync.training.strategy import TrainingStrategy


def test_defaults() -> None:
    s = Settings(_env_file=None)
    assert s.chroma_mode == "persistent"
    assert (s.chunk_size, s.chunk_overlap, s.chunk_min_size) == (1000, 200, 0)
    assert s.training_strategy is TrainingStrategy.RETRAIN_FROM_SCRATCH
    assert s.continue_on_error is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHUNK_SIZE", "300")
    monkeypatch.setenv("TRAINING_STRATEGY", "incremental_add")
    monkeypatch.setenv("CHROMA_MODE", "http")
    s = Settings(_env_file=None)
    assert s.chunk_size == 300
    assert s.training_strategy is TrainingStrategy.INCREMENTAL_ADD
    assert s.chroma_mode == "http"


def test_configure_logging_sets_root_level(monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", logging.WARNING)
    configure_logging("DEBUG")
    assert root.level == logging.DEBUG
