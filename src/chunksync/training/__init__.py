"""
Training — synchronizing chunked items into a vector store.

Public surface
--------------
- :class:`TrainingStrategy` — how a batch relates to the existing collection.
- :class:`SynchronizationEngine` — applies a strategy to a list of items.
- :class:`SyncReport` — processed / skipped / updated accounting.
- :class:`PipelineBuilder`, :class:`TrainingPipeline` — configured facade.
"""

from chunksync.training.strategy import TrainingStrategy
from chunksync.training.sync import ItemFailure, SyncReport, SynchronizationEngine

__all__ = [
    "ItemFailure",
    "PipelineBuilder",
    "SyncReport",
    "SynchronizationEngine",
    "TrainingPipeline",
    "TrainingResult",
    "TrainingStrategy",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import the pipeline, which reads settings at import time."""
    if name in ("PipelineBuilder", "TrainingPipeline", "TrainingResult"):
        from chunksync.training import pipeline

        return getattr(pipeline, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
