"""Map source file extensions to ingestion engines."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from chunksync.exceptions import ConfigurationError
from chunksync.ingestion.engines import IngestionEngine, PdfIngestionEngine, TextIngestionEngine
from chunksync.ingestion.options import WILDCARD, normalize_extension

_UNSET = object()


def extension_of(path: str | Path) -> str:
    """Lower-cased extension with its dot, ``""`` for files without one."""
    return os.path.splitext(str(path))[1].lower()


class SourceDispatcher:
    """Resolve the engine responsible for each source.

    Parameters
    ----------
    engines:
        Extension → engine registry.  Defaults to ``{".pdf": PdfIngestionEngine()}``.
    default_engine:
        Engine for unregistered extensions.  Defaults to
        :class:`TextIngestionEngine`; pass ``None`` to make unknown
        extensions a configuration error.
    """

    def __init__(
        self,
        engines: dict[str, IngestionEngine] | None = None,
        default_engine: IngestionEngine | None = _UNSET,  # type: ignore[assignment]
    ) -> None:
        if engines is None:
            engines = {".pdf": PdfIngestionEngine()}
        self._engines: dict[str, IngestionEngine] = {}
        for ext, engine in engines.items():
            self.register(ext, engine)
        self.default_engine: IngestionEngine | None = (
            TextIngestionEngine() if default_engine is _UNSET else default_engine
        )

    def register(self, extension: str, engine: IngestionEngine) -> None:
        ext = normalize_extension(extension)
        if ext == WILDCARD:
            self.default_engine = engine
        else:
            self._engines[ext] = engine

    @property
    def engines(self) -> dict[str, IngestionEngine]:
        return dict(self._engines)

    def engine_for_extension(self, extension: str) -> IngestionEngine:
        ext = normalize_extension(extension)
        engine = self._engines.get(ext, self.default_engine)
        if engine is None:
            raise ConfigurationError(f"No ingestion engine registered for extension {ext!r}")
        return engine

    def dispatch(self, path: str | Path) -> IngestionEngine:
        """Return the engine for *path* based on its extension."""
        return self.engine_for_extension(extension_of(path))

    @staticmethod
    def partition(paths: Iterable[str | Path]) -> dict[str, list[str]]:
        """Group *paths* by extension, keeping first-seen order everywhere."""
        groups: dict[str, list[str]] = {}
        for path in paths:
            groups.setdefault(extension_of(path), []).append(str(path))
        return groups

    def engine_for_batch(self, paths: Iterable[str | Path]) -> IngestionEngine:
        """Single-extension convenience path; mixed batches are rejected."""
        groups = self.partition(paths)
        if not groups:
            raise ConfigurationError("No sources given")
        if len(groups) > 1:
            raise ConfigurationError(
                f"Multiple file types detected ({', '.join(sorted(groups))}); "
                "use the multi-type ingestion path for mixed batches"
            )
        return self.engine_for_extension(next(iter(groups)))
