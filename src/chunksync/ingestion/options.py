"""Chunking options and the three-tier per-extension resolution.

Options are resolved for an extension in this order:

1. an override registered for that exact extension (``".pdf"``),
2. the wildcard override (``"*"``),
3. the hard-coded default for the extension.
"""

from __future__ import annotations

from pydantic import BaseModel, model_validator

from chunksync.exceptions import ConfigurationError

WILDCARD = "*"


class ChunkingOptions(BaseModel):
    """Bounds for fixed-size chunking.

    ``overlap`` must be smaller than ``max_size``; invalid bounds raise
    :class:`~chunksync.exceptions.ConfigurationError` when the options are
    created, never later while a batch is running.
    """

    min_size: int = 0
    max_size: int = 1000
    overlap: int = 200
    use_metadata: bool = True

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_bounds(self) -> ChunkingOptions:
        validate_bounds(self.max_size, self.overlap, self.min_size)
        return self


def validate_bounds(max_size: int, overlap: int, min_size: int = 0) -> None:
    """Raise :class:`ConfigurationError` unless ``0 <= overlap < max_size``."""
    if max_size <= 0:
        raise ConfigurationError(f"max_size must be positive, got {max_size}")
    if overlap < 0:
        raise ConfigurationError(f"overlap must be non-negative, got {overlap}")
    if overlap >= max_size:
        raise ConfigurationError(f"overlap ({overlap}) must be < max_size ({max_size})")
    if min_size < 0:
        raise ConfigurationError(f"min_size must be non-negative, got {min_size}")


def pdf_defaults() -> ChunkingOptions:
    return ChunkingOptions(min_size=0, max_size=1200, overlap=500, use_metadata=True)


def text_defaults() -> ChunkingOptions:
    return ChunkingOptions(min_size=0, max_size=1000, overlap=200, use_metadata=True)


def normalize_extension(extension: str) -> str:
    """Lower-case *extension* and give it a leading dot (``"PDF"`` → ``".pdf"``).

    The wildcard and the empty extension (files without a suffix) are
    returned unchanged.
    """
    ext = extension.strip().lower()
    if ext in ("", WILDCARD) or ext.startswith("."):
        return ext
    return f".{ext}"


class OptionsResolver:
    """Resolve the :class:`ChunkingOptions` used for one extension group.

    Parameters
    ----------
    overrides:
        Mapping of extension (or ``"*"``) to options.  Keys are normalised,
        so ``"PDF"``, ``"pdf"`` and ``".pdf"`` are equivalent.
    """

    def __init__(self, overrides: dict[str, ChunkingOptions] | None = None) -> None:
        self._overrides: dict[str, ChunkingOptions] = {}
        for ext, options in (overrides or {}).items():
            self.set(ext, options)

    def set(self, extension: str, options: ChunkingOptions) -> None:
        if options is None:
            raise ConfigurationError(f"Options for {extension!r} cannot be None")
        self._overrides[normalize_extension(extension)] = options

    @property
    def overrides(self) -> dict[str, ChunkingOptions]:
        return dict(self._overrides)

    def resolve(self, extension: str) -> ChunkingOptions:
        ext = normalize_extension(extension)
        if ext in self._overrides:
            return self._overrides[ext]
        if WILDCARD in self._overrides:
            return self._overrides[WILDCARD]
        return pdf_defaults() if ext == ".pdf" else text_defaults()

    def merged_with(self, overrides: dict[str, ChunkingOptions] | None) -> OptionsResolver:
        """Return a new resolver whose overrides take precedence over this one's."""
        combined = OptionsResolver(self._overrides)
        for ext, options in (overrides or {}).items():
            combined.set(ext, options)
        return combined
