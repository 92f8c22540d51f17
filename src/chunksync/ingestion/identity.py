"""Chunk identity schemes.

``CONTENT`` ids make identical chunk text collapse onto one record, which
is what gives the incremental strategies' existence check its meaning.
``POSITIONAL`` ids are stable only while a source's chunk boundaries stay
the same: changing ``max_size`` or ``overlap`` renames every chunk.
``SOURCE_CONTENT`` keeps content addressing but stops identical
boilerplate in two different sources from sharing one record.
"""

from __future__ import annotations

import hashlib
from enum import Enum


class IdentityScheme(str, Enum):
    CONTENT = "content"
    POSITIONAL = "positional"
    SOURCE_CONTENT = "source_content"


def content_hash(text: str) -> str:
    """SHA-256 hex digest of *text* (UTF-8)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def positional_id(source_id: str, index: int) -> str:
    return f"{source_id}_chunk_{index}"


def source_content_hash(source_id: str, text: str) -> str:
    return hashlib.sha256(f"{source_id}\x00{text}".encode("utf-8")).hexdigest()


def assign_id(scheme: IdentityScheme | str, text: str, source: str, index: int) -> str:
    """Return the id of chunk number *index* of *source* under *scheme*."""
    scheme = IdentityScheme(scheme)
    if scheme is IdentityScheme.CONTENT:
        return content_hash(text)
    if scheme is IdentityScheme.POSITIONAL:
        return positional_id(source, index)
    return source_content_hash(source, text)
