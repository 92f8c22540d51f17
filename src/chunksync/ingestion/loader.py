"""Source extraction — thin wrappers around LangChain document loaders.

Every loader turns one source into a single text blob.  Any failure to
open or parse the source surfaces as
:class:`~chunksync.exceptions.SourceReadError`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from langchain_community.document_loaders import PyPDFLoader, TextLoader

from chunksync.exceptions import SourceReadError

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


def _require_file(path: str | Path) -> Path:
    p = Path(path)
    if not p.is_file():
        raise SourceReadError(str(path), "file not found")
    return p


def load_pdf_text(path: str | Path) -> str:
    """Extract the text of every page of a PDF, pages separated by a blank line."""
    p = _require_file(path)
    try:
        pages = PyPDFLoader(str(p)).load()
    except Exception as exc:
        raise SourceReadError(str(path), f"cannot parse PDF: {exc}") from exc

    text = "".join(page.page_content + PAGE_SEPARATOR for page in pages)
    logger.debug("Extracted %d characters from %d PDF pages of %s", len(text), len(pages), path)
    return text


def load_plain_text(path: str | Path, encoding: str = "utf-8") -> str:
    """Read a text-like file (``.txt``, ``.md``, ``.html`` …) as-is."""
    p = _require_file(path)
    try:
        docs = TextLoader(str(p), encoding=encoding).load()
    except Exception as exc:
        raise SourceReadError(str(path), f"cannot read text: {exc}") from exc
    return "".join(doc.page_content for doc in docs)
