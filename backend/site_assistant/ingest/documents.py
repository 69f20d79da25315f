"""Scraped corpus persistence.

The scraper itself lives outside this package; it hands over an ordered list
of :class:`Document` records which are stored twice: as JSON for citation
lookup and as blank-line separated text for chunking.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterable, Protocol, Sequence

import orjson

from site_assistant.ingest.chunker import PARAGRAPH_SEPARATOR
from site_assistant.models.entities import Document

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r"\s+")


class Scraper(Protocol):
    def scrape(self, url: str) -> list[Document]:
        """Return the site's documents; an empty list on failure, never raises."""
        ...


def clean_text(text: str) -> str:
    """Collapse whitespace and strip."""
    return WHITESPACE_RE.sub(" ", text).strip()


def load_documents(path: Path) -> list[Document]:
    """Read the scraped JSON array. Missing or malformed files yield ``[]``."""
    if not path.exists():
        return []
    try:
        raw = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        logger.warning("Unreadable documents file %s: %s", path, exc)
        return []
    if not isinstance(raw, list):
        return []
    return [Document.from_dict(item) for item in raw if isinstance(item, dict)]


def corpus_text(documents: Iterable[Document]) -> str:
    """Join cleaned document texts with paragraph breaks, ready for chunking."""
    return PARAGRAPH_SEPARATOR.join(
        cleaned for cleaned in (clean_text(document.text) for document in documents) if cleaned
    )


def save_documents(documents: Sequence[Document], json_path: Path, txt_path: Path) -> int:
    """Replace both corpus files with ``documents``; returns the stored count."""
    stored = [
        Document(text=clean_text(document.text), source=document.source.strip() or "Section")
        for document in documents
        if clean_text(document.text)
    ]
    _write_atomic(json_path, orjson.dumps([document.to_dict() for document in stored], option=orjson.OPT_INDENT_2))
    _write_atomic(txt_path, corpus_text(stored).encode("utf-8"))
    logger.info("Saved scraped corpus", extra={"ctx_documents": len(stored), "ctx_path": str(json_path)})
    return len(stored)


def _write_atomic(path: Path, payload: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_bytes(payload)
    os.replace(tmp_path, path)


__all__ = ["Scraper", "clean_text", "load_documents", "corpus_text", "save_documents"]
