"""Chunking utilities."""

from __future__ import annotations

import re
from typing import Iterator

DEFAULT_MAX_CHARS = 1000
PARAGRAPH_SEPARATOR = "\n\n"

_SEGMENT_RE = re.compile(r"\n\s*\n")


def chunk_text(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> list[str]:
    """Greedily pack paragraphs into chunks of at most ``max_chars``.

    Paragraphs are never split, so a paragraph longer than ``max_chars``
    becomes a chunk on its own. Returns ``[]`` for blank input.
    """
    chunks: list[str] = []
    buffer = ""
    for segment in iter_segments(text):
        if buffer and len(buffer) + len(PARAGRAPH_SEPARATOR) + len(segment) > max_chars:
            chunks.append(buffer)
            buffer = segment
        else:
            buffer = f"{buffer}{PARAGRAPH_SEPARATOR}{segment}" if buffer else segment
    if buffer:
        chunks.append(buffer)
    return chunks


def iter_segments(text: str) -> Iterator[str]:
    """Yield trimmed, non-empty blank-line separated paragraphs."""
    for part in _SEGMENT_RE.split(text):
        segment = part.strip()
        if segment:
            yield segment


__all__ = ["chunk_text", "iter_segments", "DEFAULT_MAX_CHARS", "PARAGRAPH_SEPARATOR"]
