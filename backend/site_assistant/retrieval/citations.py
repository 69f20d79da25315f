"""Map retrieved chunks back to the scraped sections they came from."""

from __future__ import annotations

import re
from typing import Sequence

from site_assistant.models.entities import Citation, Document, Hit, SourceMeta

PREFIX_CHARS = 60
MIN_DOCUMENT_CHARS = 20
DEFAULT_TITLE = "Section"

_LINK_RE = re.compile(r"\(link:\s*([^)]+)\)", re.IGNORECASE)


class CitationResolver:
    """First-match lookup of a chunk's section title and link.

    A document matches when the opening characters of either text occur in
    the other. Documents shorter than ``MIN_DOCUMENT_CHARS`` are ignored so
    navigation fragments do not claim every chunk.
    """

    def __init__(self, documents: Sequence[Document], site_origin: str) -> None:
        self.documents = list(documents)
        self.site_origin = site_origin.rstrip("/")

    def resolve(self, chunk_text: str) -> SourceMeta | None:
        chunk_prefix = chunk_text[:PREFIX_CHARS]
        for document in self.documents:
            text = document.text.strip()
            if len(text) < MIN_DOCUMENT_CHARS:
                continue
            if text[:PREFIX_CHARS] in chunk_text or (chunk_prefix and chunk_prefix in text):
                return SourceMeta(title=document.source or DEFAULT_TITLE, link=self.extract_link(text))
        return None

    def enrich(self, hits: Sequence[Hit]) -> list[Citation]:
        return [Citation.from_hit(hit, self.resolve(hit.text)) for hit in hits]

    def extract_link(self, text: str) -> str | None:
        match = _LINK_RE.search(text)
        if not match:
            return None
        href = match.group(1).strip()
        if href.startswith("#"):
            return f"{self.site_origin}/{href}"
        if href.startswith("/"):
            return f"{self.site_origin}{href}"
        return href


__all__ = ["CitationResolver", "PREFIX_CHARS", "MIN_DOCUMENT_CHARS"]
