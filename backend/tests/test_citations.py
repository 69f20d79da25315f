"""Tests for citation resolution."""

from site_assistant.models.entities import Document, Hit
from site_assistant.retrieval.citations import CitationResolver

ORIGIN = "https://secureshield.example"

DOCUMENTS = [
    Document(text="Home", source="Navigation"),
    Document(text="Our home insurance policies cover your property and belongings.", source="Home Insurance"),
    Document(text="Our home insurance policies cover your property, duplicated later.", source="Duplicate"),
    Document(text="Request a personalized insurance quote today (link: #quote)", source="Quote"),
    Document(text="Read the claims guide for step by step help (link: /claims.html)", source="Claims"),
    Document(text="Partner programs are described elsewhere (link: https://partners.example/)", source="Partners"),
]


def test_resolves_first_matching_document() -> None:
    resolver = CitationResolver(DOCUMENTS, ORIGIN)
    meta = resolver.resolve("Our home insurance policies cover your property and belongings.\n\nMore text")
    assert meta is not None
    assert meta.title == "Home Insurance"
    assert meta.link is None


def test_short_documents_never_match() -> None:
    resolver = CitationResolver([Document(text="Home", source="Navigation")], ORIGIN)
    assert resolver.resolve("Home insurance for everyone") is None


def test_unmatched_chunk_has_no_metadata() -> None:
    resolver = CitationResolver(DOCUMENTS, ORIGIN)
    assert resolver.resolve("Completely unrelated paragraph about gardening.") is None


def test_links_are_made_absolute() -> None:
    resolver = CitationResolver(DOCUMENTS, ORIGIN + "/")
    assert resolver.resolve("Request a personalized insurance quote today (link: #quote)").link == f"{ORIGIN}/#quote"
    assert resolver.resolve("Read the claims guide for step by step help").link == f"{ORIGIN}/claims.html"
    assert resolver.resolve("Partner programs are described elsewhere").link == "https://partners.example/"


def test_enrich_keeps_hit_order_and_fields() -> None:
    resolver = CitationResolver(DOCUMENTS, ORIGIN)
    hits = [
        Hit(index=3, score=0.91, text="Request a personalized insurance quote today (link: #quote)"),
        Hit(index=7, score=0.42, text="Nothing in the corpus looks like this chunk."),
    ]
    citations = resolver.enrich(hits)
    assert [citation.index for citation in citations] == [3, 7]
    assert citations[0].title == "Quote"
    assert citations[0].score == 0.91
    assert citations[1].title is None
    assert citations[1].link is None


def test_resolution_is_repeatable() -> None:
    resolver = CitationResolver(DOCUMENTS, ORIGIN)
    chunk = "Our home insurance policies cover your property and belongings."
    assert resolver.resolve(chunk) == resolver.resolve(chunk)
