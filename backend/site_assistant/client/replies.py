"""Canned replies for the offline path and display helpers."""

from __future__ import annotations

import re
from typing import Sequence

from site_assistant.client.local import LocalMatch
from site_assistant.models.entities import Document

CONTACT_PHONE = "(555) 123-4567"
CONTACT_EMAIL = "info@secureshield.com"

APOLOGY = "Sorry, I encountered an error. Please try again or refresh the page if the problem persists."
NO_MATCH = "I don't have specific information about that. Can you ask something about our insurance services?"

# Seed content when the corpus cannot be fetched from the server.
DEFAULT_DOCUMENTS: tuple[Document, ...] = (
    Document(text="SecureShield Insurance offers auto, home, health, and life insurance.", source="General"),
    Document(text="Get a quote by filling out our form or contacting an agent.", source="Contact"),
    Document(text="Our insurance services are tailored to your unique needs.", source="Services"),
)

_INTENTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("hello", "hi", "hey"), "Hello! How can I help you with our insurance services today?"),
    (
        ("contact", "reach", "call"),
        f"You can contact us at {CONTACT_PHONE} or email us at {CONTACT_EMAIL}.",
    ),
    (
        ("quote", "price", "cost"),
        "We offer competitive quotes for all our insurance types. You can request a personalized quote "
        "by filling out the form on our website.",
    ),
    (
        ("auto", "car"),
        "Our auto insurance provides comprehensive coverage for your vehicle, including liability, "
        "collision, and comprehensive options.",
    ),
    (
        ("home", "house", "property"),
        "Our home insurance protects your property and belongings against damage, theft, and liability. "
        "We offer customizable policies to fit your specific needs.",
    ),
    (
        ("health",),
        "Our health insurance plans provide coverage for medical expenses, prescriptions, and preventive care. "
        "We offer various plans to suit different needs and budgets.",
    ),
    (
        ("life",),
        "Our life insurance policies provide financial protection for your loved ones in case of your passing. "
        "We offer term life and whole life options.",
    ),
)

_WORD_RE = re.compile(r"[a-z']+")
_CITATION_LIST_RE = re.compile(r"\s*\[[^\]]*#\d+[^\]]*\]\s*")
_CITATION_RE = re.compile(r"\s*\[#\d+\]\s*")


def compose_local_reply(message: str, matches: Sequence[LocalMatch]) -> str:
    """Keyword intents first, then the best local match, then a shrug."""
    words = set(_WORD_RE.findall((message or "").lower()))
    for keywords, reply in _INTENTS:
        if words.intersection(keywords):
            return reply
    best = next((match for match in matches if match.score > 0), None)
    if best is not None:
        return f"Based on what I know about {best.document.source}: {best.document.text}"
    return NO_MATCH


def strip_citation_markers(text: str) -> str:
    """Drop ``[#1]`` and ``[#1, #2]`` markers from generated text."""
    cleaned = _CITATION_LIST_RE.sub(" ", text or "")
    cleaned = _CITATION_RE.sub(" ", cleaned)
    cleaned = re.sub(r"[ \t]{2,}", " ", cleaned)
    return re.sub(r"\s+([.,;:!?])", r"\1", cleaned).strip()


__all__ = [
    "APOLOGY",
    "NO_MATCH",
    "DEFAULT_DOCUMENTS",
    "compose_local_reply",
    "strip_citation_markers",
]
