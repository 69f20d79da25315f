"""Test fixtures for Site Assistant."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

SAMPLE_DOCUMENTS = [
    {"text": "SecureShield Insurance offers comprehensive auto insurance coverage to protect you and your vehicle on the road.", "source": "Auto Insurance"},
    {"text": "Our home insurance policies cover your property, belongings, and provide liability protection against fire damage.", "source": "Home Insurance"},
    {"text": "Get a personalized insurance quote online (link: #quote)", "source": "Link"},
    {"text": "Home", "source": "Navigation"},
]


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("SITEA_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("SITEA_EMBEDDING_PROVIDER", "hashed")
    monkeypatch.setenv("SITEA_GENERATION_PROVIDER", "extractive")
    monkeypatch.delenv("SITEA_CONFIG", raising=False)

    from site_assistant.api import dependencies as deps

    _clear(deps)
    yield
    _clear(deps)


def _clear(deps) -> None:
    deps.get_app_settings.cache_clear()
    deps._EMBEDDER = None
    deps._INDEX_HANDLE = None
    deps._BUILDER = None
    deps._QUERY_SERVICE = None
    deps._GENERATOR = None


@pytest.fixture
def sample_documents() -> list[dict[str, str]]:
    return [dict(item) for item in SAMPLE_DOCUMENTS]


@pytest.fixture(scope="session")
def sample_text() -> str:
    return "Title\n\nParagraph one.\n\nParagraph two is here."
