"""Shared test fixtures and configuration."""

import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


# Drop any DOCSITE_SEARCH_* overrides from the developer's shell before settings load
for key in [name for name in os.environ if name.upper().startswith("DOCSITE_SEARCH_")]:
    del os.environ[key]

from docsite_search.config import SearchSettings, get_settings
from docsite_search.domain.model import Document
from docsite_search.search_engine import DocumentationSearchEngine


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep settings independent of the environment and of any .env file."""
    for key in list(os.environ):
        if key.upper().startswith("DOCSITE_SEARCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return SearchSettings()


@pytest.fixture
def guide_documents():
    """Two-document v1 corpus used by most engine tests."""
    return [
        Document(
            id="receptors",
            title="Receptors Guide",
            category="Concepts",
            version="v1",
            url="/docs/v1/receptors",
            body="Receptors are stateless message handlers.",
        ),
        Document(
            id="dispatcher",
            title="Dispatcher Guide",
            category="Concepts",
            version="v1",
            url="/docs/v1/dispatcher",
            body="The dispatcher routes commands.",
        ),
    ]


@pytest.fixture
def versioned_documents():
    """The same "Lenses" page published under two versions."""
    body = "A lens focuses a projection over receptor state."
    return [
        Document(id="v1/lenses", title="Lenses", category="Guides", version="v1", body=body),
        Document(id="v2/lenses", title="Lenses", category="Guides", version="v2", body=body),
    ]


@pytest.fixture
def engine(settings):
    return DocumentationSearchEngine(settings, name="test")


@pytest.fixture
def ready_engine(engine, guide_documents):
    engine.build_index(guide_documents)
    return engine
