"""Shared test fixtures and configuration."""

import os

import pytest

from moogle_search.adapters.corpus_reader import InMemoryCorpusReader
from moogle_search.config import Settings
from moogle_search.search.indexer import build_index


CAT_CORPUS = {
    "doc1": "the cat sat",
    "doc2": "the dog ran",
}

BIRD_CORPUS = {
    **CAT_CORPUS,
    "doc3": "a bird flew",
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop MOOGLE_* variables so Settings() always sees the defaults."""
    for key in list(os.environ):
        if key.upper().startswith("MOOGLE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def literal_settings():
    """Settings with fuzzy fallback disabled."""
    return Settings(max_fuzzy_depth=0)


@pytest.fixture
def cat_reader():
    return InMemoryCorpusReader(CAT_CORPUS)


@pytest.fixture
def cat_snapshot(cat_reader):
    return build_index(cat_reader)


@pytest.fixture
def bird_snapshot():
    return build_index(InMemoryCorpusReader(BIRD_CORPUS))


@pytest.fixture
def content_dir(tmp_path):
    """A directory corpus mirroring CAT_CORPUS."""
    for title, content in CAT_CORPUS.items():
        (tmp_path / f"{title}.txt").write_text(content, encoding="utf-8")
    return tmp_path
