"""Shared test fixtures and configuration."""

import os
from pathlib import Path

import pytest


# Complete test environment that overrides ALL possible config values
TEST_ENV = {
    "KEYWORD_INDEX_DATABASE_PATH": "keyword_index.sqlite",
    "KEYWORD_INDEX_INDEX_TABLE": "keyword_index",
    "KEYWORD_INDEX_STEMMER": "identity",
    "KEYWORD_INDEX_STEMMER_LANGUAGE": "english",
    "KEYWORD_INDEX_USE_DEFAULT_UNINDEXED_WORDS": "true",
    "KEYWORD_INDEX_SPELL_CHECK_ENABLED": "false",
    "KEYWORD_INDEX_SPELL_CHECK_LANGUAGE": "en",
    "KEYWORD_INDEX_LOG_LEVEL": "info",
    "KEYWORD_INDEX_LOG_JSON": "false",
}

# Optional settings that must stay unset unless a test provides them
UNSET_ENV = (
    "KEYWORD_INDEX_MAX_WORD_LENGTH",
    "KEYWORD_INDEX_UNINDEXED_WORDS_FILE",
    "KEYWORD_INDEX_PERSONAL_WORDLIST_PATH",
)


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value
for key in UNSET_ENV:
    os.environ.pop(key, None)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Pin every setting and keep the index database inside tmp_path."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    for key in UNSET_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("KEYWORD_INDEX_DATABASE_PATH", str(tmp_path / "keyword_index.sqlite"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def restore_default_stemmer():
    """Tests that install a process default stemmer must not leak it."""
    from keyword_index.search.analyzers import set_default_stemmer

    yield
    set_default_stemmer(None)


@pytest.fixture
def store(tmp_path: Path):
    """SQLite keyword store in a temporary directory."""
    from keyword_index.search.storage import SqliteKeywordStore

    keyword_store = SqliteKeywordStore(tmp_path / "index.sqlite")
    yield keyword_store
    keyword_store.close()


@pytest.fixture
def registry(store):
    from keyword_index.registry import DocumentTypeRegistry

    return DocumentTypeRegistry(store)


@pytest.fixture
def products(registry) -> int:
    """Id of a registered ``products`` document type."""
    return registry.create_document_type("products")
