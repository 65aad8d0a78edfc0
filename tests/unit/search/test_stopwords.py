"""Unit tests for the packaged list of unindexed words."""

from pathlib import Path

import pytest

from keyword_index.search import stopwords
from keyword_index.search.stopwords import default_unindexed_words, read_word_list


@pytest.mark.unit
class TestDefaultUnindexedWords:
    def test_contains_common_english_words(self):
        words = default_unindexed_words()
        assert isinstance(words, tuple)
        assert {"the", "and", "a"} <= set(words)
        assert all(word == word.strip() and word for word in words)

    def test_loaded_once_and_shared(self):
        assert default_unindexed_words() is default_unindexed_words()

    def test_reload_after_cache_reset(self, monkeypatch):
        monkeypatch.setitem(stopwords._cache, "words", None)
        words = default_unindexed_words()
        assert "the" in words
        assert stopwords._cache["words"] is words


@pytest.mark.unit
def test_read_word_list_drops_line_breaks_and_blanks(tmp_path: Path):
    path = tmp_path / "words.txt"
    path.write_text("foo\r\n\nbar  \n\n", encoding="utf-8")
    assert read_word_list(path) == ("foo", "bar")
