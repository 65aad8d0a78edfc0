"""Unit tests for tokenization, truncation and stemming backends."""

import pytest

from keyword_index.search.analyzers import (
    IdentityStemmer,
    SnowballStemmer,
    Stemmer,
    SuffixStemmer,
    get_default_stemmer,
    get_stemmer,
    set_default_stemmer,
    stem_keyword,
    tokenize,
    truncate_keyword,
)


@pytest.mark.unit
class TestTokenize:
    def test_splits_on_spaces(self):
        assert list(tokenize("quick brown fox")) == ["quick", "brown", "fox"]

    def test_skips_empty_tokens(self):
        assert list(tokenize(" a  b ")) == ["a", "b"]
        assert list(tokenize("")) == []


@pytest.mark.unit
class TestTruncateKeyword:
    def test_cuts_to_leading_characters(self):
        assert truncate_keyword("keywords", 3) == "key"

    def test_short_words_unchanged(self):
        assert truncate_keyword("fox", 3) == "fox"
        assert truncate_keyword("fox", 10) == "fox"

    def test_none_is_unbounded(self):
        assert truncate_keyword("a" * 300, None) == "a" * 300


@pytest.mark.unit
class TestStemmers:
    def test_identity_returns_word(self):
        assert IdentityStemmer().stem("running") == "running"

    @pytest.mark.parametrize(
        ("word", "expected"),
        [
            ("organization", "organize"),
            ("happiness", "happi"),
            ("quickly", "quick"),
            ("cats", "cat"),
            ("is", "is"),
        ],
    )
    def test_suffix_stemmer(self, word, expected):
        assert SuffixStemmer().stem(word) == expected

    def test_suffix_stemmer_prefers_longest_suffix(self):
        # "ational" wins over "tional" and "ation"
        assert SuffixStemmer().stem("generational") == "generate"
        # no derivational rule, so the longest inflection goes
        assert SuffixStemmer().stem("running") == "runn"

    def test_suffix_stemmer_with_custom_rules(self):
        stemmer = SuffixStemmer({"y": ("ies",)}, ("s",), min_stem=3)
        assert stemmer.stem("ponies") == "pony"
        assert stemmer.stem("dogs") == "dog"
        # "ies" would leave one letter, so only the plural "s" goes
        assert stemmer.stem("ties") == "tie"

    def test_snowball_stemmer_uses_pystemmer(self):
        stemmer = SnowballStemmer("english")
        assert stemmer.stem("running") == "run"
        assert stemmer.stem("connections") == "connect"

    def test_all_backends_satisfy_protocol(self):
        for stemmer in (IdentityStemmer(), SuffixStemmer(), SnowballStemmer()):
            assert isinstance(stemmer, Stemmer)


@pytest.mark.unit
class TestGetStemmer:
    def test_none_gives_identity(self):
        assert isinstance(get_stemmer(None), IdentityStemmer)

    def test_lookup_is_case_insensitive(self):
        assert isinstance(get_stemmer("SUFFIX"), SuffixStemmer)

    def test_snowball_receives_language(self):
        stemmer = get_stemmer("snowball", language="english")
        assert isinstance(stemmer, SnowballStemmer)
        assert stemmer.language == "english"

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError, match="Unknown stemmer 'porter3'"):
            get_stemmer("porter3")


@pytest.mark.unit
class TestDefaultStemmer:
    def test_identity_until_configured(self):
        assert isinstance(get_default_stemmer(), IdentityStemmer)
        assert stem_keyword("cats") == "cats"

    def test_configured_stemmer_is_used(self):
        set_default_stemmer(SuffixStemmer())
        assert stem_keyword("cats") == "cat"

    def test_none_restores_identity(self):
        set_default_stemmer(SuffixStemmer())
        set_default_stemmer(None)
        assert stem_keyword("cats") == "cats"
