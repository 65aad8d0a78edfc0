"""Tokenizer and stemmer chain for the keyword indexer.

Tokenization is a plain split of normalized text on single spaces. Stemming
is a pluggable capability: an indexer holds a ``Stemmer`` and the module keeps
a process default used by :func:`stem_keyword`. When no stemming backend is
configured the identity stemmer is used, so a missing backend is never an
error.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
import threading
from typing import NamedTuple, Protocol, runtime_checkable

import Stemmer as pystemmer


@runtime_checkable
class Stemmer(Protocol):
    """Protocol implemented by stemming backends."""

    def stem(self, word: str) -> str:  # pragma: no cover - interface definition
        ...


def tokenize(text: str) -> Iterator[str]:
    """Yield space separated tokens of normalized text, skipping empty ones."""
    for token in text.split(" "):
        if token:
            yield token


def truncate_keyword(word: str, max_length: int | None) -> str:
    """Cut ``word`` to ``max_length`` leading characters (``None`` is unbounded)."""
    if max_length is not None and len(word) > max_length:
        return word[:max_length]
    return word


class IdentityStemmer:
    """Stemmer used when no backend is configured."""

    def stem(self, word: str) -> str:
        return word


class SuffixRule(NamedTuple):
    suffix: str
    replacement: str


# Replacement -> suffixes rewritten to it
DERIVATIONAL_SUFFIXES: dict[str, tuple[str, ...]] = {
    "ize": ("ization", "izer"),
    "ate": ("ational", "ation", "ator"),
    "rate": ("ration",),
    "tion": ("tional",),
    "ful": ("fulness",),
    "ous": ("ousness", "ousli"),
    "ive": ("iveness",),
    "ble": ("biliti",),
    "less": ("lessli",),
    "ent": ("entli",),
    "ence": ("enci",),
    "ance": ("anci",),
    "able": ("abli",),
    "al": ("alism", "aliti", "alli"),
    "an": ("ance",),
    "en": ("ence",),
    "": ("ness", "ment", "able", "ible"),
}

INFLECTIONAL_SUFFIXES: tuple[str, ...] = ("ingly", "edly", "ing", "ed", "ly", "es", "s")


def _longest_first(rules: Iterable[SuffixRule]) -> tuple[SuffixRule, ...]:
    return tuple(sorted(rules, key=lambda rule: len(rule.suffix), reverse=True))


class SuffixStemmer:
    """Rule based suffix stripping for English keywords.

    One derivational rewrite (``organization`` -> ``organize``) is tried
    first; only words without one lose an inflectional ending (``cats`` ->
    ``cat``). Within each group the longest matching suffix wins, and a rule
    only applies when at least ``min_stem`` characters stay in front of it.
    """

    def __init__(
        self,
        derivational: Mapping[str, Iterable[str]] = DERIVATIONAL_SUFFIXES,
        inflectional: Iterable[str] = INFLECTIONAL_SUFFIXES,
        *,
        min_stem: int = 2,
    ) -> None:
        self.min_stem = min_stem
        self._derivational = _longest_first(
            SuffixRule(suffix, replacement) for replacement, suffixes in derivational.items() for suffix in suffixes
        )
        self._inflectional = _longest_first(SuffixRule(suffix, "") for suffix in inflectional)

    def stem(self, word: str) -> str:
        for rules in (self._derivational, self._inflectional):
            rewritten = self._rewrite(word, rules)
            if rewritten is not None:
                return rewritten
        return word

    def _rewrite(self, word: str, rules: tuple[SuffixRule, ...]) -> str | None:
        for rule in rules:
            if word.endswith(rule.suffix) and len(word) - len(rule.suffix) >= self.min_stem:
                return word[: -len(rule.suffix)] + rule.replacement
        return None


class SnowballStemmer:
    """Snowball stemming through PyStemmer.

    Any language known to PyStemmer may be used; see PyStemmer's
    ``algorithms()`` for the available names.
    """

    def __init__(self, language: str = "english") -> None:
        self.language = language
        self._stemmer = pystemmer.Stemmer(language)

    def stem(self, word: str) -> str:
        return self._stemmer.stemWord(word)


_STEMMER_FACTORIES: dict[str, Callable[[str], Stemmer]] = {
    "identity": lambda language: IdentityStemmer(),
    "none": lambda language: IdentityStemmer(),
    "suffix": lambda language: SuffixStemmer(),
    "snowball": lambda language: SnowballStemmer(language),
}


def get_stemmer(name: str | None, *, language: str = "english") -> Stemmer:
    """Return a stemmer by name, defaulting to the identity stemmer."""

    if name is None:
        return IdentityStemmer()
    normalized = name.lower()
    if normalized not in _STEMMER_FACTORIES:
        msg = f"Unknown stemmer '{name}'. Available: {sorted(_STEMMER_FACTORIES)}"
        raise ValueError(msg)
    return _STEMMER_FACTORIES[normalized](language)


_default_lock = threading.Lock()
_default_holder: dict[str, Stemmer] = {"stemmer": IdentityStemmer()}


def set_default_stemmer(stemmer: Stemmer | None) -> None:
    """Install the process default stemmer (``None`` restores the identity)."""
    with _default_lock:
        _default_holder["stemmer"] = stemmer if stemmer is not None else IdentityStemmer()


def get_default_stemmer() -> Stemmer:
    return _default_holder["stemmer"]


def stem_keyword(word: str) -> str:
    """Stem a keyword with the process default stemmer."""
    return get_default_stemmer().stem(word)
