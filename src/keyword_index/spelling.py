"""Spell checking collaborators used while indexing.

The indexer can hand every raw token to a :class:`SpellAssist` sink. Tokens a
spell checker would correct are recorded in a personal wordlist, both in
memory for the current session and through the checker's own persistent
wordlist. All of this is bookkeeping: a failing spell checker is logged and
counted but never interrupts indexing.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from spellchecker import SpellChecker as _PySpellChecker

from keyword_index.observability.metrics import SPELL_CHECK_FAILURES


logger = logging.getLogger(__name__)


class SpellCheckFailure(RuntimeError):
    """Raised when the spell checking collaborator fails."""


@runtime_checkable
class SpellChecker(Protocol):
    """Capabilities required from a spell checking backend."""

    def check(self, word: str) -> bool:  # pragma: no cover - interface definition
        ...

    def suggest(self, word: str) -> Sequence[str]:  # pragma: no cover - interface definition
        ...

    def add_to_personal_wordlist(self, word: str) -> None:  # pragma: no cover - interface definition
        ...


def get_misspellings_in_phrase(checker: SpellChecker, phrase: str) -> dict[str, list[str]]:
    """Check each space separated word of ``phrase``.

    Returns:
        Mapping of each misspelled word to its candidate corrections.
    """
    misspellings: dict[str, list[str]] = {}
    for word in phrase.split(" "):
        if word and not checker.check(word):
            misspellings[word] = list(checker.suggest(word))
    return misspellings


def get_proper_spelling(checker: SpellChecker, phrase: str) -> str:
    """Return ``phrase`` with every misspelled word replaced.

    The first suggestion is used as the replacement. A misspelled word the
    checker has no suggestion for is replaced by the empty string.
    """
    padded = f" {phrase} "
    for incorrect, corrections in get_misspellings_in_phrase(checker, phrase).items():
        replacement = corrections[0] if corrections else ""
        padded = padded.replace(f" {incorrect} ", f" {replacement} ")
    return padded.strip()


class PySpellChecker:
    """Spell checker backed by the ``pyspellchecker`` word frequency lists.

    Words added to the personal wordlist are loaded into the dictionary so
    they are considered correct from then on. When ``personal_wordlist_path``
    is given the wordlist is appended to that file and reloaded on start.
    """

    def __init__(
        self,
        language: str = "en",
        *,
        personal_wordlist_path: Path | str | None = None,
        distance: int = 2,
    ) -> None:
        self.language = language
        self._spell = _PySpellChecker(language=language, distance=distance)
        self.personal_wordlist_path = Path(personal_wordlist_path) if personal_wordlist_path else None
        if self.personal_wordlist_path is not None and self.personal_wordlist_path.exists():
            words = self.personal_wordlist_path.read_text(encoding="utf-8").split()
            self._spell.word_frequency.load_words(words)
            logger.debug("Loaded %d personal wordlist entries from %s", len(words), self.personal_wordlist_path)

    def check(self, word: str) -> bool:
        return not self._spell.unknown([word])

    def suggest(self, word: str) -> list[str]:
        best = self._spell.correction(word)
        candidates = self._spell.candidates(word) or set()
        ranked = sorted(candidates - {best}, key=lambda candidate: (-self._spell[candidate], candidate))
        return [best, *ranked] if best else ranked

    def add_to_personal_wordlist(self, word: str) -> None:
        self._spell.word_frequency.add(word)
        if self.personal_wordlist_path is not None:
            self.personal_wordlist_path.parent.mkdir(parents=True, exist_ok=True)
            with self.personal_wordlist_path.open("a", encoding="utf-8") as handle:
                handle.write(f"{word}\n")


class SpellAssist:
    """Record tokens a spell checker would correct into a personal wordlist."""

    def __init__(self, checker: SpellChecker) -> None:
        self.checker = checker
        self._personal_wordlist: set[str] = set()

    @property
    def personal_wordlist(self) -> frozenset[str]:
        """Words recorded during this session."""
        return frozenset(self._personal_wordlist)

    def record_if_misspelled(self, token: str) -> bool:
        """Record ``token`` when the checker would change it.

        Returns:
            True when the token was added to the personal wordlist.
        """
        try:
            return self._record(token)
        except SpellCheckFailure as failure:
            cause = failure.__cause__ or failure
            logger.warning("%s", failure)
            SPELL_CHECK_FAILURES.labels(error_type=type(cause).__name__).inc()
            return False

    def _record(self, token: str) -> bool:
        if token in self._personal_wordlist or not token.isalpha():
            return False

        try:
            if get_proper_spelling(self.checker, token) == token:
                return False
            self.checker.add_to_personal_wordlist(token)
        except Exception as exc:
            raise SpellCheckFailure(f"Spell check failed for {token!r}: {exc}") from exc

        self._personal_wordlist.add(token)
        return True
