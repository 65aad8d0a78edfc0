"""Default list of words that are never indexed.

The list ships as ``data/blocked-words.txt`` next to this module. It is read
once per process, on first use, and handed out as an immutable tuple.
"""

from __future__ import annotations

from importlib import resources
import logging
from pathlib import Path
import threading


logger = logging.getLogger(__name__)

DEFAULT_WORDS_RESOURCE = "data/blocked-words.txt"

_load_lock = threading.Lock()
_cache: dict[str, tuple[str, ...] | None] = {"words": None}


def read_word_list(path: Path | str) -> tuple[str, ...]:
    """Read a word-per-line file, dropping line breaks and blank lines."""
    text = Path(path).read_text(encoding="utf-8")
    return _parse_words(text)


def _parse_words(text: str) -> tuple[str, ...]:
    return tuple(line.rstrip() for line in text.splitlines() if line.strip())


def default_unindexed_words() -> tuple[str, ...]:
    """Return the packaged default list of unindexed words.

    The resource is loaded lazily under a lock so concurrent first callers
    trigger a single read; later calls return the cached tuple.
    """
    words = _cache["words"]
    if words is not None:
        return words

    with _load_lock:
        if _cache["words"] is None:
            resource = resources.files(__package__).joinpath(DEFAULT_WORDS_RESOURCE)
            _cache["words"] = _parse_words(resource.read_text(encoding="utf-8"))
            logger.debug("Loaded %d default unindexed words", len(_cache["words"]))
        return _cache["words"]  # type: ignore[return-value]
