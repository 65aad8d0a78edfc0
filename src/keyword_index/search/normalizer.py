"""Text normalization applied to every indexed field.

The output is lowercase, free of markup and stray punctuation, and uses
single spaces between words so it can be tokenized with a plain split.
"""

from __future__ import annotations

import html
import re


_TAG_PATTERN = re.compile(r"</?[^>]*>*")
_POSSESSIVE_PATTERN = re.compile(r"'s\b")
_LEADING_PUNCTUATION = re.compile(r"^\W+")
_TRAILING_PUNCTUATION = re.compile(r"\W+$")
_PUNCTUATION_BEFORE_WORD = re.compile(r"\s+\W+")
_PUNCTUATION_AFTER_WORD = re.compile(r"\W+\s+")
_DASH_RUN = re.compile(r"-+")
_WHITESPACE_RUN = re.compile(r"\s+")


def _reencode_entities(text: str) -> str:
    # html.unescape also decodes numeric references (&#39;) and legacy names without a semicolon (&amp)
    # &, <, > and double quotes are re-encoded; single quotes stay literal
    return html.escape(html.unescape(text), quote=False).replace('"', "&quot;")


def normalize_keywords(text: str | None) -> str:
    """Filter a string to prepare it for indexing.

    Steps run in a fixed order because later patterns rely on the structure
    left behind by earlier ones:

    1. lowercase
    2. replace markup tags with spaces
    3. decode entities and re-encode them in one canonical form
    4. drop possessive ``'s``
    5. strip punctuation at the start and end of the string
    6. strip punctuation at the start and end of words
    7. collapse dash runs
    8. collapse whitespace runs

    Args:
        text: Raw field text. ``None`` is treated as empty.

    Returns:
        The normalized string, suitable for splitting on single spaces.
    """
    if not text:
        return ""

    text = text.lower()
    text = _TAG_PATTERN.sub(" ", text)
    text = _reencode_entities(text)
    text = _POSSESSIVE_PATTERN.sub("", text)
    text = _LEADING_PUNCTUATION.sub("", text)
    text = _TRAILING_PUNCTUATION.sub("", text)
    text = _PUNCTUATION_BEFORE_WORD.sub(" ", text)
    text = _PUNCTUATION_AFTER_WORD.sub(" ", text)
    text = _DASH_RUN.sub("-", text)
    return _WHITESPACE_RUN.sub(" ", text)
