"""Python-side match semantics mirroring the external search options.

The search itself runs in the external tool. These helpers reproduce its
case/regex/whole-word semantics for the places that work on text the tool
has already found: highlighting result lines, deriving a column for the
baseline tool and building the replacement preview.
"""

from __future__ import annotations

import logging
import re

from rgsweep.options.search import SearchOptions

logger = logging.getLogger(__name__)


def word_bounded(source: str) -> str:
    """Require a non-word character or a line edge on both sides of ``source``.

    This is what ``rg -w`` and ``grep -w`` check, and unlike ``\\b`` it also
    holds for queries that start or end with punctuation.

    """
    return rf"(?<!\w)(?:{source})(?!\w)"


def compile_pattern(
    query: str,
    *,
    use_regex: bool,
    case_sensitive: bool,
    whole_word: bool = False,
) -> re.Pattern[str] | None:
    """Compile ``query`` the way the search tool interprets it.

    Returns None when the query is empty or is a regular expression Python
    cannot compile (the tool's regex dialect is not identical to ``re``).
    """
    if not query:
        return None
    source = query if use_regex else re.escape(query)
    if whole_word:
        source = word_bounded(source)
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(source, flags)
    except re.error as exc:
        logger.debug("Cannot compile %r for local matching: %s", query, exc)
        return None


def pattern_for(options: SearchOptions) -> re.Pattern[str] | None:
    """Compile the query of ``options``."""
    return compile_pattern(
        options.query,
        use_regex=options.use_regex,
        case_sensitive=options.case_sensitive,
        whole_word=options.whole_word,
    )


def first_span(text: str, pattern: re.Pattern[str] | None) -> tuple[int, int] | None:
    """Return the ``(start, end)`` offsets of the first non-empty match."""
    if pattern is None:
        return None
    for match in pattern.finditer(text):
        start, end = match.span()
        if start != end:
            return start, end
    return None


def make_column_finder(options: SearchOptions):
    """Return a callable giving the 1-based column of the first match in a line.

    Lines without a local match report column 1.
    """
    pattern = pattern_for(options)

    def find_column(text: str) -> int:
        span = first_span(text, pattern)
        return span[0] + 1 if span else 1

    return find_column
