#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/rgsweep/replace/substitution.py
"""In-place global substitution commands, one per host OS family.

Each platform gets the tool that is reliably present there:

- ``gnu`` (Linux and other POSIX): ``sed -i -E -e s/pat/rep/g[I]``
- ``bsd`` (macOS, where ``sed -i`` needs a suffix argument): ``perl -pi -e``
- ``windows``: PowerShell ``-replace`` / ``-creplace`` over the file text

When the query is not a regular expression, pattern metacharacters and the
special characters of the replacement are escaped, so the text is replaced
literally. The ``s///`` delimiter is always escaped.
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass

from rgsweep.constants import SubstitutionPlatform
from rgsweep.options.search import SearchOptions
from rgsweep.search.matching import word_bounded

logger = logging.getLogger(__name__)

_DELIMITER = "/"
_ERE_SPECIAL = set(r"\.[]{}()*+?^$|")


def detect_platform(platform: str | None = None) -> SubstitutionPlatform:
    """Map ``sys.platform`` (or ``platform``) onto a substitution family."""
    platform = platform or sys.platform
    if platform.startswith(("win", "cygwin", "msys")):
        return "windows"
    if platform == "darwin" or "bsd" in platform:
        return "bsd"
    return "gnu"


def escape_delimiter(text: str, delimiter: str = _DELIMITER) -> str:
    """Escape ``delimiter`` wherever it is not already escaped."""
    out: list[str] = []
    escaped = False
    for char in text:
        if escaped:
            out.append(char)
            escaped = False
        elif char == "\\":
            out.append(char)
            escaped = True
        elif char == delimiter:
            out.append("\\" + char)
        else:
            out.append(char)
    return "".join(out)


def _escape_chars(text: str, special) -> str:
    return "".join("\\" + char if char in special else char for char in text)


def _newlines(text: str) -> str:
    return text.replace("\n", "\\n")


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _sed_edge(char: str, literal: bool) -> str:
    # Beside a non-word character, \B holds only at a non-word neighbour or the line edge
    return r"\B" if literal and not _is_word_char(char) else r"\b"


def sed_word_pattern(query: str, pattern: str, use_regex: bool) -> str:
    """Wrap the escaped ``pattern`` so it only matches as a whole word."""
    if use_regex and "|" in query:
        return rf"\b({pattern})\b"
    head_literal = not use_regex or query[0] not in _ERE_SPECIAL
    tail_literal = not use_regex or (query[-1] not in _ERE_SPECIAL and not query[:-1].endswith("\\"))
    return f"{_sed_edge(query[0], head_literal)}{pattern}{_sed_edge(query[-1], tail_literal)}"


@dataclass(frozen=True)
class SubstitutionCommand:
    """Executable and arguments rewriting one file in place."""

    command: str
    args: tuple[str, ...]
    platform: SubstitutionPlatform

    def argv(self) -> list[str]:
        """Return the full command line."""
        return [self.command, *self.args]


def sed_expression(options: SearchOptions) -> str:
    """Build the GNU sed ``s`` command for ``options``."""
    if options.use_regex:
        pattern = escape_delimiter(options.query)
        replacement = escape_delimiter(options.replace_text)
    else:
        pattern = _escape_chars(options.query, _ERE_SPECIAL | {_DELIMITER})
        replacement = _escape_chars(options.replace_text, {"\\", "&", _DELIMITER})
    if options.whole_word:
        pattern = sed_word_pattern(options.query, pattern, options.use_regex)
    flags = "g" if options.case_sensitive else "gI"
    return f"s{_DELIMITER}{pattern}{_DELIMITER}{_newlines(replacement)}{_DELIMITER}{flags}"


def perl_expression(options: SearchOptions) -> str:
    """Build the perl ``s`` operator for ``options``."""
    if options.use_regex:
        pattern = escape_delimiter(escape_delimiter(options.query), "@")
        replacement = escape_delimiter(escape_delimiter(options.replace_text), "@")
    else:
        pattern = re.sub(r"(\W)", r"\\\1", options.query)
        replacement = _escape_chars(options.replace_text, {"\\", "$", "@", _DELIMITER})
    if options.whole_word:
        pattern = word_bounded(pattern)
    flags = "g" if options.case_sensitive else "gi"
    return f"s{_DELIMITER}{pattern}{_DELIMITER}{_newlines(replacement)}{_DELIMITER}{flags}"


def _powershell_quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def powershell_script(options: SearchOptions, path: str) -> str:
    """Build a PowerShell script rewriting ``path``."""
    pattern = options.query if options.use_regex else re.escape(options.query)
    replacement = options.replace_text if options.use_regex else options.replace_text.replace("$", "$$")
    if options.whole_word:
        pattern = word_bounded(pattern)
    operator = "-creplace" if options.case_sensitive else "-replace"
    target = _powershell_quote(path)
    return (
        f"$text = [IO.File]::ReadAllText({target}); "
        f"[IO.File]::WriteAllText({target}, ($text {operator} "
        f"{_powershell_quote(pattern)}, {_powershell_quote(replacement)}))"
    )


def build_substitution(
    options: SearchOptions,
    path: str,
    platform: SubstitutionPlatform | None = None,
) -> SubstitutionCommand:
    """Return the command replacing ``options.query`` in ``path``.

    Parameters
    ----------
    options : SearchOptions
        Query, replacement and match semantics.
    path : str
        File to rewrite.
    platform : {"gnu", "bsd", "windows"}, optional
        Command family; detected from the host when omitted.

    Returns
    -------
    SubstitutionCommand
        Command ready to run without a shell.

    Examples
    --------
    >>> options = SearchOptions(query="a.b", replace_text="c", use_regex=False)
    >>> build_substitution(options, "notes.txt", "gnu").argv()
    ['sed', '-i', '-E', '-e', 's/a\\\\.b/c/gI', '--', 'notes.txt']

    """
    platform = platform or detect_platform()
    if platform == "windows":
        script = powershell_script(options, path)
        return SubstitutionCommand(
            "powershell", ("-NoProfile", "-NonInteractive", "-Command", script), platform
        )
    if platform == "bsd":
        return SubstitutionCommand("perl", ("-pi", "-e", perl_expression(options), "--", path), platform)
    return SubstitutionCommand("sed", ("-i", "-E", "-e", sed_expression(options), "--", path), platform)
