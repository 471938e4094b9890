"""Read-only preview of a bulk replacement.

The preview shows, for every line of every target file that contains the
query, the line before (``- ``) and after (``+ ``) replacing its first match.
Nothing is written to disk.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Iterable

from rgsweep.constants import PREVIEW_RULE
from rgsweep.options.search import SearchOptions
from rgsweep.search.matching import first_span, pattern_for

logger = logging.getLogger(__name__)

WarnFunc = Callable[[str], None]


def preview_header(options: SearchOptions) -> list[str]:
    """Return the lines opening a preview."""
    return [
        "Replacement Preview:",
        f"Search: {options.query}",
        f"Replace: {options.replace_text}",
        PREVIEW_RULE,
    ]


def preview_file_lines(filepath: str, content: str, options: SearchOptions, pattern=None) -> list[str]:
    """Return the preview section of one file.

    Parameters
    ----------
    filepath : str
        Path shown in the ``File:`` line.
    content : str
        Full text of the file.
    options : SearchOptions
        Query, replacement and match semantics.
    pattern : re.Pattern, optional
        Precompiled query; compiled from ``options`` when omitted.

    Returns
    -------
    list[str]
        ``File:`` line, blank line, one ``-``/``+``/blank triple per changed
        line, then a rule.

    """
    if pattern is None:
        pattern = pattern_for(options)
    lines = [f"File: {filepath}", ""]
    for line in content.splitlines():
        span = first_span(line, pattern)
        if span is None:
            continue
        start, end = span
        lines.append(f"- {line}")
        lines.append(f"+ {line[:start]}{options.replace_text}{line[end:]}")
        lines.append("")
    lines.append(PREVIEW_RULE)
    return lines


def build_preview(
    options: SearchOptions,
    files: Iterable[str],
    *,
    cwd: str | None = None,
    warn: WarnFunc | None = None,
) -> list[str]:
    """Build the complete preview for ``files``.

    Files that cannot be read are skipped; ``warn`` is told about each one.
    """
    pattern = pattern_for(options)
    lines = preview_header(options)
    for filepath in files:
        path = os.path.join(cwd, filepath) if cwd else filepath
        try:
            with open(path, encoding="utf-8", errors="replace") as handle:
                content = handle.read()
        except OSError as exc:
            logger.debug("Cannot read %s for preview", path, exc_info=exc)
            if warn is not None:
                warn(f"Could not read {filepath}: {exc.strerror or exc}")
            continue
        lines.extend(preview_file_lines(filepath, content, options, pattern))
    return lines


def line_style(line: str) -> str | None:
    """Return the display style of a preview line.

    ``"removed"`` and ``"added"`` for the changed lines, ``"header"`` for
    file and title lines, ``"rule"`` for separators, None otherwise.
    """
    if line == PREVIEW_RULE:
        return "rule"
    if line.startswith("- "):
        return "removed"
    if line.startswith("+ "):
        return "added"
    if line.startswith(("File: ", "Replacement Preview:", "Search: ", "Replace: ")):
        return "header"
    return None
