"""Command lines for the enhanced and baseline search tools."""

from __future__ import annotations

import glob
import logging
import os
import shutil
from dataclasses import dataclass
from typing import Callable

from rgsweep.constants import BASELINE_MATCH_ALL
from rgsweep.options.search import SearchOptions, SearchToolOptions
from rgsweep.search.types import ToolDialect

logger = logging.getLogger(__name__)

WhichFunc = Callable[[str], "str | None"]

_GLOB_CHARS = frozenset("*?[")


@dataclass(frozen=True)
class ToolInvocation:
    """Executable, argument vector and output dialect of one search."""

    command: str
    args: tuple[str, ...]
    dialect: ToolDialect


def _query_operands(query: str) -> list[str]:
    # A query that looks like a flag must come after the end-of-options marker
    if query.startswith("-"):
        return ["--", query]
    return [query]


def build_enhanced_args(options: SearchOptions, tool_options: SearchToolOptions) -> list[str]:
    """Build ripgrep arguments for ``options``.

    Parameters
    ----------
    options : SearchOptions
        Query and filters from the search form.
    tool_options : SearchToolOptions
        Match cap and context window.

    Returns
    -------
    list[str]
        Arguments, query last.

    Examples
    --------
    >>> args = build_enhanced_args(SearchOptions(query="foo", include_pattern="*.py"), SearchToolOptions())
    >>> args[-4:]
    ['*.py', '--context', '3', 'foo']

    """
    args = [
        "--line-number",
        "--column",
        "--no-heading",
        "--color",
        "never",
        "--max-count",
        str(tool_options.max_results),
    ]
    if not options.case_sensitive:
        args.append("--ignore-case")
    if options.whole_word:
        args.append("--word-regexp")
    if not options.use_regex:
        args.append("--fixed-strings")
    for pattern in options.include_globs():
        args.extend(["--glob", pattern])
    for pattern in options.exclude_globs():
        args.extend(["--glob", f"!{pattern}"])
    args.extend(["--context", str(tool_options.context_lines)])
    args.extend(_query_operands(options.query))
    return args


def build_baseline_args(options: SearchOptions) -> list[str]:
    """Build grep arguments for ``options``.

    Only the first include pattern is honoured; exclusions and context are
    not supported by the baseline tool.
    """
    args = ["-n", "-H", "--color=never"]
    if not options.case_sensitive:
        args.append("-i")
    if options.whole_word:
        args.append("-w")
    if not options.use_regex:
        args.append("-F")
    args.extend(_query_operands(options.query))
    includes = options.include_globs()
    args.append(includes[0] if includes else BASELINE_MATCH_ALL)
    return args


def expand_operand(operand: str, cwd: str) -> list[str]:
    """Expand a glob operand against ``cwd`` the way a shell would.

    Only regular files are returned, sorted. An operand without glob
    characters, or one that matches nothing, is returned unchanged.
    """
    if not _GLOB_CHARS.intersection(operand):
        return [operand]
    matches = sorted(
        path for path in glob.glob(operand, root_dir=cwd) if os.path.isfile(os.path.join(cwd, path))
    )
    if not matches:
        logger.debug("Glob %r matched no files in %s", operand, cwd)
        return [operand]
    return matches


def select_tool(tool_options: SearchToolOptions, which: WhichFunc = shutil.which) -> tuple[str, ToolDialect]:
    """Return the executable to use and its output dialect.

    Availability is checked on every call so that installing or removing the
    enhanced tool takes effect on the next search.
    """
    if which(tool_options.enhanced_command):
        return tool_options.enhanced_command, ToolDialect.ENHANCED
    logger.info(
        "%s not found on PATH, falling back to %s", tool_options.enhanced_command, tool_options.baseline_command
    )
    return tool_options.baseline_command, ToolDialect.BASELINE


def build_invocation(
    options: SearchOptions,
    tool_options: SearchToolOptions,
    *,
    cwd: str,
    which: WhichFunc = shutil.which,
) -> ToolInvocation:
    """Select the tool and build the full invocation for one search."""
    command, dialect = select_tool(tool_options, which)
    if dialect is ToolDialect.ENHANCED:
        return ToolInvocation(command, tuple(build_enhanced_args(options, tool_options)), dialect)

    args = build_baseline_args(options)
    args[-1:] = expand_operand(args[-1], cwd)
    return ToolInvocation(command, tuple(args), dialect)
