#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Argument groups shared by rgsweep commands, and exit codes.

Every command parser inherits the global options (configuration, logging,
working directory) and, for search and replace, the search form options.
Flags default to None so that only explicitly given flags override the
configuration file.
"""

from __future__ import annotations

import argparse

from rgsweep.exceptions import ConfigError, ProcessError, ReplaceError, SpawnError, ValidationError

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_DEPENDENCY_ERROR = 2
EXIT_VALIDATION_ERROR = 3
EXIT_FILE_ERROR = 4
EXIT_SEARCH_ERROR = 5


def get_exit_code_for_exception(exception: Exception) -> int:
    """Map an exception to an appropriate CLI exit code.

    Parameters
    ----------
    exception : Exception
        The exception to map

    Returns
    -------
    int
        Exit code

    """
    if isinstance(exception, SpawnError):
        return EXIT_DEPENDENCY_ERROR

    if isinstance(exception, (ValidationError, ConfigError)):
        return EXIT_VALIDATION_ERROR

    if isinstance(exception, (ReplaceError, OSError)):
        return EXIT_FILE_ERROR

    if isinstance(exception, ProcessError):
        return EXIT_SEARCH_ERROR

    return EXIT_ERROR


def create_common_parser() -> argparse.ArgumentParser:
    """Return a parent parser with the global options."""
    parser = argparse.ArgumentParser(add_help=False)
    group = parser.add_argument_group("global options")
    group.add_argument("--config", help="Configuration file (default: discovered, or $RGSWEEP_CONFIG)")
    group.add_argument("--no-config", action="store_true", help="Ignore configuration files")
    group.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    group.add_argument("--log-file", help="Also write log messages to this file")
    group.add_argument("--trace", action="store_true", help="Verbose logging with timestamps and logger names")
    group.add_argument("-d", "--directory", help="Directory to search in (default: current directory)")
    group.add_argument("--history-file", help="JSON file keeping the query history")
    return parser


def create_search_form_parser() -> argparse.ArgumentParser:
    """Return a parent parser with the search form options."""
    parser = argparse.ArgumentParser(add_help=False)
    group = parser.add_argument_group("search options")
    group.add_argument("--include", dest="include_pattern", help="Comma-separated globs of files to search")
    group.add_argument("--exclude", dest="exclude_pattern", help="Comma-separated globs of files to skip")
    group.add_argument(
        "-s",
        "--case-sensitive",
        dest="case_sensitive",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Match case exactly",
    )
    group.add_argument(
        "-w",
        "--word",
        dest="whole_word",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Only match whole words",
    )
    group.add_argument(
        "--regex",
        dest="use_regex",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Interpret the query as a regular expression",
    )
    group.add_argument("--context", dest="context_lines", type=int, help="Context lines around each match")
    group.add_argument("--max-results", dest="max_results", type=int, help="Maximum matches per file")
    group.add_argument("--progress", action="store_true", help="Show a spinner while searching")
    return parser
