#  Copyright (c) 2025 Tom Villani, Ph.D.

# src/rgsweep/cli/commands/search.py
"""``rgsweep search``: run one search and print the grouped results."""

import argparse
import asyncio
import json
import sys

from rich.console import Console

from rgsweep.cli.builder import (
    EXIT_DEPENDENCY_ERROR,
    EXIT_SEARCH_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    create_common_parser,
    create_search_form_parser,
    get_exit_code_for_exception,
)
from rgsweep.cli.commands.shared import (
    build_search_options,
    load_cli_config,
    load_history,
    make_progress_callback,
    print_error,
    progress_status,
    run_search,
    save_history,
    setup_logging,
    summary_to_dict,
)
from rgsweep.cli.console import ConsoleMessages, print_results
from rgsweep.exceptions import ConfigError
from rgsweep.results import LocationList
from rgsweep.search.controller import SearchController
from rgsweep.search.session import SearchSession


def _create_search_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rgsweep search",
        description="Search files below the working directory with ripgrep (or grep).",
        parents=[create_common_parser(), create_search_form_parser()],
    )
    parser.add_argument("query", help="Text or pattern to search for")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--rich", action="store_true", help="Enable rich-style output formatting")
    parser.add_argument("--show-context", action="store_true", help="Print context lines under each match")
    return parser


def handle_search_command(args: list[str] | None = None) -> int:
    """Handle ``rgsweep search``.

    Parameters
    ----------
    args : list[str], optional
        Arguments after the command name.

    Returns
    -------
    int
        Exit code.

    """
    parser = _create_search_parser()
    parsed = parser.parse_args(args)
    setup_logging(parsed)

    if not parsed.query:
        print_error("Search query cannot be empty")
        return EXIT_VALIDATION_ERROR

    try:
        config = load_cli_config(parsed)
        options, tool_options = build_search_options(parsed, config)
    except ConfigError as exc:
        print_error(exc.message)
        return get_exit_code_for_exception(exc)
    except ValueError as exc:
        print_error(str(exc))
        return EXIT_VALIDATION_ERROR

    console = Console()
    store = LocationList()
    session = SearchSession(options=options, history=load_history(parsed, config))

    with progress_status(parsed.progress and not parsed.json, Console(stderr=True)) as status:
        controller = SearchController(
            result_store=store,
            messages=ConsoleMessages(quiet=True),
            progress_callback=make_progress_callback(status),
            tool_options=tool_options,
            cwd=parsed.directory,
        )
        summary = asyncio.run(run_search(controller, session))

    save_history(session.history, parsed, config)

    if summary is None:
        # The warning naming the missing executable was already printed
        return EXIT_DEPENDENCY_ERROR

    if parsed.json:
        payload = {
            "summary": summary_to_dict(summary),
            "results": [location.to_dict() for location in store.get_all_locations()],
        }
        json.dump(payload, sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        print_results(store, console, use_rich=parsed.rich, show_context=parsed.show_context)
        message = f"Found {summary.match_count} matches in {summary.file_count} files"
        if parsed.rich:
            console.print(f"[dim]{message}[/dim]")
        else:
            print(message)

    return EXIT_SUCCESS if summary.complete else EXIT_SEARCH_ERROR
