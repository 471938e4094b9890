#  Copyright (c) 2025 Tom Villani, Ph.D.

# src/rgsweep/cli/commands/history.py
"""``rgsweep history``: list or clear the remembered queries."""

import argparse
import json
import sys

from rich.console import Console
from rich.text import Text

from rgsweep.cli.builder import EXIT_SUCCESS, create_common_parser, get_exit_code_for_exception
from rgsweep.cli.commands.shared import load_cli_config, load_history, print_error, save_history, setup_logging
from rgsweep.exceptions import ConfigError


def _create_history_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rgsweep history",
        description="Show the most recent search queries, newest first.",
        parents=[create_common_parser()],
    )
    parser.add_argument("--clear", action="store_true", help="Forget all remembered queries")
    parser.add_argument("--json", action="store_true", help="Print the history as a JSON list")
    return parser


def handle_history_command(args: list[str] | None = None) -> int:
    """Handle ``rgsweep history``.

    Parameters
    ----------
    args : list[str], optional
        Arguments after the command name.

    Returns
    -------
    int
        Exit code.

    """
    parser = _create_history_parser()
    parsed = parser.parse_args(args)
    setup_logging(parsed)

    try:
        config = load_cli_config(parsed)
    except ConfigError as exc:
        print_error(exc.message)
        return get_exit_code_for_exception(exc)

    history = load_history(parsed, config)

    if parsed.clear:
        history.clear()
        save_history(history, parsed, config)
        if not parsed.json:
            print("Search history cleared")
            return EXIT_SUCCESS

    if parsed.json:
        json.dump(list(history.items), sys.stdout, indent=2)
        sys.stdout.write("\n")
        return EXIT_SUCCESS

    if not len(history):
        print("No search history")
        return EXIT_SUCCESS

    console = Console()
    for number, query in enumerate(history, start=1):
        console.print(Text(f"{number:>3}", style="cyan").append(f"  {query}"), highlight=False)
    return EXIT_SUCCESS
