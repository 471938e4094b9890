#  Copyright (c) 2025 Tom Villani, Ph.D.

# src/rgsweep/cli/commands/__init__.py
"""CLI command handlers for rgsweep.

Each subcommand lives in its own module and is imported only when it is
dispatched, so ``rgsweep --help`` does not load the search machinery.
"""

import logging
import sys

logger = logging.getLogger(__name__)

COMMANDS = {
    "search": "Search files and print the matches grouped by file",
    "replace": "Replace matches in every matching file, with backups",
    "history": "List or clear the remembered search queries",
}


def dispatch_command(args: list[str] | None = None) -> int | None:
    """Run the subcommand named by the first argument.

    Parameters
    ----------
    args : list[str], optional
        Command line arguments

    Returns
    -------
    int or None
        Exit code if a command was handled, None otherwise

    """
    if args is None:
        args = sys.argv[1:]

    if not args:
        return None

    if args[0] == "search":
        from rgsweep.cli.commands.search import handle_search_command

        return handle_search_command(args[1:])

    if args[0] == "replace":
        from rgsweep.cli.commands.replace import handle_replace_command

        return handle_replace_command(args[1:])

    if args[0] == "history":
        from rgsweep.cli.commands.history import handle_history_command

        return handle_history_command(args[1:])

    logger.debug("Unknown command: %s", args[0])
    return None
