"""Command-line interface for rgsweep.

Searches a directory tree with ripgrep (falling back to grep), prints the
matches grouped by file, and replaces matches in place with optional
backups.

Environment Variable Support
----------------------------
``RGSWEEP_CONFIG`` names a configuration file used when ``--config`` is not
given. Command-line flags always override configured values.

Examples
--------
Search Python files for a word::

    $ rgsweep search -w --include '*.py' parse_args

Preview a replacement without changing anything::

    $ rgsweep replace --preview old_name new_name

Replace without asking, keeping ``.orig`` backups::

    $ rgsweep replace -y --backup-suffix orig old_name new_name

"""

from __future__ import annotations

import sys

from rgsweep.cli.builder import EXIT_SUCCESS, EXIT_VALIDATION_ERROR
from rgsweep.cli.commands import COMMANDS, dispatch_command

USAGE = "usage: rgsweep [-h] [--version] {search,replace,history} ..."


def _print_usage(file=None) -> None:
    out = file or sys.stdout
    print(USAGE, file=out)
    print("", file=out)
    print("commands:", file=out)
    for name, description in COMMANDS.items():
        print(f"  {name:<10}{description}", file=out)
    print("", file=out)
    print("Run 'rgsweep <command> --help' for the options of a command.", file=out)


def main(args: list[str] | None = None) -> int:
    """Execute the rgsweep command line."""
    if args is None:
        args = sys.argv[1:]

    if not args or args[0] in ("-h", "--help"):
        _print_usage()
        return EXIT_SUCCESS if args else EXIT_VALIDATION_ERROR

    if args[0] in ("-V", "--version"):
        from rgsweep.cli.commands.shared import get_version

        print(f"rgsweep {get_version()}")
        return EXIT_SUCCESS

    try:
        result = dispatch_command(args)
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130

    if result is not None:
        return result

    print(f"Error: unknown command '{args[0]}'", file=sys.stderr)
    _print_usage(sys.stderr)
    return EXIT_VALIDATION_ERROR
