#  Copyright (c) 2025 Tom Villani, Ph.D.

# src/rgsweep/cli/commands/replace.py
"""``rgsweep replace``: search, confirm, back up and rewrite the matched files."""

import argparse
import asyncio
import json
import sys

from rich.console import Console

from rgsweep.cli.builder import (
    EXIT_DEPENDENCY_ERROR,
    EXIT_FILE_ERROR,
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
)
from rgsweep.cli.console import ConsoleMessages, ConsolePreview, ConsolePrompt
from rgsweep.exceptions import ConfigError, ValidationError
from rgsweep.interfaces import Choice
from rgsweep.replace.engine import ReplaceEngine, ReplaceReport
from rgsweep.results import LocationList
from rgsweep.search.controller import SearchController
from rgsweep.search.session import SearchSession


def _create_replace_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rgsweep replace",
        description="Replace QUERY with REPLACEMENT in every file that matches.",
        parents=[create_common_parser(), create_search_form_parser()],
    )
    parser.add_argument("query", help="Text or pattern to replace")
    parser.add_argument("replacement", help="Replacement text")
    backup = parser.add_mutually_exclusive_group()
    backup.add_argument("--backup", dest="backup_files", action="store_true", default=None, help="Back up files first")
    backup.add_argument("--no-backup", dest="backup_files", action="store_false", help="Do not back up files")
    parser.add_argument("--backup-suffix", help="Suffix of backup copies (default: bak)")
    answer = parser.add_mutually_exclusive_group()
    answer.add_argument("-y", "--yes", action="store_true", help="Replace without asking")
    answer.add_argument("--preview", action="store_true", help="Only show what would change")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    return parser


def _report_to_dict(report: ReplaceReport) -> dict:
    return {
        "query": report.plan.query,
        "replacement": report.plan.replacement,
        "files": list(report.plan.files),
        "succeeded": report.succeeded,
        "failed": report.failed,
        "backups": report.backups,
        "previewed": report.previewed,
        "aborted": report.aborted,
        "preview": report.preview_lines,
    }


async def _search_and_replace(
    controller: SearchController,
    engine: ReplaceEngine,
    session: SearchSession,
    store: LocationList,
) -> ReplaceReport | None:
    if await run_search(controller, session) is None:
        return None
    report = await engine.execute_replace(session, store.get_all_locations())
    # Wait for the refresh search started after rewriting
    await controller.wait(session)
    return report


def handle_replace_command(args: list[str] | None = None) -> int:
    """Handle ``rgsweep replace``.

    Parameters
    ----------
    args : list[str], optional
        Arguments after the command name.

    Returns
    -------
    int
        Exit code.

    """
    parser = _create_replace_parser()
    parsed = parser.parse_args(args)
    setup_logging(parsed)

    try:
        config = load_cli_config(parsed)
        options, tool_options = build_search_options(parsed, config)
        replace_changes = {}
        if parsed.backup_files is not None:
            replace_changes["backup_files"] = parsed.backup_files
        if parsed.backup_suffix:
            replace_changes["backup_suffix"] = parsed.backup_suffix
        replace_options = config.replace.create_updated(**replace_changes)
    except ConfigError as exc:
        print_error(exc.message)
        return get_exit_code_for_exception(exc)
    except ValueError as exc:
        print_error(str(exc))
        return EXIT_VALIDATION_ERROR

    if not options.query or not options.replace_text:
        print_error("Search query and replacement text cannot be empty")
        return EXIT_VALIDATION_ERROR

    console = Console()
    messages = ConsoleMessages(quiet=parsed.json)
    store = LocationList()
    session = SearchSession(options=options, history=load_history(parsed, config))
    assume = Choice.CONFIRM if parsed.yes else Choice.PREVIEW if parsed.preview else None

    with progress_status(parsed.progress and not parsed.json, Console(stderr=True)) as status:
        progress_callback = make_progress_callback(status)
        controller = SearchController(
            result_store=store,
            messages=messages,
            progress_callback=progress_callback,
            tool_options=tool_options,
            cwd=parsed.directory,
        )
        engine = ReplaceEngine(
            prompt=ConsolePrompt(console, assume=assume),
            messages=messages,
            preview_sink=None if parsed.json else ConsolePreview(console),
            options=replace_options,
            controller=controller,
            progress_callback=progress_callback,
        )
        try:
            report = asyncio.run(_search_and_replace(controller, engine, session, store))
        except ValidationError as exc:
            save_history(session.history, parsed, config)
            print_error(exc.message)
            return get_exit_code_for_exception(exc)

    save_history(session.history, parsed, config)

    if report is None:
        return EXIT_DEPENDENCY_ERROR

    if parsed.json:
        json.dump(_report_to_dict(report), sys.stdout, indent=2)
        sys.stdout.write("\n")

    if report.failed:
        return EXIT_FILE_ERROR
    return EXIT_SUCCESS
