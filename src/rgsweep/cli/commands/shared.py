#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Shared utilities for rgsweep CLI commands.

This module turns parsed arguments into configured option objects, loads
and saves the query history, and runs searches to completion on a fresh
event loop.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from contextlib import nullcontext
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, ContextManager

from rich.console import Console

from rgsweep.cli.config import CONFIG_ENV_VAR, RgsweepConfig, build_config, load_config_with_priority
from rgsweep.logging_utils import configure_logging
from rgsweep.options import SearchOptions, SearchToolOptions
from rgsweep.progress import ProgressCallback, ProgressEvent
from rgsweep.search.controller import SearchController
from rgsweep.search.history import HistoryStore
from rgsweep.search.session import SearchSession
from rgsweep.search.types import SearchSummary

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_FILENAME = ".rgsweep_history.json"

_FORM_FIELDS = ("include_pattern", "exclude_pattern", "case_sensitive", "whole_word", "use_regex")
_TOOL_FIELDS = ("context_lines", "max_results")


def get_version() -> str:
    """Return the installed rgsweep version."""
    try:
        return version("rgsweep")
    except PackageNotFoundError:
        from rgsweep import __version__

        return __version__


def setup_logging(parsed: argparse.Namespace) -> None:
    """Configure logging from the global flags."""
    configure_logging(
        "DEBUG" if parsed.trace else parsed.log_level,
        log_file=parsed.log_file,
        trace_mode=parsed.trace,
        use_rich=getattr(parsed, "rich", False),
    )


def load_cli_config(parsed: argparse.Namespace) -> RgsweepConfig:
    """Load the configuration that applies to this run.

    Raises
    ------
    ConfigError
        If a configuration file exists but cannot be used.

    """
    if parsed.no_config:
        return RgsweepConfig()
    raw = load_config_with_priority(
        explicit_path=parsed.config,
        env_var_path=os.environ.get(CONFIG_ENV_VAR),
        start_dir=Path(parsed.directory) if parsed.directory else None,
    )
    return build_config(raw)


def collect_overrides(parsed: argparse.Namespace, names: tuple[str, ...]) -> dict[str, Any]:
    """Return the flags among ``names`` that were given on the command line."""
    overrides: dict[str, Any] = {}
    for name in names:
        value = getattr(parsed, name, None)
        if value is not None:
            overrides[name] = value
    return overrides


def build_search_options(
    parsed: argparse.Namespace, config: RgsweepConfig
) -> tuple[SearchOptions, SearchToolOptions]:
    """Combine configured options with command-line flags.

    Raises
    ------
    ValueError
        If a flag value is out of range.

    """
    options = config.search.create_updated(
        query=parsed.query,
        replace_text=getattr(parsed, "replacement", "") or "",
        **collect_overrides(parsed, _FORM_FIELDS),
    )
    tool_options = config.tool.create_updated(**collect_overrides(parsed, _TOOL_FIELDS))
    return options, tool_options


def history_path(parsed: argparse.Namespace, config: RgsweepConfig) -> Path:
    """Return the history file for this run."""
    if getattr(parsed, "history_file", None):
        return Path(parsed.history_file)
    if config.history.file:
        return Path(config.history.file).expanduser()
    return Path.home() / DEFAULT_HISTORY_FILENAME


def load_history(parsed: argparse.Namespace, config: RgsweepConfig) -> HistoryStore:
    """Load the persisted history."""
    history = HistoryStore(config.history.max_history)
    history.load(history_path(parsed, config))
    return history


def save_history(history: HistoryStore, parsed: argparse.Namespace, config: RgsweepConfig) -> None:
    """Persist ``history``, logging instead of failing when it cannot be written."""
    path = history_path(parsed, config)
    try:
        history.save(path)
    except OSError as exc:
        logger.warning("Could not save history to %s: %s", path, exc)


def make_progress_callback(status: Any | None) -> ProgressCallback | None:
    """Return a callback updating a rich status spinner."""
    if status is None:
        return None

    def callback(event: ProgressEvent) -> None:
        if event.event_type in ("started", "item_done"):
            status.update(f"[cyan]{event.message}")

    return callback


def progress_status(enabled: bool, console: Console) -> ContextManager[Any]:
    """Return a rich status spinner when ``enabled``, otherwise a null context."""
    if enabled and console.is_terminal:
        return console.status("[cyan]Searching...")
    return nullcontext(None)


async def run_search(controller: SearchController, session: SearchSession) -> SearchSummary | None:
    """Start a search and wait for it; cancel it if the wait is interrupted.

    Returns None when no search process could be started.
    """
    if not await controller.start_search(session):
        return None
    try:
        return await controller.wait(session)
    except asyncio.CancelledError:
        controller.cancel(session)
        raise


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


def summary_to_dict(summary: SearchSummary) -> dict[str, Any]:
    """Return a JSON-serializable view of ``summary``."""
    data = {field: getattr(summary, field) for field in ("query", "match_count", "file_count", "exit_code", "complete")}
    data["tool"] = summary.tool.name.lower()
    return data
