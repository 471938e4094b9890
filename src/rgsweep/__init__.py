"""rgsweep - project-wide search and replace driven by ripgrep.

rgsweep runs ripgrep (or grep when ripgrep is not installed) as a child
process, parses its output incrementally while the search is running, and
presents the matches grouped by file. Matches can then be replaced in every
file at once, with optional backup copies and a read-only preview.

Key Features
------------
- Asynchronous search with a single search in flight per session
- Tolerant incremental parsing of both ripgrep and grep output
- Bounded, deduplicated query history persisted as JSON
- Bulk replace through sed, perl or PowerShell with ``<file>.<suffix>`` backups
- Side-effect free preview of the replacement

Examples
--------
Run a search and wait for the summary:

    >>> import asyncio
    >>> from rgsweep import LocationList, SearchController, SearchOptions, SearchSession
    >>> store = LocationList()
    >>> controller = SearchController(result_store=store)
    >>> session = SearchSession(options=SearchOptions(query="TODO"))
    >>> async def search():
    ...     if await controller.start_search(session):
    ...         return await controller.wait(session)
    >>> summary = asyncio.run(search())  # doctest: +SKIP

"""

from __future__ import annotations

from rgsweep.exceptions import (
    BackupFailure,
    ConfigError,
    ProcessError,
    ReplaceError,
    RgsweepError,
    SpawnError,
    StreamError,
    SubstitutionFailure,
    ValidationError,
)
from rgsweep.interfaces import Choice, FilePreview, LoggingMessageSink
from rgsweep.options import HistoryOptions, ReplaceOptions, SearchOptions, SearchToolOptions
from rgsweep.panel import SearchPanel
from rgsweep.replace import ReplaceEngine, ReplacePlan, ReplaceReport
from rgsweep.results import Location, LocationList, process_search_results
from rgsweep.search import (
    BooleanSetting,
    HistoryStore,
    MatchRecord,
    OutputParser,
    ProcessRunner,
    SearchController,
    SearchSession,
    SearchState,
    SearchSummary,
)

__version__ = "1.0.0"

__all__ = [
    "BackupFailure",
    "BooleanSetting",
    "Choice",
    "ConfigError",
    "FilePreview",
    "HistoryOptions",
    "HistoryStore",
    "Location",
    "LocationList",
    "LoggingMessageSink",
    "MatchRecord",
    "OutputParser",
    "ProcessError",
    "ProcessRunner",
    "ReplaceEngine",
    "ReplaceError",
    "ReplaceOptions",
    "ReplacePlan",
    "ReplaceReport",
    "RgsweepError",
    "SearchController",
    "SearchOptions",
    "SearchPanel",
    "SearchSession",
    "SearchState",
    "SearchSummary",
    "SearchToolOptions",
    "SpawnError",
    "StreamError",
    "SubstitutionFailure",
    "ValidationError",
    "process_search_results",
    "__version__",
]
