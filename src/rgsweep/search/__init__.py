"""Search subsystem: process supervision, output parsing and the search state machine."""

from __future__ import annotations

from rgsweep.search.arguments import ToolInvocation, build_baseline_args, build_enhanced_args, select_tool
from rgsweep.search.controller import SearchController
from rgsweep.search.history import HistoryStore
from rgsweep.search.parser import OutputParser, ParserState
from rgsweep.search.process import ProcessHandle, ProcessRunner
from rgsweep.search.session import SearchSession
from rgsweep.search.timer import IntervalTimer
from rgsweep.search.types import (
    BooleanSetting,
    ContextLine,
    MatchRecord,
    SearchState,
    SearchSummary,
    ToolDialect,
)

__all__ = [
    "BooleanSetting",
    "ContextLine",
    "HistoryStore",
    "IntervalTimer",
    "MatchRecord",
    "OutputParser",
    "ParserState",
    "ProcessHandle",
    "ProcessRunner",
    "SearchController",
    "SearchSession",
    "SearchState",
    "SearchSummary",
    "ToolDialect",
    "ToolInvocation",
    "build_baseline_args",
    "build_enhanced_args",
    "select_tool",
]
