#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Configuration options for rgsweep.

Each component reads a frozen dataclass: ``SearchOptions`` is the form the
user edits, ``SearchToolOptions`` configures the external executables,
``HistoryOptions`` and ``ReplaceOptions`` configure history and replacing.
"""

from __future__ import annotations

from rgsweep.options.base import CloneFrozenMixin
from rgsweep.options.replace import ReplaceOptions
from rgsweep.options.search import HistoryOptions, SearchOptions, SearchToolOptions, split_patterns

__all__ = [
    "CloneFrozenMixin",
    "HistoryOptions",
    "ReplaceOptions",
    "SearchOptions",
    "SearchToolOptions",
    "split_patterns",
]
