"""Shared data structures for the search subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, MutableMapping


class ToolDialect(Enum):
    """Output format produced by the search executable."""

    ENHANCED = auto()
    BASELINE = auto()


class SearchState(Enum):
    """Lifecycle of a search session."""

    IDLE = auto()
    SEARCHING = auto()
    COMPLETED = auto()
    CANCELLED = auto()


class BooleanSetting(Enum):
    """Search options that can be toggled by name."""

    CASE_SENSITIVE = "case_sensitive"
    USE_REGEX = "use_regex"
    WHOLE_WORD = "whole_word"

    @classmethod
    def from_name(cls, name: str) -> BooleanSetting | None:
        """Return the setting called ``name``, or None for unknown names."""
        try:
            return cls(name)
        except ValueError:
            return None


@dataclass(frozen=True)
class ContextLine:
    """One line shown around a match, possibly the match line itself."""

    line_num: int
    content: str
    is_match: bool = False


@dataclass
class MatchRecord:
    """A single match reported by the search tool.

    ``context`` is shared by all records of one group and is filled in when
    the group is closed.
    """

    filepath: str
    line_num: int
    column: int
    line_text: str
    context: list[ContextLine] = field(default_factory=list)

    def to_dict(self) -> MutableMapping[str, Any]:
        """Return a mutable copy suitable for JSON serialization."""
        return {
            "filepath": self.filepath,
            "line_num": self.line_num,
            "column": self.column,
            "line_text": self.line_text,
            "context": [
                {"line_num": line.line_num, "content": line.content, "is_match": line.is_match}
                for line in self.context
            ],
        }


@dataclass(frozen=True)
class SearchSummary:
    """Outcome of one finished search."""

    query: str
    match_count: int
    file_count: int
    exit_code: int | None
    tool: ToolDialect
    complete: bool = True
