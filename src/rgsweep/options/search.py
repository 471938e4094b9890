"""Configuration options for searching."""

from __future__ import annotations

from dataclasses import dataclass, field

from rgsweep.constants import (
    DEFAULT_BASELINE_COMMAND,
    DEFAULT_CASE_SENSITIVE,
    DEFAULT_CONTEXT_LINES,
    DEFAULT_ENHANCED_COMMAND,
    DEFAULT_EXCLUDE_PATTERN,
    DEFAULT_INCLUDE_PATTERN,
    DEFAULT_MAX_HISTORY,
    DEFAULT_MAX_RESULTS,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_USE_REGEX,
    DEFAULT_WHOLE_WORD,
)
from rgsweep.options.base import CloneFrozenMixin


def split_patterns(value: str) -> list[str]:
    """Split a comma-separated glob list, dropping blank entries."""
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass(frozen=True)
class SearchOptions(CloneFrozenMixin):
    """What to search for and how, as edited in the search form."""

    query: str = field(default="", metadata={"help": "Text or pattern to search for", "importance": "core"})
    replace_text: str = field(
        default="", metadata={"help": "Replacement text used by replace", "importance": "core"}
    )
    include_pattern: str = field(
        default=DEFAULT_INCLUDE_PATTERN,
        metadata={"help": "Comma-separated globs of files to search", "importance": "core"},
    )
    exclude_pattern: str = field(
        default=DEFAULT_EXCLUDE_PATTERN,
        metadata={"help": "Comma-separated globs of files to skip", "importance": "core"},
    )
    case_sensitive: bool = field(
        default=DEFAULT_CASE_SENSITIVE,
        metadata={"help": "Match case exactly", "importance": "core"},
    )
    use_regex: bool = field(
        default=DEFAULT_USE_REGEX,
        metadata={"help": "Interpret the query as a regular expression", "importance": "core"},
    )
    whole_word: bool = field(
        default=DEFAULT_WHOLE_WORD,
        metadata={"help": "Only match whole words", "importance": "core"},
    )

    def include_globs(self) -> list[str]:
        """Return the trimmed, non-empty include globs."""
        return split_patterns(self.include_pattern)

    def exclude_globs(self) -> list[str]:
        """Return the trimmed, non-empty exclude globs."""
        return split_patterns(self.exclude_pattern)


@dataclass(frozen=True)
class SearchToolOptions(CloneFrozenMixin):
    """Settings for the external search executables."""

    enhanced_command: str = field(
        default=DEFAULT_ENHANCED_COMMAND,
        metadata={"help": "Executable used when available (ripgrep compatible)", "importance": "advanced"},
    )
    baseline_command: str = field(
        default=DEFAULT_BASELINE_COMMAND,
        metadata={"help": "Fallback executable (grep compatible)", "importance": "advanced"},
    )
    max_results: int = field(
        default=DEFAULT_MAX_RESULTS,
        metadata={"help": "Maximum number of matches per file", "type": int, "importance": "core"},
    )
    context_lines: int = field(
        default=DEFAULT_CONTEXT_LINES,
        metadata={
            "help": "Number of context lines before and after each match",
            "type": int,
            "importance": "core",
        },
    )
    progress_interval: float = field(
        default=DEFAULT_PROGRESS_INTERVAL,
        metadata={"help": "Seconds between progress updates", "type": float, "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate numeric ranges.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        if self.max_results <= 0:
            raise ValueError(f"max_results must be positive, got {self.max_results}")
        if self.context_lines < 0:
            raise ValueError(f"context_lines must be non-negative, got {self.context_lines}")
        if self.progress_interval <= 0:
            raise ValueError(f"progress_interval must be positive, got {self.progress_interval}")
        if not self.enhanced_command or not self.baseline_command:
            raise ValueError("Search commands must not be empty")


@dataclass(frozen=True)
class HistoryOptions(CloneFrozenMixin):
    """Settings for the query history."""

    max_history: int = field(
        default=DEFAULT_MAX_HISTORY,
        metadata={"help": "Number of past queries to remember", "type": int, "importance": "core"},
    )
    file: str | None = field(
        default=None,
        metadata={"help": "JSON file the CLI keeps history in", "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate numeric ranges."""
        if self.max_history <= 0:
            raise ValueError(f"max_history must be positive, got {self.max_history}")
