#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/rgsweep/interfaces.py
"""Collaborators the search and replace core talks to.

The core never renders anything itself. Results go to a :class:`ResultStore`,
notices to a :class:`MessageSink`, questions to a :class:`Prompt` and diff or
file views to a :class:`PreviewSink`. The command-line front end implements
them on top of rich (see :mod:`rgsweep.cli.console`); other hosts provide
their own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Protocol, Sequence

logger = logging.getLogger(__name__)


class Choice(Enum):
    """Answers to a confirmation prompt."""

    CONFIRM = "confirm"
    CANCEL = "cancel"
    PREVIEW = "preview"


@dataclass(frozen=True)
class FilePreview:
    """A file excerpt to show around a selected match.

    Parameters
    ----------
    filepath : str
        Path of the file.
    lines : list[str]
        Full file content split into lines.
    line_num : int
        1-based line of the match, where the cursor goes.
    column : int
        1-based column of the match.
    highlight : str or None
        Regular expression (Python syntax) matching the query, used to mark
        every occurrence in the view.
    case_sensitive : bool
        Whether ``highlight`` is matched case-sensitively.

    """

    filepath: str
    lines: list[str]
    line_num: int
    column: int
    highlight: str | None = None
    case_sensitive: bool = False


class ResultStore(Protocol):
    """Grouped location list receiving finished search results."""

    def clear(self) -> None:
        """Drop all groups and items."""
        ...

    def add_group(self, key: str) -> None:
        """Declare a group, shown in insertion order."""
        ...

    def set_items(self, items: Sequence[Any], opts: Mapping[str, Any] | None = None) -> None:
        """Replace the items; each item names its group."""
        ...

    def get_all_locations(self) -> list[Any]:
        """Return every item in display order."""
        ...

    def get_location_at(self, index: int) -> Any | None:
        """Return the item shown at row ``index``, or None for a header row."""
        ...

    def toggle_group_at(self, index: int) -> bool:
        """Collapse or expand the group whose header is at row ``index``."""
        ...


class MessageSink(Protocol):
    """One-line notices for the user."""

    def info(self, text: str) -> None:
        """Show an informational message."""
        ...

    def warn(self, text: str) -> None:
        """Show a warning."""
        ...


class Prompt(Protocol):
    """Interactive questions."""

    def choose(self, question: str, choices: Sequence[Choice], default: Choice) -> Choice:
        """Ask the user to pick one of ``choices``."""
        ...

    def ask(self, question: str, default: str = "") -> str | None:
        """Ask for free text; None when the user dismissed the prompt."""
        ...

    def select(self, title: str, options: Sequence[str]) -> str | None:
        """Let the user pick one entry of ``options``; None when dismissed."""
        ...


class PreviewSink(Protocol):
    """Transient read-only views."""

    def show_diff(self, lines: Sequence[str]) -> None:
        """Show replacement preview lines."""
        ...

    def show_file(self, preview: FilePreview) -> None:
        """Show a file excerpt around a match."""
        ...

    def close(self) -> None:
        """Close whatever view is open."""
        ...


class LoggingMessageSink:
    """MessageSink writing to the ``rgsweep`` logger.

    Used when an embedder supplies no sink of its own.
    """

    def __init__(self, log: logging.Logger | None = None):
        """Create a sink logging to ``log``."""
        self._log = log or logger

    def info(self, text: str) -> None:
        """Log at INFO."""
        self._log.info(text)

    def warn(self, text: str) -> None:
        """Log at WARNING."""
        self._log.warning(text)
