#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/rgsweep/progress.py
"""Progress callback system for searches and replacements.

Embedders can pass a callback to the search controller or replace engine to
follow a long-running operation without polling the session.

Examples
--------
    >>> from rgsweep.progress import ProgressEvent
    >>>
    >>> def on_progress(event: ProgressEvent) -> None:
    ...     print(f"{event.event_type}: {event.message} ({event.current})")
    >>>
    >>> controller = SearchController(runner, store, messages, progress_callback=on_progress)

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

logger = logging.getLogger(__name__)

EventType = Literal["started", "item_done", "finished", "cancelled", "error"]


@dataclass
class ProgressEvent:
    """Progress event for search and replace operations.

    Parameters
    ----------
    event_type : EventType
        Type of progress event:

        - "started": a search process was spawned or a replace began.
          ``total`` is the number of files for a replace, 0 for a search.
        - "item_done": periodic search update (``metadata["item_type"] ==
          "search_tick"``) or one replaced file (``"file"``).
        - "finished": the operation completed. ``current`` is the number of
          matches (search) or of successfully rewritten files (replace).
        - "cancelled": the search was cancelled by the user.
        - "error": something failed. Details are in ``metadata["error"]``.
          The operation may still continue, e.g. with the next file.

    message : str
        Human-readable description of the event
    current : int, default 0
        Current progress position
    total : int, default 0
        Total items to process, 0 if unknown
    metadata : dict, default empty
        Additional event-specific information

    """

    event_type: EventType
    message: str
    current: int = 0
    total: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Return human-readable string representation."""
        progress = f"({self.current}/{self.total})" if self.total > 0 else ""
        return f"[{self.event_type.upper()}] {self.message} {progress}".strip()


ProgressCallback = Callable[[ProgressEvent], None]
"""Callable receiving a ProgressEvent. Callbacks should not raise."""


def emit_progress(callback: ProgressCallback | None, event: ProgressEvent) -> None:
    """Deliver ``event`` to ``callback`` if one is set.

    A failing callback is logged and otherwise ignored so that it cannot
    interrupt process supervision.
    """
    if callback is None:
        return
    try:
        callback(event)
    except Exception:
        logger.exception("Progress callback failed for %s", event)
