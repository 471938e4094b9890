"""Bounded, most-recent-first history of executed queries."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

from rgsweep.constants import DEFAULT_MAX_HISTORY

logger = logging.getLogger(__name__)


class HistoryStore:
    """Ordered set of past queries, newest first, capped at ``max_history``.

    Examples
    --------
    >>> history = HistoryStore(max_history=2)
    >>> for query in ("a", "b", "a", "c"):
    ...     history.add(query)
    >>> history.items
    ('c', 'a')

    """

    def __init__(self, max_history: int = DEFAULT_MAX_HISTORY):
        """Create an empty store."""
        if max_history <= 0:
            raise ValueError(f"max_history must be positive, got {max_history}")
        self.max_history = max_history
        self._items: list[str] = []

    def add(self, query: str) -> None:
        """Move ``query`` to the front, dropping the oldest entries over the cap."""
        if not query:
            return
        if query in self._items:
            self._items.remove(query)
        self._items.insert(0, query)
        while len(self._items) > self.max_history:
            self._items.pop()

    @property
    def items(self) -> tuple[str, ...]:
        """Queries, most recent first."""
        return tuple(self._items)

    def clear(self) -> None:
        """Forget all queries."""
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._items))

    def __contains__(self, query: object) -> bool:
        return query in self._items

    def load(self, path: str | Path) -> None:
        """Replace the contents with the JSON list stored at ``path``.

        A missing file leaves the store empty. An unreadable or malformed
        file is logged and also leaves the store empty.
        """
        self._items.clear()
        path = Path(path)
        if not path.exists():
            return
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable history file %s: %s", path, exc)
            return
        if not isinstance(data, list):
            logger.warning("Ignoring history file %s: expected a JSON list", path)
            return
        # Stored newest first; add oldest first to rebuild the same order
        for query in reversed(data):
            if isinstance(query, str):
                self.add(query)

    def save(self, path: str | Path) -> None:
        """Write the queries to ``path`` as a JSON list.

        Raises
        ------
        OSError
            If the file cannot be written.

        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(list(self._items), indent=2), encoding="utf-8")
        logger.debug("Saved %d history entries to %s", len(self._items), path)
