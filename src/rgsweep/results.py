"""Grouped location list and conversion of match records into display items."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Sequence

from rgsweep.constants import TAB_REPLACEMENT
from rgsweep.options.search import SearchOptions
from rgsweep.search.matching import first_span, pattern_for
from rgsweep.search.types import ContextLine, MatchRecord

logger = logging.getLogger(__name__)


@dataclass
class Location:
    """One match as shown in the result list.

    ``highlight`` holds the ``(start, end)`` offsets of the matched text in
    ``text``, or None when the match could not be located locally.
    """

    filepath: str
    line_num: int
    col: int
    text: str
    context: list[ContextLine] = field(default_factory=list)
    highlight: tuple[int, int] | None = None

    @property
    def group(self) -> str:
        """Key of the group this location is listed under."""
        return self.filepath

    def segments(self) -> list[tuple[str, str | None]]:
        """Split the display line into ``(text, style)`` pieces.

        Styles are ``"line_number"`` and ``"match"``; plain text has None.
        """
        pieces: list[tuple[str, str | None]] = [(f"{self.line_num}: ", "line_number")]
        if self.highlight is None:
            pieces.append((self.text, None))
            return pieces
        start, end = self.highlight
        for text, style in ((self.text[:start], None), (self.text[start:end], "match"), (self.text[end:], None)):
            if text:
                pieces.append((text, style))
        return pieces

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable mapping."""
        return {
            "filepath": self.filepath,
            "line_num": self.line_num,
            "col": self.col,
            "text": self.text,
            "highlight": list(self.highlight) if self.highlight else None,
            "context": [
                {"line_num": line.line_num, "content": line.content, "is_match": line.is_match}
                for line in self.context
            ],
        }


@dataclass(frozen=True)
class Row:
    """One rendered row: a group header or a location."""

    kind: Literal["group", "item"]
    group: str
    location: Location | None = None
    count: int = 0
    collapsed: bool = False


class LocationList:
    """In-memory result store with collapsible groups.

    Groups are listed in the order they were added; locations keep the order
    they were set in.
    """

    def __init__(self) -> None:
        """Create an empty list."""
        self._groups: dict[str, bool] = {}
        self._items: list[Location] = []

    def clear(self) -> None:
        """Remove every group and location."""
        self._groups.clear()
        self._items.clear()

    def add_group(self, key: str) -> None:
        """Declare a group, expanded."""
        self._groups.setdefault(key, False)

    def set_items(self, items: Sequence[Location], opts: Mapping[str, Any] | None = None) -> None:
        """Replace all locations.

        With ``opts["remove_groups"]`` true (the default) the groups are
        rebuilt from the items; otherwise declared groups are kept and groups
        of new items are appended.
        """
        opts = opts or {}
        if opts.get("remove_groups", True):
            self._groups.clear()
        self._items = list(items)
        for item in self._items:
            self._groups.setdefault(item.group, False)

    def get_groups(self) -> dict[str, int]:
        """Return the number of locations per group, in group order."""
        counts = dict.fromkeys(self._groups, 0)
        for item in self._items:
            counts[item.group] = counts.get(item.group, 0) + 1
        return counts

    def get_all_locations(self) -> list[Location]:
        """Return all locations, grouped, ignoring collapsed state."""
        order = {key: position for position, key in enumerate(self._groups)}
        return sorted(self._items, key=lambda item: order.get(item.group, len(order)))

    def render_rows(self) -> list[Row]:
        """Return the flat view: each group header followed by its visible locations."""
        rows: list[Row] = []
        by_group: dict[str, list[Location]] = {key: [] for key in self._groups}
        for item in self._items:
            by_group.setdefault(item.group, []).append(item)
        for key, locations in by_group.items():
            collapsed = self._groups.get(key, False)
            rows.append(Row("group", key, count=len(locations), collapsed=collapsed))
            if not collapsed:
                rows.extend(Row("item", key, location=location) for location in locations)
        return rows

    def get_location_at(self, index: int) -> Location | None:
        """Return the location at row ``index``; None for headers and out of range."""
        rows = self.render_rows()
        if not 0 <= index < len(rows):
            return None
        return rows[index].location

    def toggle_group_at(self, index: int) -> bool:
        """Collapse or expand the group owning row ``index``."""
        rows = self.render_rows()
        if not 0 <= index < len(rows):
            return False
        key = rows[index].group
        self._groups[key] = not self._groups.get(key, False)
        return True

    def is_collapsed(self, key: str) -> bool:
        """Whether group ``key`` is collapsed."""
        return self._groups.get(key, False)

    def __len__(self) -> int:
        return len(self._items)


def to_location(match: MatchRecord, options: SearchOptions | None = None, pattern=None) -> Location:
    """Convert a match record into a display location."""
    text = match.line_text.replace("\t", TAB_REPLACEMENT)
    if pattern is None and options is not None:
        pattern = pattern_for(options)
    return Location(
        filepath=match.filepath,
        line_num=match.line_num,
        col=match.column,
        text=text,
        context=list(match.context),
        highlight=first_span(text, pattern),
    )


def process_search_results(store, matches: Sequence[MatchRecord], options: SearchOptions | None = None) -> int:
    """Load ``matches`` into ``store``, one group per file.

    Parameters
    ----------
    store : ResultStore
        Destination; cleared first.
    matches : Sequence[MatchRecord]
        Records in tool emission order.
    options : SearchOptions, optional
        Options of the search, used to highlight the matched text.

    Returns
    -------
    int
        Number of groups created.

    """
    store.clear()
    if not matches:
        return 0

    pattern = pattern_for(options) if options is not None and options.query else None
    groups: set[str] = set()
    for match in matches:
        if match.filepath not in groups:
            groups.add(match.filepath)
            store.add_group(match.filepath)

    items = [to_location(match, pattern=pattern) for match in matches]
    store.set_items(items, {"remove_groups": False})
    logger.debug("Loaded %d locations in %d groups", len(items), len(groups))
    return len(groups)
