"""Unit tests for the grouped result list and record conversion."""

import pytest

from rgsweep.options import SearchOptions
from rgsweep.results import Location, LocationList, process_search_results, to_location
from rgsweep.search.types import ContextLine, MatchRecord


@pytest.fixture
def matches() -> list[MatchRecord]:
    """Records of two files, in tool order."""
    context = [ContextLine(1, "foo one", True)]
    return [
        MatchRecord("a.txt", 1, 1, "foo one", context),
        MatchRecord("a.txt", 3, 5, "two foo"),
        MatchRecord("b.txt", 2, 1, "\tFoo"),
    ]


@pytest.mark.unit
class TestProcessSearchResults:
    """Loading records into the store."""

    def test_groups_in_first_seen_order(self, matches):
        """One group per file, in the order files were reported."""
        store = LocationList()
        assert process_search_results(store, matches, SearchOptions(query="foo")) == 2
        assert store.get_groups() == {"a.txt": 2, "b.txt": 1}

    def test_replaces_previous_results(self, matches):
        """Loading new results clears the old ones."""
        store = LocationList()
        process_search_results(store, matches)
        process_search_results(store, matches[2:])
        assert store.get_groups() == {"b.txt": 1}

    def test_empty_results_clear_store(self, matches):
        """No matches leaves an empty store."""
        store = LocationList()
        process_search_results(store, matches)
        assert process_search_results(store, []) == 0
        assert len(store) == 0
        assert store.render_rows() == []

    def test_locations_carry_match_data(self, matches):
        """Locations keep position, text and context."""
        store = LocationList()
        process_search_results(store, matches, SearchOptions(query="foo"))

        first = store.get_all_locations()[0]
        assert (first.filepath, first.line_num, first.col, first.text) == ("a.txt", 1, 1, "foo one")
        assert first.context == [ContextLine(1, "foo one", True)]
        assert first.highlight == (0, 3)


@pytest.mark.unit
class TestToLocation:
    """Converting a single record."""

    def test_tabs_expanded(self):
        """Tabs become four spaces and the highlight follows."""
        location = to_location(MatchRecord("b.txt", 2, 1, "\tFoo"), SearchOptions(query="foo"))
        assert location.text == "    Foo"
        assert location.highlight == (4, 7)

    def test_without_options_no_highlight(self):
        """Without options nothing is highlighted."""
        location = to_location(MatchRecord("a.txt", 1, 1, "foo"))
        assert location.highlight is None

    def test_segments(self):
        """The display line is split around the match."""
        location = Location("a.txt", 3, 5, "two foo!", highlight=(4, 7))
        assert location.segments() == [("3: ", "line_number"), ("two ", None), ("foo", "match"), ("!", None)]

    def test_segments_without_highlight(self):
        """Unhighlighted lines are one plain segment."""
        location = Location("a.txt", 3, 1, "text")
        assert location.segments() == [("3: ", "line_number"), ("text", None)]

    def test_to_dict(self):
        """Locations serialize to plain data."""
        location = Location("a.txt", 3, 5, "two foo", [ContextLine(3, "two foo", True)], (4, 7))
        assert location.to_dict() == {
            "filepath": "a.txt",
            "line_num": 3,
            "col": 5,
            "text": "two foo",
            "highlight": [4, 7],
            "context": [{"line_num": 3, "content": "two foo", "is_match": True}],
        }


@pytest.mark.unit
class TestLocationList:
    """Rows, collapsing and lookup."""

    def _store(self, matches):
        store = LocationList()
        process_search_results(store, matches, SearchOptions(query="foo"))
        return store

    def test_render_rows(self, matches):
        """Each group header is followed by its locations."""
        rows = self._store(matches).render_rows()
        assert [(row.kind, row.group) for row in rows] == [
            ("group", "a.txt"),
            ("item", "a.txt"),
            ("item", "a.txt"),
            ("group", "b.txt"),
            ("item", "b.txt"),
        ]
        assert rows[0].count == 2

    def test_location_at(self, matches):
        """Header rows have no location."""
        store = self._store(matches)
        assert store.get_location_at(0) is None
        assert store.get_location_at(2).line_num == 3
        assert store.get_location_at(99) is None
        assert store.get_location_at(-1) is None

    def test_toggle_group(self, matches):
        """Collapsing hides a group's locations until it is expanded again."""
        store = self._store(matches)

        assert store.toggle_group_at(1) is True
        assert store.is_collapsed("a.txt")
        rows = store.render_rows()
        assert [(row.kind, row.group) for row in rows] == [("group", "a.txt"), ("group", "b.txt"), ("item", "b.txt")]
        assert rows[0].collapsed
        assert len(store.get_all_locations()) == 3

        store.toggle_group_at(0)
        assert not store.is_collapsed("a.txt")
        assert len(store.render_rows()) == 5

    def test_toggle_out_of_range(self, matches):
        """Toggling a missing row does nothing."""
        assert self._store(matches).toggle_group_at(10) is False

    def test_set_items_rebuilds_groups_by_default(self):
        """Without options, groups are derived from the new items only."""
        store = LocationList()
        store.add_group("stale.txt")
        store.set_items([Location("a.txt", 1, 1, "x")])
        assert list(store.get_groups()) == ["a.txt"]

    def test_set_items_keeps_declared_groups(self):
        """With ``remove_groups`` false, declared groups keep their order."""
        store = LocationList()
        store.add_group("b.txt")
        store.add_group("a.txt")
        store.set_items([Location("a.txt", 1, 1, "x"), Location("b.txt", 1, 1, "y")], {"remove_groups": False})
        assert list(store.get_groups()) == ["b.txt", "a.txt"]
        assert [location.filepath for location in store.get_all_locations()] == ["b.txt", "a.txt"]
