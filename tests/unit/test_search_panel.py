"""Unit tests for the panel-level search and replace operations."""

import asyncio

import pytest
from utils import FakeRunner, RecordingMessages, RecordingPreview, ScriptedPrompt, TimerFactory

from rgsweep.interfaces import Choice
from rgsweep.options import SearchOptions
from rgsweep.panel import SearchPanel
from rgsweep.replace.engine import ReplaceEngine
from rgsweep.results import Location, LocationList
from rgsweep.search.controller import SearchController
from rgsweep.search.session import SearchSession
from rgsweep.search.types import MatchRecord


def make_panel(root, prompt=None, options=None):
    runner = FakeRunner()
    store = LocationList()
    messages = RecordingMessages()
    preview = RecordingPreview()
    prompt = prompt or ScriptedPrompt()
    controller = SearchController(
        runner=runner,
        result_store=store,
        messages=messages,
        which=lambda name: name,
        cwd=str(root),
        timer_factory=TimerFactory(),
    )
    engine = ReplaceEngine(prompt=prompt, messages=messages, preview_sink=preview, runner=runner, controller=controller)
    session = SearchSession(options=options or SearchOptions())
    panel = SearchPanel(session, controller, engine, store, messages, prompt, preview_sink=preview)
    return panel, runner, messages, preview


@pytest.mark.unit
class TestPanelSearch:
    """Searching from the panel."""

    def test_execute_search_and_wait(self, tmp_path):
        """Searching fills the store."""
        panel, runner, *_ = make_panel(tmp_path, options=SearchOptions(query="foo"))

        async def scenario():
            assert await panel.execute_search() is True
            runner.last.finish("a.txt:1:1:foo\n", 0)
            return await panel.wait()

        summary = asyncio.run(scenario())
        assert summary.match_count == 1
        assert len(panel.store) == 1

    def test_handle_input_search_starts_search(self, tmp_path):
        """Entering a new query searches for it."""
        panel, runner, *_ = make_panel(tmp_path, prompt=ScriptedPrompt(answers=["foo"]))

        assert asyncio.run(panel.handle_input("search")) is True
        assert panel.session.options.query == "foo"
        assert panel.input_mode == "search"
        assert runner.last.args[-1] == "foo"

    def test_handle_input_unchanged_value(self, tmp_path):
        """Keeping the current value does nothing."""
        panel, runner, *_ = make_panel(tmp_path, prompt=ScriptedPrompt(answers=["foo"]), options=SearchOptions(query="foo"))

        assert asyncio.run(panel.handle_input("search")) is False
        assert runner.processes == []

    def test_handle_input_other_fields(self, tmp_path):
        """Filters and replacement are stored without searching."""
        prompt = ScriptedPrompt(answers=["*.py", "bar"])
        panel, runner, *_ = make_panel(tmp_path, prompt=prompt)

        async def scenario():
            assert await panel.handle_input("include") is False
            assert await panel.handle_input("replace") is False

        asyncio.run(scenario())
        assert panel.session.options.include_pattern == "*.py"
        assert panel.session.options.replace_text == "bar"
        assert prompt.questions == ["Include pattern: ", "Replace: "]
        assert runner.processes == []

    def test_handle_input_dismissed(self, tmp_path):
        """A dismissed prompt changes nothing."""
        panel, *_ = make_panel(tmp_path, prompt=ScriptedPrompt(answers=[None]))
        assert asyncio.run(panel.handle_input("exclude")) is False
        assert panel.session.options.exclude_pattern == ""

    def test_handle_input_unknown_field(self, tmp_path):
        """Unknown fields are rejected."""
        panel, *_ = make_panel(tmp_path)
        with pytest.raises(ValueError):
            asyncio.run(panel.handle_input("color"))

    def test_toggle_and_cancel(self, tmp_path):
        """Toggles and cancel are delegated to the controller."""
        panel, *_ = make_panel(tmp_path, options=SearchOptions(query="foo"))

        async def scenario():
            await panel.execute_search()
            return panel.cancel_search()

        assert asyncio.run(scenario()) is True
        assert panel.cancel_search() is False
        assert panel.toggle_setting("case_sensitive") is True
        assert panel.session.options.case_sensitive is True


@pytest.mark.unit
class TestPanelHistory:
    """Browsing past queries."""

    def test_empty_history(self, tmp_path):
        """An empty history only warns."""
        panel, _, messages, _ = make_panel(tmp_path)
        assert asyncio.run(panel.browse_history()) is False
        assert messages.warnings == ["No search history"]

    def test_select_past_query(self, tmp_path):
        """Picking a past query searches for it again."""
        prompt = ScriptedPrompt(selection="older")
        panel, runner, *_ = make_panel(tmp_path, prompt=prompt)
        panel.session.history.add("older")
        panel.session.history.add("newer")

        assert asyncio.run(panel.browse_history()) is True
        assert prompt.selected_from == [["newer", "older"]]
        assert panel.session.options.query == "older"
        assert runner.last.args[-1] == "older"

    def test_selection_dismissed(self, tmp_path):
        """Dismissing the list does nothing."""
        panel, runner, *_ = make_panel(tmp_path)
        panel.session.history.add("older")
        assert asyncio.run(panel.browse_history()) is False
        assert runner.processes == []


@pytest.mark.unit
class TestPanelPreview:
    """File previews and result navigation."""

    def test_show_preview(self, sample_tree):
        """The file is shown with the cursor on the match."""
        panel, _, _, preview = make_panel(sample_tree, options=SearchOptions(query="a.b", use_regex=False))

        assert panel.show_preview(Location("a.txt", 3, 5, "foo two foo")) is True

        shown = preview.files[-1]
        assert shown.filepath == "a.txt"
        assert shown.lines == ["foo one", "nothing here", "foo two foo"]
        assert (shown.line_num, shown.column) == (3, 5)
        assert shown.highlight == r"a\.b"
        assert preview.closed == 1

    def test_regex_highlight_kept(self, sample_tree):
        """Regex queries are highlighted as written."""
        panel, _, _, preview = make_panel(sample_tree, options=SearchOptions(query="fo+"))
        panel.show_preview(Location("a.txt", 1, 1, "foo one"))
        assert preview.files[-1].highlight == "fo+"

    def test_missing_file(self, tmp_path):
        """A missing file is reported."""
        panel, _, messages, preview = make_panel(tmp_path)
        assert panel.show_preview(Location("nope.txt", 1, 1, "x")) is False
        assert messages.warnings == ["Could not open file: nope.txt"]
        assert preview.files == []

    def test_open_location_and_groups(self, sample_tree):
        """Rows map to locations; header rows toggle their group."""
        panel, _, _, preview = make_panel(sample_tree, options=SearchOptions(query="foo"))
        panel.process_search_results([MatchRecord("a.txt", 1, 1, "foo one"), MatchRecord("b.md", 2, 1, "Foo capital")])

        assert panel.open_location(0) is None
        assert panel.open_location(1).filepath == "a.txt"
        assert len(preview.files) == 1
        assert panel.toggle_group_at(0) is True
        assert panel.store.is_collapsed("a.txt")


@pytest.mark.unit
class TestPanelReplace:
    """Replacing from the panel."""

    def test_nothing_to_replace(self, tmp_path):
        """An empty result list is reported as a warning."""
        panel, _, messages, _ = make_panel(tmp_path, options=SearchOptions(query="foo", replace_text="bar"))
        assert asyncio.run(panel.execute_replace()) is None
        assert messages.warnings == ["No search results to replace"]

    def test_missing_replacement(self, tmp_path):
        """An empty replacement is reported as a warning."""
        panel, _, messages, _ = make_panel(tmp_path, options=SearchOptions(query="foo"))
        panel.process_search_results([MatchRecord("a.txt", 1, 1, "foo")])
        assert asyncio.run(panel.execute_replace()) is None
        assert messages.warnings == ["Search query and replacement text cannot be empty"]

    def test_cancelled_replace(self, sample_tree):
        """Declining returns an aborted report."""
        prompt = ScriptedPrompt(choices=[Choice.CANCEL])
        panel, runner, *_ = make_panel(sample_tree, prompt=prompt, options=SearchOptions(query="foo", replace_text="x"))
        panel.process_search_results([MatchRecord("a.txt", 1, 1, "foo one")])

        report = asyncio.run(panel.execute_replace())
        assert report.aborted
        assert runner.runs == []
