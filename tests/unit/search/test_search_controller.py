"""Unit tests for the search state machine, driven through a fake runner."""

import asyncio

import pytest
from utils import FakeRunner, RecordingMessages, TimerFactory

from rgsweep.options import SearchOptions, SearchToolOptions
from rgsweep.results import LocationList
from rgsweep.search.controller import SearchController
from rgsweep.search.session import SearchSession
from rgsweep.search.types import SearchState, ToolDialect


def make_controller(tmp_path, runner=None, which=lambda name: f"/usr/bin/{name}", **kwargs):
    """Return ``(controller, runner, timers, store, messages, events)``."""
    runner = runner or FakeRunner()
    timers = TimerFactory()
    store = LocationList()
    messages = RecordingMessages()
    events = []
    controller = SearchController(
        runner=runner,
        result_store=store,
        messages=messages,
        progress_callback=events.append,
        which=which,
        cwd=str(tmp_path),
        timer_factory=timers,
        **kwargs,
    )
    return controller, runner, timers, store, messages, events


@pytest.mark.unit
class TestSearchLifecycle:
    """Spawning, streaming and completion."""

    def test_completed_search(self, tmp_path):
        """A finished search publishes results, reports a summary and goes idle."""
        controller, runner, timers, store, messages, events = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            assert await controller.start_search(session) is True
            assert session.state is SearchState.SEARCHING
            assert session.process is runner.last.handle
            runner.last.finish("a.txt:1:1:foo\na.txt:3:2:xfoo\n--\nb.txt:9:1:foo\n", 0)
            return await controller.wait(session)

        summary = asyncio.run(scenario())

        assert summary.match_count == 3
        assert summary.file_count == 2
        assert summary.complete
        assert summary.tool is ToolDialect.ENHANCED
        assert session.state is SearchState.IDLE
        assert session.process is None
        assert session.timer is None
        assert len(session.results) == 3
        assert store.get_groups() == {"a.txt": 2, "b.txt": 1}
        assert "Found 3 matches in 2 files" in messages.infos
        assert messages.warnings == []
        assert timers.timers[0].close_calls == 1
        assert runner.last.handle.closed
        assert "foo" in session.history
        assert [event.event_type for event in events] == ["started", "finished"]

    def test_spawns_in_search_directory(self, tmp_path):
        """The tool runs in the controller directory with the built arguments."""
        controller, runner, *_ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo", include_pattern="*.py"))

        asyncio.run(controller.start_search(session))

        assert runner.last.command == "rg"
        assert runner.last.cwd == str(tmp_path)
        assert runner.last.args[-1] == "foo"
        assert "*.py" in runner.last.args

    def test_exit_before_end_of_output(self, tmp_path):
        """Completion waits for both the exit status and the end of stdout."""
        controller, runner, *_ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            process = runner.last
            process.stdout("a.txt:1:1:foo\n")
            process.exit(0)
            assert session.searching
            process.stdout("b.txt:2:1:foo\n")
            process.eof()
            return await controller.wait(session)

        summary = asyncio.run(scenario())
        assert summary.match_count == 2

    def test_end_of_output_before_exit(self, tmp_path):
        """The other order completes as well."""
        controller, runner, *_ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            runner.last.stdout("a.txt:1:1:foo\n")
            runner.last.eof()
            assert session.searching
            runner.last.exit(0)
            return await controller.wait(session)

        assert asyncio.run(scenario()).match_count == 1

    def test_wait_while_running(self, tmp_path):
        """A waiter is released when the search completes."""
        controller, runner, *_ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            waiter = asyncio.ensure_future(controller.wait(session))
            await asyncio.sleep(0)
            assert not waiter.done()
            runner.last.finish("a.txt:1:1:foo\n", 0)
            return await waiter

        assert asyncio.run(scenario()).match_count == 1

    def test_no_matches(self, tmp_path):
        """Exit status 1 means no matches and is complete."""
        controller, runner, _, store, messages, _ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            runner.last.finish(b"", 1)
            return await controller.wait(session)

        summary = asyncio.run(scenario())
        assert summary.complete
        assert summary.match_count == 0
        assert len(store) == 0
        assert "Found 0 matches in 0 files" in messages.infos

    def test_abnormal_exit_keeps_partial_results(self, tmp_path):
        """Other exit codes keep the results and warn that they may be partial."""
        controller, runner, _, store, messages, _ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            runner.last.finish("a.txt:1:1:foo\n", 2)
            return await controller.wait(session)

        summary = asyncio.run(scenario())
        assert not summary.complete
        assert summary.exit_code == 2
        assert len(store) == 1
        assert "Search incomplete (exit code 2): results may be partial" in messages.warnings

    def test_empty_query_not_started(self, tmp_path):
        """Nothing is spawned for an empty query."""
        controller, runner, *_ = make_controller(tmp_path)
        session = SearchSession()

        assert asyncio.run(controller.start_search(session)) is False
        assert runner.processes == []
        assert session.state is SearchState.IDLE

    def test_options_argument_installed(self, tmp_path):
        """Options passed to start_search replace the session options."""
        controller, runner, *_ = make_controller(tmp_path)
        session = SearchSession()
        options = SearchOptions(query="bar")

        assert asyncio.run(controller.start_search(session, options)) is True
        assert session.options is options


@pytest.mark.unit
class TestToolFallback:
    """Using grep when rg is not installed."""

    def test_baseline_search(self, tmp_path):
        """Without rg the baseline tool runs and columns are computed locally."""
        controller, runner, *_ = make_controller(tmp_path, which=lambda name: None)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            runner.last.finish("a.txt:2:say foo here\n", 0)
            return await controller.wait(session)

        summary = asyncio.run(scenario())

        assert runner.last.command == "grep"
        assert "--context" not in runner.last.args
        assert summary.tool is ToolDialect.BASELINE
        assert session.results[0].column == 5
        assert session.results[0].context == []

    def test_spawn_failure(self, tmp_path):
        """A missing executable is reported and leaves the session idle."""
        runner = FakeRunner(missing={"rg"})
        controller, _, timers, _, messages, events = make_controller(tmp_path, runner=runner)
        session = SearchSession(options=SearchOptions(query="foo"))

        assert asyncio.run(controller.start_search(session)) is False
        assert session.state is SearchState.IDLE
        assert session.run is None
        assert timers.timers == []
        assert messages.warnings[0].startswith("Search failed: Could not start 'rg'")
        assert events[-1].event_type == "error"


@pytest.mark.unit
class TestCancellation:
    """Cancelling and superseding searches."""

    def test_cancel_is_idempotent(self, tmp_path):
        """The first cancel stops the search; the second does nothing."""
        controller, runner, timers, store, messages, events = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            runner.last.stdout("a.txt:1:1:foo\n--\n")
            assert controller.cancel(session) is True
            assert controller.cancel(session) is False

        asyncio.run(scenario())

        handle = runner.last.handle
        assert handle.kill_calls == 1
        assert timers.timers[0].close_calls == 1
        assert session.state is SearchState.IDLE
        assert session.results == []
        assert session.process is None
        assert session.timer is None
        assert messages.warnings == ["Search cancelled"]
        assert events[-1].event_type == "cancelled"

    def test_cancel_when_idle(self, tmp_path):
        """Cancelling an idle session changes nothing."""
        controller, _, _, _, messages, _ = make_controller(tmp_path)
        session = SearchSession()

        assert controller.cancel(session) is False
        assert session.generation == 0
        assert messages.warnings == []

    def test_late_output_of_cancelled_search_ignored(self, tmp_path):
        """Callbacks arriving after cancel do not touch the session."""
        controller, runner, _, store, _, _ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            controller.cancel(session)
            runner.last.finish("a.txt:1:1:foo\n", 0)
            return await controller.wait(session)

        assert asyncio.run(scenario()) is None
        assert len(store) == 0
        assert session.last_summary is None
        assert session.results == []
        assert runner.last.handle.closed

    def test_waiter_released_by_cancel(self, tmp_path):
        """A pending wait returns None when the search is cancelled."""
        controller, *_ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            waiter = asyncio.ensure_future(controller.wait(session))
            await asyncio.sleep(0)
            controller.cancel(session)
            return await waiter

        assert asyncio.run(scenario()) is None

    def test_same_search_not_restarted(self, tmp_path):
        """Starting the running search again is a no-op."""
        controller, runner, *_ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            assert await controller.start_search(session) is True
            assert await controller.start_search(session) is False

        asyncio.run(scenario())
        assert len(runner.processes) == 1

    def test_new_options_supersede_running_search(self, tmp_path):
        """A search with other options cancels the running one first."""
        controller, runner, _, store, messages, _ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            await controller.start_search(session, SearchOptions(query="bar"))
            first, second = runner.processes
            first.finish("old.txt:1:1:foo\n", 0)
            second.finish("new.txt:1:1:bar\n", 0)
            return await controller.wait(session)

        summary = asyncio.run(scenario())

        assert runner.processes[0].handle.kill_calls == 1
        assert summary.query == "bar"
        assert store.get_groups() == {"new.txt": 1}
        assert messages.warnings == ["Search cancelled"]
        assert session.history.items == ("bar", "foo")

    def test_cancel_during_spawn(self, tmp_path):
        """A process that finishes starting after its search was cancelled is killed."""

        class CancellingRunner(FakeRunner):
            async def start(self, command, args, **kwargs):
                handle = await super().start(command, args, **kwargs)
                controller.cancel(session)
                return handle

        runner = CancellingRunner()
        controller, _, timers, *_ = make_controller(tmp_path, runner=runner)
        session = SearchSession(options=SearchOptions(query="foo"))

        assert asyncio.run(controller.start_search(session)) is False
        assert runner.last.handle.kill_calls == 1
        assert timers.timers == []
        assert session.state is SearchState.IDLE


@pytest.mark.unit
class TestProgressAndErrors:
    """Periodic progress, stderr and settings."""

    def test_tick_reports_result_count(self, tmp_path):
        """Each timer tick reports the results gathered so far."""
        controller, runner, timers, _, messages, events = make_controller(
            tmp_path, tool_options=SearchToolOptions(progress_interval=0.5)
        )
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            runner.last.stdout("a.txt:1:1:foo\n--\n")
            timers.timers[0].fire()

        asyncio.run(scenario())

        assert timers.timers[0].interval == 0.5
        assert "Searching... Found 1 results" in messages.infos
        tick = events[-1]
        assert tick.event_type == "item_done"
        assert tick.current == 1
        assert tick.metadata["item_type"] == "search_tick"

    def test_tick_after_completion_ignored(self, tmp_path):
        """A stray tick of a finished search reports nothing."""
        controller, runner, timers, _, messages, _ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            runner.last.finish(b"", 1)
            timers.timers[0].fire()

        asyncio.run(scenario())
        assert not any(text.startswith("Searching...") for text in messages.infos)

    def test_stderr_errors_warned(self, tmp_path):
        """Error text on stderr is shown; other stderr output is only logged."""
        controller, runner, _, _, messages, _ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            await controller.start_search(session)
            runner.last.stderr("rg: ./locked: Permission denied (os error 13)\n")
            runner.last.stderr("just a notice\n")

        asyncio.run(scenario())
        assert messages.warnings == ["Search error: rg: ./locked: Permission denied (os error 13)"]

    def test_toggle_setting(self, tmp_path):
        """Toggles are delegated to the session."""
        controller, *_ = make_controller(tmp_path)
        session = SearchSession()

        assert controller.toggle_setting(session, "whole_word") is True
        assert session.options.whole_word is True
        assert controller.toggle_setting(session, "bogus") is False

    def test_wait_without_search_returns_last_summary(self, tmp_path):
        """Waiting on an idle session returns the previous summary."""
        controller, runner, *_ = make_controller(tmp_path)
        session = SearchSession(options=SearchOptions(query="foo"))

        async def scenario():
            assert await controller.wait(session) is None
            await controller.start_search(session)
            runner.last.finish("a.txt:1:1:foo\n", 0)
            return await controller.wait(session)

        summary = asyncio.run(scenario())
        assert session.last_summary is summary
