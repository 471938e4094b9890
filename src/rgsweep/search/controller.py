#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/rgsweep/search/controller.py
"""Search state machine: spawning, streaming, progress and cancellation.

A session moves ``IDLE -> SEARCHING -> COMPLETED | CANCELLED -> IDLE``. At
most one search process runs per session; starting a search with different
options cancels the running one before anything else happens.

Output of the tool is parsed as it arrives. A search is finished only when
both the exit notification and the end of stdout have been seen, since the
two are delivered independently. Every run is tagged with the session
generation it started in; cancelling bumps the generation so that late
callbacks of the cancelled process are ignored.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from functools import partial
from typing import Callable

from rgsweep.constants import TOOL_SUCCESS_EXIT_CODES
from rgsweep.exceptions import SpawnError, StreamError
from rgsweep.interfaces import LoggingMessageSink, MessageSink, ResultStore
from rgsweep.options.search import SearchOptions, SearchToolOptions
from rgsweep.progress import ProgressCallback, ProgressEvent, emit_progress
from rgsweep.search.arguments import WhichFunc, build_invocation
from rgsweep.search.matching import make_column_finder
from rgsweep.search.parser import OutputParser
from rgsweep.search.process import ProcessRunner
from rgsweep.search.session import SearchRun, SearchSession
from rgsweep.search.timer import IntervalTimer
from rgsweep.search.types import BooleanSetting, SearchState, SearchSummary, ToolDialect

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], IntervalTimer]


class SearchController:
    """Drive searches for any number of independent sessions.

    Parameters
    ----------
    runner : ProcessRunner, optional
        Spawns the search tool. A default runner is created when omitted.
    result_store : ResultStore, optional
        Receives the results of every completed search.
    messages : MessageSink, optional
        Receives progress, summary and warning notices. Defaults to logging.
    progress_callback : ProgressCallback, optional
        Receives structured progress events.
    tool_options : SearchToolOptions, optional
        Executables, match cap, context window and progress interval.
    which : callable, optional
        Executable lookup used to pick the tool, ``shutil.which`` by default.
    cwd : str, optional
        Directory searched. Defaults to the process working directory at the
        time each search starts.
    timer_factory : callable, optional
        Creates the progress timer from ``(interval, callback)``.

    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        result_store: ResultStore | None = None,
        messages: MessageSink | None = None,
        progress_callback: ProgressCallback | None = None,
        tool_options: SearchToolOptions | None = None,
        which: WhichFunc = shutil.which,
        cwd: str | None = None,
        timer_factory: TimerFactory | None = None,
    ):
        """Create a controller."""
        self.runner = runner or ProcessRunner()
        self.result_store = result_store
        self.messages: MessageSink = messages or LoggingMessageSink()
        self.progress_callback = progress_callback
        self.tool_options = tool_options or SearchToolOptions()
        self.cwd = cwd
        self._which = which
        self._timer_factory: TimerFactory = timer_factory or IntervalTimer

    async def start_search(self, session: SearchSession, options: SearchOptions | None = None) -> bool:
        """Start searching with the session options.

        Parameters
        ----------
        session : SearchSession
            Session to search in.
        options : SearchOptions, optional
            New options, installed on the session before anything else.

        Returns
        -------
        bool
            True if a search process was spawned.

        """
        if options is not None:
            session.options = options
        options = session.options

        if not options.query:
            logger.debug("Not searching: empty query")
            return False
        if session.searching:
            if session.run is not None and session.run.options == options:
                logger.debug("Search for %r already running", options.query)
                return False
            self.cancel(session)

        session.generation += 1
        session.results = []
        session.history.add(options.query)

        cwd = self.cwd or os.getcwd()
        invocation = build_invocation(options, self.tool_options, cwd=cwd, which=self._which)
        column_finder = make_column_finder(options) if invocation.dialect is ToolDialect.BASELINE else None
        run = SearchRun(
            generation=session.generation,
            options=options,
            invocation=invocation,
            parser=OutputParser(invocation.dialect, column_finder=column_finder),
            done=asyncio.get_running_loop().create_future(),
        )
        session.run = run
        session.state = SearchState.SEARCHING

        try:
            handle = await self.runner.start(
                invocation.command,
                invocation.args,
                cwd=cwd,
                on_stdout=partial(self._on_stdout, session, run),
                on_stderr=partial(self._on_stderr, session, run),
                on_exit=partial(self._on_exit, session, run),
                on_stream_error=partial(self._on_stream_error, session, run),
            )
        except SpawnError as exc:
            self._spawn_failed(session, run, exc)
            return False

        run.handle = handle
        if not session.is_current(run):
            # Superseded while the process was starting
            handle.kill()
            return False

        session.process = handle
        session.timer = self._timer_factory(self.tool_options.progress_interval, partial(self._on_tick, session, run))
        session.timer.start()
        logger.info("Searching for %r with %s", options.query, invocation.command)
        emit_progress(
            self.progress_callback,
            ProgressEvent(
                "started",
                f"Searching for {options.query!r}",
                metadata={"command": invocation.command, "args": list(invocation.args)},
            ),
        )
        return True

    def cancel(self, session: SearchSession) -> bool:
        """Stop the in-flight search.

        Returns
        -------
        bool
            False, with nothing changed, when the session is not searching.

        """
        if not session.searching:
            return False

        run = session.run
        session.generation += 1
        if session.process is not None:
            session.process.kill()
            session.process = None
        self._release_timer(session)
        session.state = SearchState.CANCELLED
        session.results = []
        session.run = None
        if run is not None and not run.done.done():
            run.done.set_result(None)

        self.messages.warn("Search cancelled")
        emit_progress(self.progress_callback, ProgressEvent("cancelled", "Search cancelled"))
        session.state = SearchState.IDLE
        return True

    async def wait(self, session: SearchSession) -> SearchSummary | None:
        """Wait for the in-flight search and return its summary.

        Returns None when the search was cancelled. When nothing is running
        the summary of the last completed search is returned.
        """
        run = session.run
        if run is None:
            return session.last_summary
        return await run.done

    def toggle_setting(self, session: SearchSession, name: str | BooleanSetting) -> bool:
        """Flip a boolean option of ``session``; False for unknown names."""
        return session.toggle_setting(name)

    def _spawn_failed(self, session: SearchSession, run: SearchRun, exc: SpawnError) -> None:
        logger.debug("Spawn failed", exc_info=exc)
        if session.is_current(run):
            session.state = SearchState.IDLE
            session.run = None
            session.results = []
            self.messages.warn(f"Search failed: {exc.message}")
            emit_progress(
                self.progress_callback,
                ProgressEvent("error", exc.message, metadata={"error": exc.message, "command": exc.command}),
            )
        if not run.done.done():
            run.done.set_result(None)

    def _on_stdout(self, session: SearchSession, run: SearchRun, chunk: bytes | None) -> None:
        if not session.is_current(run):
            return
        if chunk is None:
            run.stdout_closed = True
            session.results.extend(run.parser.close())
            self._maybe_finish(session, run)
            return
        session.results.extend(run.parser.feed(chunk))

    def _on_stderr(self, session: SearchSession, run: SearchRun, chunk: bytes | None) -> None:
        if chunk is None:
            return
        text = chunk.decode("utf-8", errors="replace").strip()
        if not text:
            return
        logger.debug("%s stderr: %s", run.invocation.command, text)
        if session.is_current(run) and "error" in text.lower():
            self.messages.warn(f"Search error: {text}")

    def _on_stream_error(self, session: SearchSession, run: SearchRun, error: StreamError) -> None:
        if session.is_current(run):
            self.messages.warn(error.message)
            emit_progress(
                self.progress_callback,
                ProgressEvent("error", error.message, metadata={"error": error.message, "stream": error.stream}),
            )

    def _on_exit(self, session: SearchSession, run: SearchRun, returncode: int) -> None:
        run.exit_code = returncode
        run.exited = True
        if not session.is_current(run):
            if run.handle is not None:
                run.handle.close()
            return
        self._maybe_finish(session, run)

    def _on_tick(self, session: SearchSession, run: SearchRun) -> None:
        if not session.is_current(run) or not session.searching:
            return
        count = len(session.results)
        self.messages.info(f"Searching... Found {count} results")
        emit_progress(
            self.progress_callback,
            ProgressEvent("item_done", f"Found {count} results", current=count, metadata={"item_type": "search_tick"}),
        )

    def _maybe_finish(self, session: SearchSession, run: SearchRun) -> None:
        if run.finished or not (run.exited and run.stdout_closed):
            return
        run.finished = True
        self._release_timer(session)
        session.results.extend(run.parser.close())

        results = list(session.results)
        file_count = len({record.filepath for record in results})
        complete = run.exit_code in TOOL_SUCCESS_EXIT_CODES
        summary = SearchSummary(
            query=run.options.query,
            match_count=len(results),
            file_count=file_count,
            exit_code=run.exit_code,
            tool=run.invocation.dialect,
            complete=complete,
        )
        session.last_summary = summary
        session.state = SearchState.COMPLETED

        if self.result_store is not None:
            self._publish(results, run.options)
        if run.parser.skipped:
            logger.debug("Skipped %d malformed output lines", run.parser.skipped)
        self.messages.info(f"Found {summary.match_count} matches in {summary.file_count} files")
        if not complete:
            self.messages.warn(f"Search incomplete (exit code {run.exit_code}): results may be partial")
        emit_progress(
            self.progress_callback,
            ProgressEvent(
                "finished",
                f"Found {summary.match_count} matches in {summary.file_count} files",
                current=summary.match_count,
                metadata={"file_count": file_count, "exit_code": run.exit_code, "complete": complete},
            ),
        )

        if session.process is not None:
            session.process.close()
            session.process = None
        session.run = None
        session.state = SearchState.IDLE
        run.done.set_result(summary)

    def _publish(self, results, options: SearchOptions) -> None:
        from rgsweep.results import process_search_results

        process_search_results(self.result_store, results, options)

    @staticmethod
    def _release_timer(session: SearchSession) -> None:
        timer = session.timer
        session.timer = None
        if timer is not None:
            timer.close()
