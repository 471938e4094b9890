"""Mutable runtime state of one search/replace interaction."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable

from rgsweep.options.search import SearchOptions
from rgsweep.search.arguments import ToolInvocation
from rgsweep.search.history import HistoryStore
from rgsweep.search.parser import OutputParser
from rgsweep.search.process import ProcessHandle
from rgsweep.search.timer import IntervalTimer
from rgsweep.search.types import BooleanSetting, MatchRecord, SearchState, SearchSummary

logger = logging.getLogger(__name__)


def _flip(name: str) -> Callable[[SearchOptions], SearchOptions]:
    def flip(options: SearchOptions) -> SearchOptions:
        return options.create_updated(**{name: not getattr(options, name)})

    return flip


_TOGGLES: dict[BooleanSetting, Callable[[SearchOptions], SearchOptions]] = {
    BooleanSetting.CASE_SENSITIVE: _flip("case_sensitive"),
    BooleanSetting.USE_REGEX: _flip("use_regex"),
    BooleanSetting.WHOLE_WORD: _flip("whole_word"),
}


@dataclass
class SearchRun:
    """Bookkeeping for one spawned search process.

    A run belongs to the session generation it was started in. Callbacks of
    a run whose generation is no longer current are ignored.
    """

    generation: int
    options: SearchOptions
    invocation: ToolInvocation
    parser: OutputParser
    done: asyncio.Future
    handle: ProcessHandle | None = None
    exit_code: int | None = None
    exited: bool = False
    stdout_closed: bool = False
    finished: bool = False


@dataclass
class SearchSession:
    """Search state owned by the integration layer.

    The session is passed into every controller call. It exclusively owns the
    running process handle and the progress timer; both are released by the
    controller when the search exits or is cancelled.
    """

    options: SearchOptions = field(default_factory=SearchOptions)
    history: HistoryStore = field(default_factory=HistoryStore)
    state: SearchState = SearchState.IDLE
    results: list[MatchRecord] = field(default_factory=list)
    process: ProcessHandle | None = None
    timer: IntervalTimer | None = None
    generation: int = 0
    last_summary: SearchSummary | None = None
    run: SearchRun | None = None

    @property
    def searching(self) -> bool:
        """Whether a search process is in flight."""
        return self.state is SearchState.SEARCHING

    def is_current(self, run: SearchRun) -> bool:
        """Return True if ``run`` belongs to the current generation."""
        return run.generation == self.generation

    def toggle_setting(self, name: str | BooleanSetting) -> bool:
        """Flip a boolean search option.

        Parameters
        ----------
        name : str or BooleanSetting
            Option to flip.

        Returns
        -------
        bool
            False, with nothing changed, when ``name`` is not a boolean option.

        """
        setting = name if isinstance(name, BooleanSetting) else BooleanSetting.from_name(name)
        if setting is None:
            logger.debug("Ignoring toggle of unknown setting %r", name)
            return False
        self.options = _TOGGLES[setting](self.options)
        return True

    def update_options(self, **changes) -> SearchOptions:
        """Install a copy of the options with ``changes`` applied."""
        self.options = self.options.create_updated(**changes)
        return self.options
