#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/rgsweep/panel.py
"""High-level entry points for a search panel.

:class:`SearchPanel` bundles a session, the controller, the replace engine
and the host collaborators, and exposes the operations a user interface
binds to keys or commands: search, replace, history, previews, toggles and
form input.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Sequence

from rgsweep.constants import InputField
from rgsweep.exceptions import ValidationError
from rgsweep.interfaces import FilePreview, MessageSink, PreviewSink, Prompt, ResultStore
from rgsweep.replace.engine import ReplaceEngine, ReplaceReport
from rgsweep.results import Location, process_search_results
from rgsweep.search.controller import SearchController
from rgsweep.search.session import SearchSession
from rgsweep.search.types import BooleanSetting, MatchRecord, SearchSummary

logger = logging.getLogger(__name__)

_INPUT_FIELDS: dict[str, tuple[str, str]] = {
    "search": ("Search: ", "query"),
    "replace": ("Replace: ", "replace_text"),
    "include": ("Include pattern: ", "include_pattern"),
    "exclude": ("Exclude pattern: ", "exclude_pattern"),
}


class SearchPanel:
    """Search and replace operations over one session.

    Parameters
    ----------
    session : SearchSession
        State edited and searched by the panel.
    controller : SearchController
        Runs searches; its result store should be ``store``.
    engine : ReplaceEngine
        Runs replacements.
    store : ResultStore
        Holds the current results.
    messages : MessageSink
        Receives notices.
    prompt : Prompt
        Asks for input.
    preview_sink : PreviewSink, optional
        Shows file and replacement previews.

    """

    def __init__(
        self,
        session: SearchSession,
        controller: SearchController,
        engine: ReplaceEngine,
        store: ResultStore,
        messages: MessageSink,
        prompt: Prompt,
        preview_sink: PreviewSink | None = None,
    ):
        """Create a panel."""
        self.session = session
        self.controller = controller
        self.engine = engine
        self.store = store
        self.messages = messages
        self.prompt = prompt
        self.preview_sink = preview_sink
        self.input_mode: InputField = "search"

    async def execute_search(self) -> bool:
        """Search with the current form values."""
        return await self.controller.start_search(self.session)

    async def wait(self) -> SearchSummary | None:
        """Wait for the running search to finish."""
        return await self.controller.wait(self.session)

    async def execute_replace(self) -> ReplaceReport | None:
        """Replace the query across the files currently listed.

        Returns None, after a warning, when the request is incomplete.
        """
        try:
            return await self.engine.execute_replace(self.session, self.store.get_all_locations())
        except ValidationError as exc:
            self.messages.warn(exc.message)
            return None

    async def browse_history(self) -> bool:
        """Let the user pick a past query and search for it."""
        if not len(self.session.history):
            self.messages.warn("No search history")
            return False
        choice = self.prompt.select("Select from search history:", list(self.session.history.items))
        if not choice:
            return False
        self.session.update_options(query=choice)
        return await self.execute_search()

    def show_preview(self, location: Location | None) -> bool:
        """Show the file of ``location`` with the cursor on the match."""
        if location is None or not location.filepath:
            return False
        self.close_preview()
        path = os.path.join(self.controller.cwd or os.getcwd(), location.filepath)
        try:
            with open(path, encoding="utf-8", errors="replace") as handle:
                lines = handle.read().splitlines()
        except OSError as exc:
            logger.debug("Cannot open %s", path, exc_info=exc)
            self.messages.warn(f"Could not open file: {location.filepath}")
            return False

        options = self.session.options
        highlight = None
        if options.query:
            highlight = options.query if options.use_regex else re.escape(options.query)
        if self.preview_sink is not None:
            self.preview_sink.show_file(
                FilePreview(
                    filepath=location.filepath,
                    lines=lines,
                    line_num=location.line_num,
                    column=location.col,
                    highlight=highlight,
                    case_sensitive=options.case_sensitive,
                )
            )
        return True

    def close_preview(self) -> None:
        """Close the open preview, if any."""
        if self.preview_sink is not None:
            self.preview_sink.close()

    def process_search_results(self, matches: Sequence[MatchRecord]) -> int:
        """Load ``matches`` into the result store."""
        return process_search_results(self.store, matches, self.session.options)

    async def handle_input(self, field: InputField) -> bool:
        """Prompt for a new value of a form field.

        Changing the query starts a search. Returns True when a search was
        started.
        """
        if field not in _INPUT_FIELDS:
            raise ValueError(f"Unknown input field: {field}")
        prompt_text, attribute = _INPUT_FIELDS[field]
        current = getattr(self.session.options, attribute)
        self.input_mode = field

        value = self.prompt.ask(prompt_text, default=current)
        if value is None or value == current:
            return False
        self.session.update_options(**{attribute: value})
        if field == "search" and value:
            return await self.execute_search()
        return False

    def toggle_setting(self, name: str | BooleanSetting) -> bool:
        """Flip a boolean search option."""
        return self.controller.toggle_setting(self.session, name)

    def cancel_search(self) -> bool:
        """Cancel the running search."""
        return self.controller.cancel(self.session)

    def open_location(self, index: int) -> Location | None:
        """Preview the location at row ``index`` of the result list."""
        location = self.store.get_location_at(index)
        if location is not None:
            self.show_preview(location)
        return location

    def toggle_group_at(self, index: int) -> bool:
        """Collapse or expand the result group at row ``index``."""
        return self.store.toggle_group_at(index)
