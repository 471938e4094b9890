#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Terminal implementations of the core collaborators, built on rich."""

from __future__ import annotations

import logging
import re
from typing import Sequence

from rich.console import Console
from rich.prompt import Prompt as RichPrompt
from rich.syntax import Syntax
from rich.text import Text

from rgsweep.interfaces import Choice, FilePreview
from rgsweep.replace.preview import line_style
from rgsweep.results import Location, LocationList

logger = logging.getLogger(__name__)

_PREVIEW_STYLES = {
    "removed": "red",
    "added": "green",
    "header": "bold",
    "rule": "cyan",
}

# Lines shown above and below the match in a file preview
FILE_PREVIEW_MARGIN = 5


class ConsoleMessages:
    """MessageSink printing to stderr.

    Messages are also logged, so they reach the log file when one is set.
    """

    def __init__(self, console: Console | None = None, quiet: bool = False):
        """Create a sink; ``quiet`` suppresses informational messages."""
        self.console = console or Console(stderr=True)
        self.quiet = quiet

    def info(self, text: str) -> None:
        """Print an informational message."""
        logger.debug(text)
        if not self.quiet:
            self.console.print(Text(text, style="dim"))

    def warn(self, text: str) -> None:
        """Print a warning."""
        logger.warning(text)
        self.console.print(Text(text, style="bold yellow"))


class ConsolePrompt:
    """Prompt asking on the terminal.

    Parameters
    ----------
    console : Console, optional
        Console to ask on.
    assume : Choice, optional
        Answer every confirmation with this choice without asking.

    """

    def __init__(self, console: Console | None = None, assume: Choice | None = None):
        """Create a prompt."""
        self.console = console or Console()
        self.assume = assume

    def choose(self, question: str, choices: Sequence[Choice], default: Choice) -> Choice:
        """Ask for one of ``choices``."""
        if self.assume is not None:
            answer = self.assume if self.assume in choices else default
            logger.debug("%s -> %s (assumed)", question, answer.value)
            return answer
        values = [choice.value for choice in choices]
        answer = RichPrompt.ask(question, choices=values, default=default.value, console=self.console)
        return Choice(answer)

    def ask(self, question: str, default: str = "") -> str | None:
        """Ask for free text."""
        try:
            return RichPrompt.ask(question, default=default, console=self.console)
        except (EOFError, KeyboardInterrupt):
            return None

    def select(self, title: str, options: Sequence[str]) -> str | None:
        """Pick an entry by number."""
        if not options:
            return None
        self.console.print(title)
        for number, option in enumerate(options, start=1):
            self.console.print(f"  {number}. {option}")
        choices = [str(number) for number in range(1, len(options) + 1)]
        try:
            answer = RichPrompt.ask("Number", choices=choices, console=self.console)
        except (EOFError, KeyboardInterrupt):
            return None
        return options[int(answer) - 1]


class ConsolePreview:
    """PreviewSink printing to the terminal."""

    def __init__(self, console: Console | None = None):
        """Create a preview sink."""
        self.console = console or Console()

    def show_diff(self, lines: Sequence[str]) -> None:
        """Print replacement preview lines, colored by kind."""
        for line in lines:
            style = line_style(line)
            self.console.print(Text(line, style=_PREVIEW_STYLES[style]) if style else Text(line))

    def show_file(self, preview: FilePreview) -> None:
        """Print the lines around the match with syntax highlighting."""
        first = max(1, preview.line_num - FILE_PREVIEW_MARGIN)
        last = min(len(preview.lines), preview.line_num + FILE_PREVIEW_MARGIN)
        code = "\n".join(preview.lines[first - 1 : last])
        lexer = Syntax.guess_lexer(preview.filepath, code=code)
        syntax = Syntax(
            code,
            lexer,
            line_numbers=True,
            start_line=first,
            highlight_lines={preview.line_num},
        )
        if preview.highlight:
            flags = 0 if preview.case_sensitive else re.IGNORECASE
            try:
                pattern = re.compile(preview.highlight, flags)
            except re.error:
                pattern = None
            if pattern is not None:
                line = preview.lines[preview.line_num - 1] if preview.line_num <= len(preview.lines) else ""
                for match in pattern.finditer(line):
                    if match.start() != match.end():
                        syntax.stylize_range(
                            "bold reverse",
                            (preview.line_num - first + 1, match.start()),
                            (preview.line_num - first + 1, match.end()),
                        )
        self.console.rule(preview.filepath)
        self.console.print(syntax)

    def close(self) -> None:
        """Nothing stays open on a terminal."""


def render_location(location: Location) -> Text:
    """Return a result line with the matched text highlighted."""
    text = Text()
    for piece, style in location.segments():
        if style == "line_number":
            text.append(piece, style="cyan")
        elif style == "match":
            text.append(piece, style="bold yellow")
        else:
            text.append(piece)
    return text


def print_results(store: LocationList, console: Console, use_rich: bool = True, show_context: bool = False) -> None:
    """Print the result list grouped by file."""
    for row in store.render_rows():
        if row.kind == "group":
            header = f"{row.group} ({row.count})"
            if use_rich:
                console.print(Text(header, style="bold magenta"))
            else:
                print(header)
            continue
        location = row.location
        assert location is not None
        if use_rich:
            console.print(Text("  ").append_text(render_location(location)))
        else:
            print(f"  {location.line_num}:{location.col}: {location.text}")
        if show_context:
            for line in location.context:
                if line.is_match:
                    continue
                if use_rich:
                    console.print(Text(f"    {line.line_num}- {line.content}", style="dim"))
                else:
                    print(f"    {line.line_num}- {line.content}")
