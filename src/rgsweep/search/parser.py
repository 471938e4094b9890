"""Incremental parser for streamed search tool output.

The external tool writes to a pipe and the runner hands over whatever bytes
a read returned, so a logical line may be split at any byte offset. The
parser keeps the unterminated tail between calls and only interprets
complete lines.

Enhanced output (``rg --no-heading --line-number --column --context N``) is
read with a small line grammar::

    SEPARATOR  := "--"
    MATCH      := path ":" line ":" column ":" text
    CONTEXT    := line "[" sep "]" text
                | path "-" line "-" text

and a two-state machine, ``IDLE`` and ``IN_FILE(path)``. The native
``path-line-text`` context form is ambiguous when the path itself contains
``-<digits>-``, and a context line whose text starts like ``12:30:45:``
also fits the MATCH rule. Lines that could be either are held until a
match with an unambiguous path arrives (or the group ends); the latest held
match that explains the earlier held lines as its context opens the group,
and context is then matched by exact path prefix.

Baseline output (``grep -n -H``) is ``path:line:text`` with no context and
no separators; groups are runs of the same path.
"""

from __future__ import annotations

import logging
import re
from enum import Enum, auto
from typing import Callable

from rgsweep.constants import GROUP_SEPARATOR
from rgsweep.exceptions import ParseSkip
from rgsweep.search.types import ContextLine, MatchRecord, ToolDialect

logger = logging.getLogger(__name__)

_MATCH_RE = re.compile(r"^(?P<path>.+?):(?P<line>\d+):(?P<col>[^:]*):(?P<text>.*)$")
_BASELINE_RE = re.compile(r"^(?P<path>.+?):(?P<line>\d+):(?P<text>.*)$")
_BRACKET_CONTEXT_RE = re.compile(r"^(?P<line>\d+)\[[^\]]*\](?P<text>.*)$")
_NATIVE_CONTEXT_TAIL_RE = re.compile(r"^(?P<line>\d+)-(?P<text>.*)$")
_DASH_NUMBER_RE = re.compile(r"-\d+-")

ColumnFinder = Callable[[str], int]


class ParserState(Enum):
    """Named states of the output grammar."""

    IDLE = auto()
    IN_FILE = auto()


def _positive_int(value: str, field_name: str, line: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise ParseSkip(line, f"{field_name} is not a number") from exc
    if number < 1:
        raise ParseSkip(line, f"{field_name} must be 1-based")
    return number


class OutputParser:
    """Turn raw output chunks of the search tool into grouped match records.

    Parameters
    ----------
    dialect : ToolDialect
        Output format of the tool being read.
    column_finder : callable, optional
        Baseline only: computes the 1-based column of the first match in a
        line, since grep does not report columns. Defaults to column 1.

    Examples
    --------
    >>> parser = OutputParser(ToolDialect.ENHANCED)
    >>> parser.feed(b"src/app.py:3:5:foo = 1\\nsrc/a")
    []
    >>> records = parser.feed(b"pp.py-4-bar\\n") + parser.close()
    >>> [(r.filepath, r.line_num, r.column) for r in records]
    [('src/app.py', 3, 5)]

    """

    def __init__(self, dialect: ToolDialect = ToolDialect.ENHANCED, column_finder: ColumnFinder | None = None):
        """Create a parser in the IDLE state."""
        self.dialect = dialect
        self._column_finder = column_finder
        self._tail = b""
        self._state = ParserState.IDLE
        self._current_path: str | None = None
        self._pending_matches: list[MatchRecord] = []
        self._pending_context: list[ContextLine] = []
        self._unresolved: list[str] = []
        self._deferred: list[str] = []
        self._records: list[MatchRecord] = []
        self._skipped = 0
        self._closed = False

    @property
    def state(self) -> ParserState:
        """Current grammar state."""
        return self._state

    @property
    def current_path(self) -> str | None:
        """Path of the open group, None when IDLE."""
        return self._current_path

    @property
    def records(self) -> list[MatchRecord]:
        """All records emitted so far, in emission order."""
        return list(self._records)

    @property
    def skipped(self) -> int:
        """Number of lines dropped as malformed."""
        return self._skipped

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return self._closed

    def feed(self, chunk: bytes | str) -> list[MatchRecord]:
        """Consume one chunk of output.

        Parameters
        ----------
        chunk : bytes or str
            Raw output exactly as read from the pipe.

        Returns
        -------
        list[MatchRecord]
            Records whose group was closed by this chunk.

        """
        if self._closed:
            raise RuntimeError("Cannot feed a closed OutputParser")
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        if not chunk:
            return []

        data = self._tail + chunk
        lines = data.split(b"\n")
        self._tail = lines.pop()

        emitted: list[MatchRecord] = []
        for raw_line in lines:
            emitted.extend(self._process_line(self._decode(raw_line)))
        return emitted

    def close(self) -> list[MatchRecord]:
        """Finish the stream: parse the trailing fragment and flush the open group."""
        if self._closed:
            return []
        emitted: list[MatchRecord] = []
        if self._tail:
            emitted.extend(self._process_line(self._decode(self._tail)))
            self._tail = b""
        emitted.extend(self._settle_deferred())
        emitted.extend(self._flush())
        self._closed = True
        return emitted

    @staticmethod
    def _decode(raw_line: bytes) -> str:
        text = raw_line.decode("utf-8", errors="replace")
        return text[:-1] if text.endswith("\r") else text

    def _process_line(self, line: str) -> list[MatchRecord]:
        if not line.strip():
            return []
        try:
            if self.dialect is ToolDialect.BASELINE:
                return self._baseline_line(line)
            return self._enhanced_line(line)
        except ParseSkip as skip:
            self._skipped += 1
            logger.debug("%s", skip.message)
            return []

    def _enhanced_line(self, line: str) -> list[MatchRecord]:
        if line.strip() == GROUP_SEPARATOR:
            emitted = self._settle_deferred()
            emitted.extend(self._flush())
            self._unresolved.clear()
            return emitted

        if not self._deferred and self._current_path is not None:
            resolved = self._resolve_native_context(line, self._current_path)
            if resolved is not None:
                self._pending_context.append(resolved)
                return []

        match = self._match_line(line)
        if match and self._unambiguous(match):
            if not self._deferred:
                return self._enhanced_match(line, match)
            self._deferred.append(line)
            return self._settle_deferred()

        bracketed = _BRACKET_CONTEXT_RE.match(line)
        if bracketed:
            self._pending_context.append(
                ContextLine(
                    line_num=_positive_int(bracketed.group("line"), "line number", line),
                    content=bracketed.group("text"),
                    is_match=False,
                )
            )
            return []

        # Native context or a match whose path is not known yet
        self._deferred.append(line)
        return []

    @staticmethod
    def _match_line(line: str) -> re.Match[str] | None:
        """Return the match grammar of ``line`` when its numbers are usable."""
        match = _MATCH_RE.match(line)
        if not match:
            return None
        try:
            _positive_int(match.group("line"), "line number", line)
            _positive_int(match.group("col"), "column", line)
        except ParseSkip:
            return None
        return match

    def _unambiguous(self, match: re.Match[str]) -> bool:
        # "path-N-12:30:45: text" context also fits the match grammar, with "-N-" in the path
        path = match.group("path")
        return path == self._current_path or _DASH_NUMBER_RE.search(path) is None

    def _settle_deferred(self) -> list[MatchRecord]:
        """Attribute held lines once the match that owns them is known.

        The latest held match whose path explains every earlier held line as
        its context (or as context of the open group) opens the group; lines
        after it are parsed again against that group.
        """
        emitted: list[MatchRecord] = []
        while self._deferred:
            lines, self._deferred = self._deferred, []
            split = self._split_point(lines)
            if split is None:
                for line in lines:
                    self._attach_or_drop(line)
                continue

            index, match = split
            owner = match.group("path")
            for line in lines[:index]:
                resolved = None
                if self._current_path is not None and self._current_path != owner:
                    resolved = self._resolve_native_context(line, self._current_path)
                if resolved is None:
                    self._unresolved.append(line)
                else:
                    self._pending_context.append(resolved)
            emitted.extend(self._enhanced_match(lines[index], match))
            for line in lines[index + 1 :]:
                emitted.extend(self._process_line(line))
        return emitted

    def _split_point(self, lines: list[str]) -> tuple[int, re.Match[str]] | None:
        matches = [self._match_line(line) for line in lines]
        for index in range(len(lines) - 1, -1, -1):
            match = matches[index]
            if match is None:
                continue
            owners = [match.group("path")]
            if self._current_path is not None:
                owners.append(self._current_path)
            if all(
                matches[earlier] is None
                or any(self._resolve_native_context(lines[earlier], owner) is not None for owner in owners)
                for earlier in range(index)
            ):
                return index, match
        return None

    def _attach_or_drop(self, line: str) -> None:
        resolved = None
        if self._current_path is not None:
            resolved = self._resolve_native_context(line, self._current_path)
        if resolved is None:
            self._skipped += 1
            logger.debug("Dropped unattributed output line: %r", line)
        else:
            self._pending_context.append(resolved)

    def _enhanced_match(self, line: str, match: re.Match[str]) -> list[MatchRecord]:
        filepath = match.group("path")
        line_num = _positive_int(match.group("line"), "line number", line)
        column = _positive_int(match.group("col"), "column", line)
        text = match.group("text")

        emitted: list[MatchRecord] = []
        if filepath != self._current_path:
            emitted = self._flush()
            self._state = ParserState.IN_FILE
            self._current_path = filepath

        for raw in self._unresolved:
            resolved = self._resolve_native_context(raw, filepath)
            if resolved is None:
                self._skipped += 1
                logger.debug("Dropped unattributed output line: %r", raw)
            else:
                self._pending_context.append(resolved)
        self._unresolved.clear()

        self._pending_context.append(ContextLine(line_num=line_num, content=text, is_match=True))
        self._pending_matches.append(MatchRecord(filepath=filepath, line_num=line_num, column=column, line_text=text))
        return emitted

    @staticmethod
    def _resolve_native_context(line: str, filepath: str) -> ContextLine | None:
        prefix = f"{filepath}-"
        if not line.startswith(prefix):
            return None
        tail = _NATIVE_CONTEXT_TAIL_RE.match(line[len(prefix) :])
        if not tail:
            return None
        line_num = int(tail.group("line"))
        if line_num < 1:
            return None
        return ContextLine(line_num=line_num, content=tail.group("text"), is_match=False)

    def _baseline_line(self, line: str) -> list[MatchRecord]:
        match = _BASELINE_RE.match(line)
        if not match:
            return []
        filepath = match.group("path")
        line_num = _positive_int(match.group("line"), "line number", line)
        text = match.group("text")
        column = self._column_finder(text) if self._column_finder else 1

        emitted: list[MatchRecord] = []
        if filepath != self._current_path:
            emitted = self._flush()
            self._state = ParserState.IN_FILE
            self._current_path = filepath
        self._pending_matches.append(MatchRecord(filepath=filepath, line_num=line_num, column=column, line_text=text))
        return emitted

    def _flush(self) -> list[MatchRecord]:
        """Close the pending group and return its records."""
        matches = self._pending_matches
        if matches and self.dialect is ToolDialect.ENHANCED:
            group_context = list(self._pending_context)
            for record in matches:
                record.context = group_context

        self._pending_matches = []
        self._pending_context = []
        self._state = ParserState.IDLE
        self._current_path = None
        self._records.extend(matches)
        return matches
