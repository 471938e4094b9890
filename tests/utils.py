"""Test utilities for the rgsweep test suite.

This module provides in-memory stand-ins for the collaborators of the
search controller and replace engine, so their state machines can be
driven step by step without spawning processes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from rgsweep.exceptions import SpawnError
from rgsweep.interfaces import Choice, FilePreview
from rgsweep.search.process import ProcessResult


def make_tree(root: Path, files: dict[str, str]) -> Path:
    """Create ``files`` (relative path -> text) below ``root``."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


class RecordingMessages:
    """MessageSink keeping every notice."""

    def __init__(self):
        self.infos: list[str] = []
        self.warnings: list[str] = []

    def info(self, text: str) -> None:
        self.infos.append(text)

    def warn(self, text: str) -> None:
        self.warnings.append(text)


class RecordingPreview:
    """PreviewSink keeping what it was asked to show."""

    def __init__(self):
        self.diffs: list[list[str]] = []
        self.files: list[FilePreview] = []
        self.closed = 0

    def show_diff(self, lines: Sequence[str]) -> None:
        self.diffs.append(list(lines))

    def show_file(self, preview: FilePreview) -> None:
        self.files.append(preview)

    def close(self) -> None:
        self.closed += 1


class ScriptedPrompt:
    """Prompt answering from queues; an empty queue gives the default."""

    def __init__(self, choices: Sequence[Choice] = (), answers: Sequence[str | None] = (), selection: str | None = None):
        self.choices = list(choices)
        self.answers = list(answers)
        self.selection = selection
        self.questions: list[str] = []
        self.selected_from: list[list[str]] = []

    def choose(self, question: str, choices: Sequence[Choice], default: Choice) -> Choice:
        self.questions.append(question)
        return self.choices.pop(0) if self.choices else default

    def ask(self, question: str, default: str = "") -> str | None:
        self.questions.append(question)
        return self.answers.pop(0) if self.answers else default

    def select(self, title: str, options: Sequence[str]) -> str | None:
        self.questions.append(title)
        self.selected_from.append(list(options))
        return self.selection


class FakeHandle:
    """Process handle of a :class:`FakeRunner` process."""

    def __init__(self, command: str, args: Sequence[str]):
        self.command = command
        self.args = list(args)
        self.kill_calls = 0
        self.kill_sent = False
        self.closed = False
        self.has_exited = False

    def kill(self) -> bool:
        self.kill_calls += 1
        if self.has_exited or self.kill_sent:
            return False
        self.kill_sent = True
        return True

    def is_closing(self) -> bool:
        return self.kill_sent or self.has_exited or self.closed

    def close(self) -> None:
        self.closed = True


@dataclass
class FakeProcess:
    """A started fake process whose callbacks the test fires by hand."""

    command: str
    args: list[str]
    cwd: str | None
    on_stdout: Callable
    on_stderr: Callable | None
    on_exit: Callable
    on_stream_error: Callable | None
    handle: FakeHandle

    def stdout(self, data: bytes | str) -> None:
        self.on_stdout(data.encode("utf-8") if isinstance(data, str) else data)

    def stderr(self, data: bytes | str) -> None:
        if self.on_stderr is not None:
            self.on_stderr(data.encode("utf-8") if isinstance(data, str) else data)

    def eof(self) -> None:
        self.on_stdout(None)
        if self.on_stderr is not None:
            self.on_stderr(None)

    def exit(self, returncode: int = 0) -> None:
        self.handle.has_exited = True
        self.on_exit(returncode)

    def finish(self, output: bytes | str = b"", returncode: int = 0) -> None:
        """Deliver ``output``, end of stream, then the exit status."""
        if output:
            self.stdout(output)
        self.eof()
        self.exit(returncode)


@dataclass
class FakeRunner:
    """ProcessRunner stand-in.

    ``start`` records a :class:`FakeProcess` and returns its handle.
    ``run`` records the command and returns ``results`` entries in order,
    calling ``on_run`` first when set (e.g. to edit a file like sed would).
    """

    missing: set[str] = field(default_factory=set)
    results: list[ProcessResult] = field(default_factory=list)
    on_run: Callable[[str, list[str]], None] | None = None
    processes: list[FakeProcess] = field(default_factory=list)
    runs: list[tuple[str, list[str], str | None]] = field(default_factory=list)

    @property
    def last(self) -> FakeProcess:
        return self.processes[-1]

    async def start(
        self,
        command,
        args,
        *,
        cwd=None,
        on_stdout,
        on_stderr=None,
        on_exit,
        on_stream_error=None,
    ):
        if command in self.missing:
            raise SpawnError(command, original_error=FileNotFoundError(2, "No such file or directory"))
        handle = FakeHandle(command, args)
        self.processes.append(
            FakeProcess(command, list(args), cwd, on_stdout, on_stderr, on_exit, on_stream_error, handle)
        )
        return handle

    async def run(self, command, args, *, cwd=None) -> ProcessResult:
        if command in self.missing:
            raise SpawnError(command, original_error=FileNotFoundError(2, "No such file or directory"))
        self.runs.append((command, list(args), cwd))
        if self.on_run is not None:
            self.on_run(command, list(args))
        if self.results:
            return self.results.pop(0)
        return ProcessResult(0, b"", b"")


class FakeTimer:
    """IntervalTimer stand-in fired by hand."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self.started = 0
        self.close_calls = 0
        self.active = False
        self.closed = False

    def start(self) -> None:
        self.started += 1
        self.active = True

    def stop(self) -> None:
        self.active = False

    def close(self) -> None:
        self.close_calls += 1
        self.active = False
        self.closed = True

    def fire(self) -> None:
        self.callback()


class TimerFactory:
    """Creates :class:`FakeTimer` instances and keeps them."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer
