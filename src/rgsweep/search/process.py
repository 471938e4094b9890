"""Spawning and supervising external processes on the asyncio event loop.

A :class:`ProcessRunner` starts an executable with piped stdout/stderr and
pumps both pipes from background tasks, handing every chunk to a callback as
soon as it is read. A third task waits for the OS process and fires the exit
callback exactly once. The exit callback is not ordered with respect to the
end of the pipes: callers that need all output must also wait for the
``None`` end-of-stream chunk.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from rgsweep.constants import READ_CHUNK_SIZE
from rgsweep.exceptions import SpawnError, StreamError

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[bytes | None], None]
ExitCallback = Callable[[int], None]
StreamErrorCallback = Callable[[StreamError], None]


@dataclass(frozen=True)
class ProcessResult:
    """Exit status and complete output of a finished process."""

    returncode: int
    stdout: bytes
    stderr: bytes

    def output_text(self) -> str:
        """Return stderr, or stdout when stderr is empty, decoded and stripped."""
        data = self.stderr or self.stdout
        return data.decode("utf-8", errors="replace").strip()


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Process supervision task %s failed", task.get_name(), exc_info=exc)


class ProcessHandle:
    """Opaque handle to one spawned process.

    The handle is owned by whoever started the process. ``kill`` may be
    called any number of times; ``close`` releases the supervision tasks.
    """

    def __init__(self, command: str, args: Sequence[str], process: asyncio.subprocess.Process):
        """Wrap a started asyncio process."""
        self.command = command
        self.args = list(args)
        self._process = process
        self._exited = asyncio.Event()
        self._returncode: int | None = None
        self._kill_sent = False
        self._closed = False
        self._tasks: list[asyncio.Task] = []

    @property
    def pid(self) -> int:
        """OS process id."""
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        """Exit status once the exit notification has fired."""
        return self._returncode

    @property
    def has_exited(self) -> bool:
        """Whether the exit notification has fired."""
        return self._exited.is_set()

    @property
    def kill_sent(self) -> bool:
        """Whether a termination request was sent."""
        return self._kill_sent

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` was called."""
        return self._closed

    def is_closing(self) -> bool:
        """Return True once the process is exiting or has exited."""
        return self._kill_sent or self.has_exited or self._closed

    def kill(self) -> bool:
        """Ask the process to terminate.

        Returns
        -------
        bool
            True if a termination request was sent by this call, False if the
            process had already exited or was already asked to stop.

        """
        if self.has_exited or self._kill_sent:
            return False
        self._kill_sent = True
        try:
            self._process.terminate()
        except ProcessLookupError:
            logger.debug("Process %s (%s) was already gone", self.pid, self.command)
            return False
        logger.debug("Sent termination request to %s (%s)", self.pid, self.command)
        return True

    async def wait(self) -> int | None:
        """Wait for the exit notification and return the exit status."""
        await self._exited.wait()
        return self._returncode

    def close(self) -> None:
        """Cancel supervision tasks that are still pending."""
        if self._closed:
            return
        self._closed = True
        for task in self._tasks:
            if not task.done():
                task.cancel()

    def _mark_exited(self, returncode: int) -> None:
        self._returncode = returncode
        self._exited.set()


class ProcessRunner:
    """Start processes and stream their output to callbacks.

    Parameters
    ----------
    read_size : int
        Maximum number of bytes requested per pipe read.

    """

    def __init__(self, read_size: int = READ_CHUNK_SIZE):
        """Create a runner."""
        self.read_size = read_size

    async def start(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: str | None = None,
        on_stdout: ChunkCallback,
        on_stderr: ChunkCallback | None = None,
        on_exit: ExitCallback,
        on_stream_error: StreamErrorCallback | None = None,
    ) -> ProcessHandle:
        """Spawn ``command`` with ``args`` and start supervising it.

        Parameters
        ----------
        command : str
            Executable name or path.
        args : Sequence[str]
            Arguments, passed without a shell.
        cwd : str, optional
            Working directory of the child.
        on_stdout, on_stderr : callable
            Receive each chunk read from the pipe, then ``None`` once at end
            of stream.
        on_exit : callable
            Receives the exit status exactly once, after the process ended.
        on_stream_error : callable, optional
            Receives a :class:`StreamError` when reading a pipe fails.

        Returns
        -------
        ProcessHandle
            Handle owning the running process.

        Raises
        ------
        SpawnError
            If the executable cannot be launched.

        """
        logger.debug("Spawning %s %s (cwd=%s)", command, list(args), cwd)
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise SpawnError(command, original_error=exc) from exc

        handle = ProcessHandle(command, args, process)
        assert process.stdout is not None and process.stderr is not None
        tasks = [
            asyncio.create_task(
                self._pump(process.stdout, "stdout", on_stdout, on_stream_error), name=f"{command}-stdout"
            ),
            asyncio.create_task(
                self._pump(process.stderr, "stderr", on_stderr, on_stream_error), name=f"{command}-stderr"
            ),
            asyncio.create_task(self._watch_exit(handle, on_exit), name=f"{command}-exit"),
        ]
        for task in tasks:
            task.add_done_callback(_log_task_failure)
        handle._tasks = tasks
        return handle

    async def _pump(
        self,
        stream: asyncio.StreamReader,
        name: str,
        on_data: ChunkCallback | None,
        on_error: StreamErrorCallback | None,
    ) -> None:
        try:
            while True:
                chunk = await stream.read(self.read_size)
                if not chunk:
                    break
                if on_data is not None:
                    on_data(chunk)
        except OSError as exc:
            error = StreamError(name, original_error=exc)
            logger.warning("%s", error.message)
            if on_error is not None:
                on_error(error)
        if on_data is not None:
            on_data(None)

    @staticmethod
    async def _watch_exit(handle: ProcessHandle, on_exit: ExitCallback) -> None:
        returncode = await handle._process.wait()
        handle._mark_exited(returncode)
        logger.debug("Process %s (%s) exited with %s", handle.pid, handle.command, returncode)
        on_exit(returncode)

    async def run(self, command: str, args: Sequence[str], *, cwd: str | None = None) -> ProcessResult:
        """Run ``command`` to completion and collect its output.

        Raises
        ------
        SpawnError
            If the executable cannot be launched.

        """
        buffers = {"stdout": bytearray(), "stderr": bytearray()}
        drained = {"stdout": asyncio.Event(), "stderr": asyncio.Event()}

        def collector(name: str) -> ChunkCallback:
            def collect(chunk: bytes | None) -> None:
                if chunk is None:
                    drained[name].set()
                else:
                    buffers[name].extend(chunk)

            return collect

        handle = await self.start(
            command,
            args,
            cwd=cwd,
            on_stdout=collector("stdout"),
            on_stderr=collector("stderr"),
            on_exit=lambda returncode: None,
        )
        try:
            returncode = await handle.wait()
            await drained["stdout"].wait()
            await drained["stderr"].wait()
        finally:
            if not handle.has_exited:
                handle.kill()
            handle.close()
        assert returncode is not None
        return ProcessResult(returncode, bytes(buffers["stdout"]), bytes(buffers["stderr"]))
