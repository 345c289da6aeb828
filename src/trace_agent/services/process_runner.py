"""Subprocess execution with line-by-line output streaming.

Each run owns a private channel. Two reader tasks (stdout, stderr) publish
``ProcessOutput`` events onto it as lines arrive, and one ``ProcessExited``
event closes the run once both pipes reached EOF and the process was reaped.
The channel holds a single item, so readers wait for the consumer: whoever
starts a run must drain ``events()`` to the end.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Union

from ..tools.run_command import get_working_dir, resolve_binary

logger = logging.getLogger(__name__)

_LINE_LIMIT = 1024 * 1024


@dataclass(frozen=True)
class ProcessOutput:
    call_id: str
    line: str
    stream: str  # "stdout" or "stderr"


@dataclass(frozen=True)
class ProcessExited:
    call_id: str
    error: str | None  # None on success
    exit_code: int | None = None


ProcessEvent = Union[ProcessOutput, ProcessExited]


def _describe_exit(returncode: int) -> str | None:
    if returncode == 0:
        return None
    if returncode < 0:
        return f"signal: {-returncode}"
    return f"exit status {returncode}"


class ProcessRun:
    """One command execution and its single-use event channel."""

    def __init__(self, command: str, args: list[str], call_id: str, cwd: str | None = None) -> None:
        self.command = command
        self.args = list(args)
        self.call_id = call_id
        self.cwd = cwd
        self._channel: asyncio.Queue[ProcessEvent] = asyncio.Queue(maxsize=1)
        self._task: asyncio.Task[None] | None = None
        self._finished = False

    def _launch(self) -> None:
        self._task = asyncio.create_task(self._run(), name=f"process-{self.call_id}")

    async def _read_stream(self, reader: asyncio.StreamReader | None, stream: str) -> None:
        if reader is None:
            return
        while True:
            try:
                raw = await reader.readline()
            except ValueError:
                # readline() already discarded the oversized line
                raw = b"... (line too long, truncated)\n"
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            await self._channel.put(ProcessOutput(call_id=self.call_id, line=line, stream=stream))

    async def _run(self) -> None:
        try:
            await self._execute()
        except Exception as e:
            logger.exception("Process run failed (id=%s)", self.call_id)
            await self._channel.put(ProcessExited(call_id=self.call_id, error=str(e) or type(e).__name__))

    async def _execute(self) -> None:
        executable = resolve_binary(self.command)
        logger.info("Starting process %s %s (id=%s)", executable, self.args, self.call_id)
        try:
            proc = await asyncio.create_subprocess_exec(
                executable,
                *self.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
                limit=_LINE_LIMIT,
            )
        except (OSError, ValueError) as e:
            logger.warning("Process failed to start (id=%s): %s", self.call_id, e)
            await self._channel.put(ProcessExited(call_id=self.call_id, error=str(e)))
            return

        await asyncio.gather(
            self._read_stream(proc.stdout, "stdout"),
            self._read_stream(proc.stderr, "stderr"),
        )
        returncode = await proc.wait()
        error = _describe_exit(returncode)
        logger.info("Process finished (id=%s) exit_code=%d", self.call_id, returncode)
        await self._channel.put(ProcessExited(call_id=self.call_id, error=error, exit_code=returncode))

    async def events(self) -> AsyncIterator[ProcessEvent]:
        """Yield output lines, then exactly one ``ProcessExited``."""
        if self._finished:
            raise RuntimeError(f"process run {self.call_id} was already consumed")
        while True:
            event = await self._channel.get()
            yield event
            if isinstance(event, ProcessExited):
                self._finished = True
                return


class ProcessRunner:
    """Starts command runs in the project directory."""

    def __init__(self, working_dir: str | None = None) -> None:
        self.working_dir = working_dir

    def start(self, command: str, args: list[str], call_id: str) -> ProcessRun:
        """Spawn ``command`` in the background and return its run handle.

        Must be called from within a running event loop. Spawn failures are
        reported through the run's ``ProcessExited`` event, not raised.
        """
        run = ProcessRun(command, args, call_id, cwd=self.working_dir or get_working_dir())
        run._launch()
        return run
