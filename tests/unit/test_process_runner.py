"""Tests for streaming subprocess execution."""

from __future__ import annotations

import asyncio
import sys
from unittest.mock import patch

import pytest

from trace_agent.services.process_runner import ProcessExited, ProcessOutput, ProcessRunner, _describe_exit
from trace_agent.tools.run_command import resolve_binary


async def _collect(run) -> list:
    return [event async for event in run.events()]


class TestDescribeExit:
    def test_success(self) -> None:
        assert _describe_exit(0) is None

    def test_exit_status(self) -> None:
        assert _describe_exit(3) == "exit status 3"

    def test_signal(self) -> None:
        assert _describe_exit(-9) == "signal: 9"


class TestProcessRunner:
    @pytest.mark.asyncio
    async def test_stdout_lines_then_exit(self, tmp_path) -> None:
        runner = ProcessRunner(str(tmp_path))
        run = runner.start(sys.executable, ["-c", "print('one'); print('two')"], "c1")

        events = await _collect(run)

        assert events[:-1] == [
            ProcessOutput(call_id="c1", line="one", stream="stdout"),
            ProcessOutput(call_id="c1", line="two", stream="stdout"),
        ]
        assert events[-1] == ProcessExited(call_id="c1", error=None, exit_code=0)

    @pytest.mark.asyncio
    async def test_stderr_is_streamed_separately(self, tmp_path) -> None:
        code = "import sys; print('out'); print('err', file=sys.stderr)"
        run = ProcessRunner(str(tmp_path)).start(sys.executable, ["-c", code], "c2")

        events = await _collect(run)

        outputs = {(e.stream, e.line) for e in events if isinstance(e, ProcessOutput)}
        assert outputs == {("stdout", "out"), ("stderr", "err")}
        assert isinstance(events[-1], ProcessExited)

    @pytest.mark.asyncio
    async def test_per_stream_order_preserved(self, tmp_path) -> None:
        code = "for i in range(200): print(i)"
        run = ProcessRunner(str(tmp_path)).start(sys.executable, ["-c", code], "c3")

        events = await _collect(run)

        lines = [e.line for e in events if isinstance(e, ProcessOutput)]
        assert lines == [str(i) for i in range(200)]

    @pytest.mark.asyncio
    async def test_nonzero_exit_reports_status(self, tmp_path) -> None:
        run = ProcessRunner(str(tmp_path)).start(sys.executable, ["-c", "import sys; sys.exit(4)"], "c4")

        events = await _collect(run)

        assert events == [ProcessExited(call_id="c4", error="exit status 4", exit_code=4)]

    @pytest.mark.asyncio
    async def test_spawn_failure_yields_only_exit(self, tmp_path) -> None:
        run = ProcessRunner(str(tmp_path)).start("definitely-not-a-real-binary-xyz", [], "c5")

        events = await _collect(run)

        assert len(events) == 1
        assert isinstance(events[0], ProcessExited)
        assert events[0].call_id == "c5"
        assert events[0].error
        assert events[0].exit_code is None

    @pytest.mark.asyncio
    async def test_null_byte_in_args_yields_only_exit(self, tmp_path) -> None:
        run = ProcessRunner(str(tmp_path)).start(sys.executable, ["a\x00b"], "c8")

        events = await asyncio.wait_for(_collect(run), timeout=5)

        assert len(events) == 1
        assert events[0].call_id == "c8"
        assert "null byte" in events[0].error
        assert events[0].exit_code is None

    @pytest.mark.asyncio
    async def test_unexpected_error_still_closes_run(self, tmp_path) -> None:
        with patch("trace_agent.services.process_runner.resolve_binary", side_effect=RuntimeError("lookup broke")):
            run = ProcessRunner(str(tmp_path)).start("make", [], "c9")
            events = await asyncio.wait_for(_collect(run), timeout=5)

        assert events == [ProcessExited(call_id="c9", error="lookup broke")]

    @pytest.mark.asyncio
    async def test_runs_in_working_dir(self, tmp_path) -> None:
        code = "import os; print(os.getcwd())"
        run = ProcessRunner(str(tmp_path)).start(sys.executable, ["-c", code], "c6")

        events = await _collect(run)

        assert events[0].line == str(tmp_path.resolve())

    @pytest.mark.asyncio
    async def test_events_single_use(self, tmp_path) -> None:
        run = ProcessRunner(str(tmp_path)).start(sys.executable, ["-c", "pass"], "c7")
        await _collect(run)

        with pytest.raises(RuntimeError):
            await _collect(run)

    @pytest.mark.asyncio
    async def test_each_run_has_its_own_channel(self, tmp_path) -> None:
        runner = ProcessRunner(str(tmp_path))
        first = runner.start(sys.executable, ["-c", "print('a')"], "r1")
        second = runner.start(sys.executable, ["-c", "print('b')"], "r2")

        first_events = await _collect(first)
        second_events = await _collect(second)

        assert {e.call_id for e in first_events} == {"r1"}
        assert {e.call_id for e in second_events} == {"r2"}


class TestResolveBinary:
    def test_present_binary_unchanged(self) -> None:
        with patch("trace_agent.tools.run_command.shutil.which", return_value="/usr/bin/python"):
            assert resolve_binary("python") == "python"

    def test_python_falls_back_to_python3(self) -> None:
        def which(name: str) -> str | None:
            return "/usr/bin/python3" if name == "python3" else None

        with patch("trace_agent.tools.run_command.shutil.which", side_effect=which):
            assert resolve_binary("python") == "python3"

    def test_unknown_missing_binary_unchanged(self) -> None:
        with patch("trace_agent.tools.run_command.shutil.which", return_value=None):
            assert resolve_binary("cargo") == "cargo"
