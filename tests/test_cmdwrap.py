"""Tests for the shell command helpers."""

import asyncio
import sys

import pytest

from gateway.cmdwrap import CommandError, Payload, run, run_stream

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell commands")


async def collect(command: str) -> list[Payload]:
    return [payload async for payload in run_stream(command)]


class TestRun:
    """Tests for run."""

    def test_returns_stdout(self):
        assert run("echo hello") == "hello\n"

    def test_non_zero_exit_raises_with_stderr(self):
        with pytest.raises(CommandError) as exc_info:
            run("echo oops >&2; exit 3")

        assert str(exc_info.value) == "oops\n"

    def test_non_utf8_output_raises(self):
        with pytest.raises(CommandError, match="UTF-8"):
            run("printf '\\377\\376'")


class TestRunStream:
    """Tests for run_stream."""

    async def test_lines_then_success_marker(self):
        payloads = await collect("printf 'one\\ntwo\\n'")

        assert payloads == [
            Payload(success=False, output="one"),
            Payload(success=False, output="two"),
            Payload(success=True, output=""),
        ]

    async def test_last_line_without_newline(self):
        payloads = await collect("printf 'tail'")

        assert payloads[0] == Payload(success=False, output="tail")
        assert payloads[-1].success is True

    async def test_failure_marker_carries_exit_status(self):
        payloads = await collect("echo partial; exit 2")

        assert payloads == [
            Payload(success=False, output="partial"),
            Payload(success=False, output="exit status 2"),
        ]

    async def test_stderr_not_streamed(self):
        payloads = await collect("echo visible; echo hidden >&2")

        assert [p.output for p in payloads] == ["visible", ""]

    async def test_line_longer_than_stream_buffer(self):
        payloads = await collect("head -c 100000 /dev/zero | tr '\\0' 'a'; echo")

        assert payloads == [
            Payload(success=False, output="a" * 100000),
            Payload(success=True, output=""),
        ]

    async def test_early_close_reaps_process(self, monkeypatch):
        spawned = []
        create_subprocess_shell = asyncio.create_subprocess_shell

        async def recording_spawn(*args, **kwargs):
            process = await create_subprocess_shell(*args, **kwargs)
            spawned.append(process)
            return process

        monkeypatch.setattr(asyncio, "create_subprocess_shell", recording_spawn)
        stream = run_stream("while true; do echo tick; sleep 0.01; done")

        first = await stream.__anext__()
        await stream.aclose()

        assert first == Payload(success=False, output="tick")
        assert spawned[0].returncode is not None
