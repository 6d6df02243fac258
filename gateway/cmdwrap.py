"""
Shell command helpers.

run() executes a command and returns its stdout; run_stream() yields the
stdout of a running command line by line, followed by a completion marker.
"""

import asyncio
import contextlib
import subprocess
from collections.abc import AsyncIterator

from pydantic import BaseModel

from gateway.shared.logging import get_logger

logger = get_logger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class Payload(BaseModel):
    """One item of streamed command output."""

    success: bool
    output: str


class CommandError(Exception):
    """Raised when a command cannot be run or exits with a non-zero status."""


def run(command: str) -> str:
    """
    Run a command through the platform shell.

    Args:
        command: Shell command line

    Returns:
        Decoded stdout of the command

    Raises:
        CommandError: If the command cannot be started, exits non-zero
            (carrying its stderr), or writes output that is not UTF-8
    """
    try:
        completed = subprocess.run(command, shell=True, capture_output=True)
    except OSError as exc:
        raise CommandError(f"Failed to execute the command: {exc}") from exc

    stream = completed.stdout if completed.returncode == 0 else completed.stderr
    try:
        text = stream.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CommandError(f"Failed to decode command output as UTF-8: {exc}") from exc

    if completed.returncode != 0:
        raise CommandError(text)
    return text


async def _read_lines(stream: asyncio.StreamReader) -> AsyncIterator[bytes]:
    """Yield newline-separated lines of any length; a trailing partial line is yielded last."""
    pending = bytearray()
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        pending.extend(chunk)
        *lines, rest = pending.split(b"\n")
        for line in lines:
            yield bytes(line)
        pending = bytearray(rest)

    if pending:
        yield bytes(pending)


async def run_stream(command: str) -> AsyncIterator[Payload]:
    """
    Run a command and stream its stdout.

    Every stdout line is yielded as Payload(success=False, output=line).
    The last item marks completion: success=True with empty output for exit
    status 0, otherwise success=False with the exit status.
    """
    try:
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        yield Payload(success=False, output=str(exc))
        return

    logger.debug(f"Streaming output of pid {process.pid}")

    # Drain stderr alongside stdout so a chatty stderr cannot block the child.
    stderr_task = asyncio.create_task(process.stderr.read())

    try:
        async with contextlib.aclosing(_read_lines(process.stdout)) as lines:
            async for raw_line in lines:
                line = raw_line.decode("utf-8", errors="replace").rstrip("\r")
                yield Payload(success=False, output=line)

        await stderr_task
        returncode = await process.wait()
    finally:
        # Consumer stopped early.
        if process.returncode is None:
            process.kill()
            await process.wait()
        if not stderr_task.done():
            stderr_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await stderr_task

    if returncode == 0:
        yield Payload(success=True, output="")
    else:
        yield Payload(success=False, output=f"exit status {returncode}")
