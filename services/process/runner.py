"""Run a child process while draining stdout and stderr concurrently.

Both pipes are read by separate tasks on the running event loop, so a child
that fills one pipe's buffer while the other is idle can never stall the
runner.  Lines are appended to a single transcript in the order they arrive;
the exit status is collected only after both pipes report end-of-stream.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Mapping

from services.process.models import ProcessError, ProcessErrorKind, ProcessOutcome


_LOGGER = logging.getLogger(__name__)

_READ_CHUNK_SIZE = 64 * 1024

LineCallback = Callable[[str, str], None]
"""Called with ``(stream_name, line)`` for every captured line."""


async def run_process(
    command: str | os.PathLike[str],
    args: Iterable[str] = (),
    *,
    on_line: LineCallback | None = None,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ProcessOutcome:
    """Execute ``command`` with ``args`` and return its merged output.

    Raises :class:`ProcessError` when the executable cannot be launched, a
    pipe read fails or the exit status cannot be retrieved.  A non-zero exit
    is *not* an error; inspect :attr:`ProcessOutcome.exit_success`.
    """

    argv = (os.fspath(command), *(str(arg) for arg in args))
    _LOGGER.debug("Spawning process: %s", argv)
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
        )
    except OSError as exc:
        raise ProcessError(
            ProcessErrorKind.SPAWN_FAILED,
            f"Failed to launch {argv[0]}: {exc}",
            command=argv,
        ) from exc

    transcript: list[str] = []

    def record(stream_name: str, line: str) -> None:
        transcript.append(line)
        if on_line is not None:
            on_line(stream_name, line)

    if process.stdout is None or process.stderr is None:
        await _abort(process, [])
        raise ProcessError(
            ProcessErrorKind.STREAM_READ_ERROR,
            f"No output pipes attached to {argv[0]}",
            command=argv,
        )
    drains = [
        asyncio.ensure_future(_drain(process.stdout, "stdout", record)),
        asyncio.ensure_future(_drain(process.stderr, "stderr", record)),
    ]
    try:
        await asyncio.gather(*drains)
    except OSError as exc:
        await _abort(process, drains)
        raise ProcessError(
            ProcessErrorKind.STREAM_READ_ERROR,
            f"Failed to read output of {argv[0]}: {exc}",
            command=argv,
        ) from exc
    except BaseException:
        await _abort(process, drains)
        raise

    try:
        returncode = await process.wait()
    except OSError as exc:
        raise ProcessError(
            ProcessErrorKind.WAIT_FAILED,
            f"Failed to retrieve exit status of {argv[0]}: {exc}",
            command=argv,
        ) from exc
    if returncode is None:
        raise ProcessError(
            ProcessErrorKind.WAIT_FAILED,
            f"No exit status reported for {argv[0]}",
            command=argv,
        )

    outcome = ProcessOutcome(returncode=returncode, transcript=tuple(transcript))
    _LOGGER.debug(
        "Process %s finished with %s (%d lines captured)",
        argv[0],
        outcome.exit_status,
        len(outcome.transcript),
    )
    return outcome


async def _drain(
    stream: asyncio.StreamReader, stream_name: str, record: LineCallback
) -> None:
    pending = bytearray()
    while True:
        chunk = await stream.read(_READ_CHUNK_SIZE)
        if not chunk:
            break
        # Only the new chunk is split; the unterminated remainder is carried over.
        head, newline, rest = chunk.partition(b"\n")
        pending += head
        if not newline:
            continue
        record(stream_name, _decode_line(bytes(pending)))
        *lines, tail = rest.split(b"\n")
        for raw in lines:
            record(stream_name, _decode_line(raw))
        pending = bytearray(tail)
    if pending:
        record(stream_name, _decode_line(bytes(pending)))


def _decode_line(raw: bytes) -> str:
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


async def _abort(process: asyncio.subprocess.Process, drains: list[asyncio.Future]) -> None:
    for task in drains:
        task.cancel()
    await asyncio.gather(*drains, return_exceptions=True)
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    try:
        await process.wait()
    except OSError:
        _LOGGER.debug("Unable to reap aborted process %s", process.pid, exc_info=True)


__all__ = ["LineCallback", "run_process"]
