"""Detect the local inference server and start it when it is not running."""

from __future__ import annotations

import asyncio
import logging
import subprocess
from enum import Enum
from typing import Awaitable, Callable, Sequence

import httpx

from shared.http import client_session


_LOGGER = logging.getLogger(__name__)

DEFAULT_HEALTH_URL = "http://localhost:11434/api/tags"
DEFAULT_LAUNCH_COMMAND = ("ollama", "serve")
DEFAULT_PROBE_TIMEOUT = 1.0
DEFAULT_GRACE_PERIOD = 5.0
DEFAULT_CONFIRM_TIMEOUT = 5.0

Launcher = Callable[[Sequence[str]], None]
Sleeper = Callable[[float], Awaitable[None]]


class ServerState(str, Enum):
    UNKNOWN = "unknown"
    RUNNING = "running"
    STARTING = "starting"
    FAILED = "failed"


class ServerErrorKind(str, Enum):
    LAUNCH_FAILED = "launch_failed"
    UNAVAILABLE = "unavailable"


class ServerError(RuntimeError):
    """Raised when the inference server cannot be launched or never answers."""

    def __init__(
        self,
        kind: ServerErrorKind,
        message: str,
        *,
        endpoint: str,
        command: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.endpoint = endpoint
        self.command = tuple(command)


async def probe(
    endpoint: str, *, timeout: float, client: httpx.AsyncClient | None = None
) -> bool:
    """Return ``True`` when ``endpoint`` answers with a 2xx status within ``timeout``."""

    try:
        async with client_session(client, timeout=timeout) as session:
            response = await asyncio.wait_for(session.get(endpoint, timeout=timeout), timeout)
    except (httpx.HTTPError, asyncio.TimeoutError) as exc:
        _LOGGER.debug("Health probe of %s failed: %s", endpoint, exc)
        return False
    return response.is_success


def launch_detached(command: Sequence[str]) -> None:
    """Start ``command`` in its own session without waiting for it.

    Output is discarded so that an unattended long-running server can never
    block on a full pipe.
    """

    subprocess.Popen(
        list(command),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


async def ensure_running(
    endpoint: str = DEFAULT_HEALTH_URL,
    launch_command: Sequence[str] = DEFAULT_LAUNCH_COMMAND,
    *,
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
    grace_period: float = DEFAULT_GRACE_PERIOD,
    confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT,
    client: httpx.AsyncClient | None = None,
    launcher: Launcher | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> str:
    """Make sure the server at ``endpoint`` is reachable, launching it if needed.

    Returns a status message.  Raises :class:`ServerError` when the launch
    command cannot be spawned or the server is still unreachable after the
    grace period.  Nothing is cached between calls: every call probes again.
    """

    _LOGGER.debug("Server state %s: probing %s", ServerState.UNKNOWN.value, endpoint)
    if await probe(endpoint, timeout=probe_timeout, client=client):
        _LOGGER.info("Inference server already running at %s", endpoint)
        return f"Server already running at {endpoint}"

    launch = launcher or launch_detached
    _LOGGER.info(
        "Server state %s: launching %s", ServerState.STARTING.value, " ".join(launch_command)
    )
    try:
        launch(launch_command)
    except OSError as exc:
        _LOGGER.error("Failed to launch inference server: %s", exc)
        raise ServerError(
            ServerErrorKind.LAUNCH_FAILED,
            f"Failed to launch {' '.join(launch_command)}: {exc}",
            endpoint=endpoint,
            command=launch_command,
        ) from exc

    await sleep(grace_period)

    if await probe(endpoint, timeout=confirm_timeout, client=client):
        _LOGGER.info("Server state %s: inference server started", ServerState.RUNNING.value)
        return f"Server started at {endpoint}"

    _LOGGER.error(
        "Server state %s: no response from %s after %.1fs",
        ServerState.FAILED.value,
        endpoint,
        grace_period,
    )
    raise ServerError(
        ServerErrorKind.UNAVAILABLE,
        f"Server at {endpoint} did not respond after launch",
        endpoint=endpoint,
        command=launch_command,
    )


__all__ = [
    "DEFAULT_HEALTH_URL",
    "DEFAULT_LAUNCH_COMMAND",
    "ServerError",
    "ServerErrorKind",
    "ServerState",
    "ensure_running",
    "launch_detached",
    "probe",
]
