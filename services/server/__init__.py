"""Public API for the inference server health package."""

from __future__ import annotations

from services.server.health import (
    DEFAULT_HEALTH_URL,
    DEFAULT_LAUNCH_COMMAND,
    ServerError,
    ServerErrorKind,
    ServerState,
    ensure_running,
    launch_detached,
    probe,
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
