"""Background tasks launched when the application starts."""

from __future__ import annotations

import logging
from typing import Callable

from app.config import AppConfig, get_app_config
from services.server import ServerError, ensure_running
from services.update import schedule_startup_update_check
from services.update.models import UpdateReport
from shared.background import spawn_background_task

_LOGGER = logging.getLogger(__name__)


async def ensure_configured_server(config: AppConfig | None = None) -> str:
    """Call :func:`ensure_running` with the configured endpoint and command."""

    server = (config or get_app_config()).server
    return await ensure_running(
        server.health_url,
        server.launch_command,
        probe_timeout=server.probe_timeout,
        grace_period=server.grace_period,
        confirm_timeout=server.confirm_timeout,
    )


async def run_server_check(
    config: AppConfig | None = None,
    *,
    on_complete: Callable[[str], None] | None = None,
) -> str:
    """Ensure the inference server is up and report the outcome as a message."""

    try:
        message = await ensure_configured_server(config)
    except ServerError as exc:
        _LOGGER.error("Inference server check failed (%s): %s", exc.kind.value, exc)
        message = f"Failed to start server: {exc}"
    except Exception as exc:
        _LOGGER.exception("Unexpected error while checking the inference server")
        message = f"Failed to start server: {exc}"

    if on_complete is not None:
        on_complete(message)
    return message


def schedule_server_check(
    config: AppConfig | None = None,
    *,
    on_complete: Callable[[str], None] | None = None,
) -> None:
    spawn_background_task(run_server_check(config, on_complete=on_complete), name="zama-server")


def schedule_startup_tasks(
    config: AppConfig | None = None,
    *,
    update_enabled: bool | None = None,
    on_update_complete: Callable[[UpdateReport], None] | None = None,
    on_server_complete: Callable[[str], None] | None = None,
) -> None:
    """Start the update check and the server check as independent tasks.

    Must be called with an event loop running.  Results are only reported
    through logging and the optional callbacks.
    """

    config = config or get_app_config()
    schedule_startup_update_check(
        config, enabled=update_enabled, on_complete=on_update_complete
    )
    schedule_server_check(config, on_complete=on_server_complete)


__all__ = ["ensure_configured_server", "run_server_check", "schedule_server_check", "schedule_startup_tasks"]
