"""Helpers for constructing and scheduling the update service."""

from __future__ import annotations

import logging
from typing import Callable

from app.config import AppConfig, get_app_config
from services.update.installers import Installer, ScriptInstaller
from services.update.models import UpdateError, UpdateReport, UpdateStatus
from services.update.providers import ManifestReleaseProvider
from services.update.service import UpdateService
from services.update.uninstall import TrashUninstaller, Uninstaller
from shared.background import spawn_background_task


_LOGGER = logging.getLogger(__name__)

RESTART_MESSAGE = "Update completed successfully. Please restart the application."


def build_update_service(
    config: AppConfig | None = None,
    *,
    installer: Installer | None = None,
    uninstaller: Uninstaller | None = None,
) -> UpdateService:
    """Construct an :class:`UpdateService` for the current environment."""

    update_config = (config or get_app_config()).update
    provider = ManifestReleaseProvider(update_config.manifest_url)
    installer = installer or ScriptInstaller(update_config.installer_url)
    uninstaller = uninstaller or TrashUninstaller()
    return UpdateService(
        provider,
        installer,
        uninstaller,
        version_file=update_config.version_file,
    )


async def run_update_check(
    service: UpdateService,
    *,
    on_complete: Callable[[UpdateReport], None] | None = None,
) -> UpdateReport:
    """Run one update check, reporting the result instead of raising."""

    _LOGGER.info("Checking for updates")
    try:
        version = await service.get_available_version()
        if version is None:
            report = UpdateReport(
                UpdateStatus.UP_TO_DATE, "You are already running the latest version."
            )
        else:
            await service.download_and_install(version)
            report = UpdateReport(UpdateStatus.UPDATED, RESTART_MESSAGE, version=version)
    except UpdateError as exc:
        _LOGGER.warning("Automatic update failed (%s): %s", exc.kind.value, exc)
        report = UpdateReport(
            UpdateStatus.FAILED, f"Update failed: {exc}", error_kind=exc.kind.value
        )
    except Exception as exc:
        _LOGGER.exception("Unexpected error while checking for updates")
        report = UpdateReport(UpdateStatus.FAILED, f"Update failed: {exc}")

    _LOGGER.info("Update check finished: %s", report.message)
    if on_complete is not None:
        on_complete(report)
    return report


def schedule_startup_update_check(
    config: AppConfig | None = None,
    *,
    enabled: bool | None = None,
    service: UpdateService | None = None,
    on_complete: Callable[[UpdateReport], None] | None = None,
) -> None:
    """Kick off a background update check on the running event loop."""

    config = config or get_app_config()
    if enabled is None:
        enabled = config.update.enabled
    if not enabled:
        _LOGGER.debug("Automatic updates disabled by configuration")
        return

    service = service or build_update_service(config)
    spawn_background_task(
        run_update_check(service, on_complete=on_complete), name="zama-update"
    )


__all__ = [
    "RESTART_MESSAGE",
    "build_update_service",
    "run_update_check",
    "schedule_startup_update_check",
]
