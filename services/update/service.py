"""Service responsible for discovering and installing updates."""

from __future__ import annotations

import logging
from pathlib import Path

from services.update.installers import Installer
from services.update.models import UninstallError
from services.update.providers import ReleaseProvider, get_current_version
from services.update.uninstall import Uninstaller
from services.update.versioning import is_update_available


_LOGGER = logging.getLogger(__name__)


class UpdateService:
    """Coordinate version discovery, removal of the old build and installation."""

    def __init__(
        self,
        provider: ReleaseProvider,
        installer: Installer,
        uninstaller: Uninstaller,
        *,
        version_file: str | Path | None = None,
    ) -> None:
        self._provider = provider
        self._installer = installer
        self._uninstaller = uninstaller
        self._version_file = version_file

    def get_current_version(self) -> str:
        return get_current_version(self._version_file)

    async def get_available_version(self) -> str | None:
        """Return the published version when it is newer than the installed one."""

        current_version = self.get_current_version()
        _LOGGER.info("Current version: %s", current_version)
        latest_version = await self._provider.fetch_latest()
        _LOGGER.info("Latest version available: %s", latest_version)

        if not is_update_available(current_version, latest_version):
            _LOGGER.info("Current version %s is up to date", current_version)
            return None

        _LOGGER.info("Update available: %s -> %s", current_version, latest_version)
        return latest_version

    async def download_and_install(self, version: str) -> None:
        """Remove the installed build, then download and run the installer."""

        _LOGGER.info("Preparing update installation for version %s", version)
        try:
            removed = await self._uninstaller.uninstall()
        except UninstallError as exc:
            # A missing or stuck bundle must not block a fresh install.
            _LOGGER.warning("Uninstall failed (%s): %s; continuing with install", exc.kind.value, exc)
        else:
            _LOGGER.info("Removed previous installation at %s", removed)

        await self._installer.install(version)
        _LOGGER.info("Installed version %s", version)

    async def check_for_updates(self) -> bool:
        version = await self.get_available_version()
        if version is None:
            return False

        await self.download_and_install(version)
        return True
