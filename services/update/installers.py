"""Installer implementations that apply a downloaded update."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Protocol, Sequence

import httpx

from services.process import ProcessError, ProcessOutcome, run_process
from services.update.constants import INSTALLER_SCRIPT_URL
from services.update.models import InstallError, InstallErrorKind
from services.update.script_fetcher import cleanup_script, fetch_installer_script, persist_script

_LOGGER = logging.getLogger(__name__)

ScriptRunner = Callable[[str, Sequence[str]], Awaitable[ProcessOutcome]]


class Installer(Protocol):
    """Protocol describing the installation routine."""

    async def install(self, version: str) -> None:
        """Install ``version`` of the application."""


class ScriptInstaller:
    """Fetch the published ``install.sh`` and execute it."""

    def __init__(
        self,
        script_url: str = INSTALLER_SCRIPT_URL,
        *,
        client: httpx.AsyncClient | None = None,
        runner: ScriptRunner | None = None,
    ) -> None:
        self._script_url = script_url
        self._client = client
        self._runner = runner or _run_script

    async def install(self, version: str) -> None:
        script = await fetch_installer_script(self._script_url, client=self._client)
        try:
            script_path = persist_script(script)
        except OSError as exc:
            raise InstallError(
                InstallErrorKind.INSTALL_FAILED,
                f"Installation script could not be staged: {exc}",
                url=self._script_url,
            ) from exc
        try:
            _LOGGER.info("Running installer script for version %s", version)
            try:
                outcome = await self._runner(str(script_path), ())
            except ProcessError as exc:
                raise InstallError(
                    InstallErrorKind.INSTALL_FAILED,
                    f"Installation script could not be executed: {exc}",
                    path=script_path,
                    url=self._script_url,
                ) from exc
        finally:
            cleanup_script(script_path)

        for line in outcome.transcript:
            _LOGGER.debug("install.sh: %s", line)
        if not outcome.exit_success:
            raise InstallError(
                InstallErrorKind.INSTALL_FAILED,
                f"Installation script failed ({outcome.exit_status}): {outcome.tail()}",
                url=self._script_url,
                returncode=outcome.returncode,
            )
        _LOGGER.info("Installation script executed successfully")


async def _run_script(command: str, args: Sequence[str]) -> ProcessOutcome:
    return await run_process(command, args)


__all__ = ["Installer", "ScriptInstaller"]
