"""Download, validate and stage the installer shell script."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import httpx

from services.update.constants import (
    INSTALLER_SCRIPT_MODE,
    INSTALLER_SCRIPT_NAME,
    INSTALLER_TEMP_PREFIX,
    SCRIPT_INTERPRETER_DIRECTIVE,
)
from services.update.models import InstallerScript, ScriptFetchError, ScriptFetchErrorKind
from shared.http import client_session


_LOGGER = logging.getLogger(__name__)

__all__ = ["cleanup_script", "fetch_installer_script", "persist_script", "validate_script"]


async def fetch_installer_script(
    url: str, *, client: httpx.AsyncClient | None = None
) -> InstallerScript:
    """Download the installer at ``url`` and refuse anything that is not a script."""

    _LOGGER.info("Downloading installer script from %s", url)
    try:
        async with client_session(client) as session:
            response = await session.get(url)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise ScriptFetchError(
            ScriptFetchErrorKind.DOWNLOAD_FAILED,
            f"Failed to download installer script: {exc}",
            url=url,
        ) from exc

    return validate_script(url, response.content)


def validate_script(url: str, content: bytes) -> InstallerScript:
    """Return an :class:`InstallerScript` when ``content`` starts with ``#!``."""

    if not content.startswith(SCRIPT_INTERPRETER_DIRECTIVE):
        raise ScriptFetchError(
            ScriptFetchErrorKind.UNTRUSTED_CONTENT,
            "Downloaded installer does not start with an interpreter directive",
            url=url,
        )
    return InstallerScript(url=url, content=content)


def persist_script(script: InstallerScript) -> Path:
    """Write ``script`` into a new private directory and make it executable."""

    target_dir = Path(tempfile.mkdtemp(prefix=INSTALLER_TEMP_PREFIX))
    target_path = target_dir / INSTALLER_SCRIPT_NAME
    try:
        fd = os.open(target_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "wb") as destination:
            destination.write(script.content)
        if os.name == "posix":
            os.chmod(target_path, INSTALLER_SCRIPT_MODE)
    except BaseException:
        cleanup_script(target_path)
        raise
    _LOGGER.debug("Installer script stored at %s", target_path)
    return target_path


def cleanup_script(path: Path) -> None:
    """Remove a staged script and its private directory, logging any failure."""

    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError:
        _LOGGER.warning("Unable to remove installer script at %s", path, exc_info=True)
        return

    try:
        path.parent.rmdir()
    except FileNotFoundError:
        return
    except OSError:
        _LOGGER.warning("Unable to remove installer directory %s", path.parent, exc_info=True)
