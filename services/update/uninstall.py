"""Move the installed application bundle to the platform trash."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Protocol, Sequence

from services.process import ProcessError, ProcessOutcome, run_process
from services.update.constants import APP_BUNDLE_NAME, INSTALL_PATH_ENV, SYSTEM_APPLICATIONS_DIR
from services.update.models import UninstallError, UninstallErrorKind


_LOGGER = logging.getLogger(__name__)

# The path is handed to the script through ``argv`` so it never becomes part
# of the AppleScript source.
_FINDER_TRASH_SCRIPT = (
    "on run argv",
    'tell application "Finder" to move (POSIX file (item 1 of argv)) to trash',
    "end run",
)

CommandRunner = Callable[[str, Sequence[str]], Awaitable[ProcessOutcome]]


class Uninstaller(Protocol):
    """Protocol describing removal of the currently installed application."""

    async def uninstall(self) -> Path:
        """Remove the installation and return the path that was removed."""


def escape_applescript_string(text: str) -> str:
    """Escape ``text`` for use inside a double-quoted AppleScript literal."""

    return text.replace("\\", "\\\\").replace('"', '\\"')


def default_candidate_paths(
    app_name: str = APP_BUNDLE_NAME, *, environ: dict[str, str] | None = None
) -> list[Path]:
    environ = os.environ if environ is None else environ
    candidates: list[Path] = []
    override = environ.get(INSTALL_PATH_ENV)
    if override:
        candidates.append(Path(override).expanduser())
    candidates.append(SYSTEM_APPLICATIONS_DIR / app_name)
    home = environ.get("HOME")
    if home:
        candidates.append(Path(home) / "Applications" / app_name)
    return candidates


def build_trash_command(path: Path, *, platform: str | None = None) -> tuple[str, ...]:
    """Return the argv that moves ``path`` to the trash on ``platform``."""

    platform = sys.platform if platform is None else platform
    if platform == "darwin":
        command: list[str] = ["osascript"]
        for line in _FINDER_TRASH_SCRIPT:
            command.extend(["-e", line])
        command.append(str(path))
        return tuple(command)
    return ("gio", "trash", "--", str(path))


def describe_trash_command(path: Path, *, platform: str | None = None) -> str:
    platform = sys.platform if platform is None else platform
    if platform == "darwin":
        return f'tell app "Finder" to move POSIX file "{escape_applescript_string(str(path))}" to trash'
    return f"gio trash -- {path}"


class TrashUninstaller:
    """Find the installed bundle and move it to the trash."""

    def __init__(
        self,
        candidates: Iterable[Path] | None = None,
        *,
        platform: str | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._candidates = list(candidates) if candidates is not None else None
        self._platform = platform
        self._runner = runner or _run_command

    @property
    def candidates(self) -> list[Path]:
        if self._candidates is not None:
            return list(self._candidates)
        return default_candidate_paths()

    def find_installation(self) -> Path | None:
        for candidate in self.candidates:
            if candidate.exists():
                return candidate
        return None

    async def uninstall(self) -> Path:
        app_path = self.find_installation()
        if app_path is None:
            raise UninstallError(
                UninstallErrorKind.NOT_FOUND,
                f"{APP_BUNDLE_NAME} not found in common application directories",
            )

        _LOGGER.info("Found installed application at %s", app_path)
        _LOGGER.debug("Trash request: %s", describe_trash_command(app_path, platform=self._platform))
        command = build_trash_command(app_path, platform=self._platform)
        try:
            outcome = await self._runner(command[0], command[1:])
        except ProcessError as exc:
            raise UninstallError(
                UninstallErrorKind.TRASH_MOVE_FAILED,
                f"Failed to run trash command for {app_path}: {exc}",
                path=app_path,
            ) from exc

        if not outcome.exit_success:
            raise UninstallError(
                UninstallErrorKind.TRASH_MOVE_FAILED,
                f"Failed to move {app_path} to Trash ({outcome.exit_status}): {outcome.tail()}",
                path=app_path,
                returncode=outcome.returncode,
            )

        _LOGGER.info("Moved %s to Trash", app_path)
        return app_path


async def _run_command(command: str, args: Sequence[str]) -> ProcessOutcome:
    return await run_process(command, args)


__all__ = [
    "TrashUninstaller",
    "Uninstaller",
    "build_trash_command",
    "default_candidate_paths",
    "describe_trash_command",
    "escape_applescript_string",
]
