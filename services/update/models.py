"""Data models and error types used by the update service."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class VersionErrorKind(str, Enum):
    """Reasons a version record could not be obtained."""

    CONFIG_MISSING = "config_missing"
    CONFIG_MALFORMED = "config_malformed"
    NETWORK_ERROR = "network_error"
    REMOTE_MALFORMED = "remote_malformed"


class ScriptFetchErrorKind(str, Enum):
    """Reasons an installer script was refused."""

    DOWNLOAD_FAILED = "download_failed"
    UNTRUSTED_CONTENT = "untrusted_content"


class UninstallErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    TRASH_MOVE_FAILED = "trash_move_failed"


class InstallErrorKind(str, Enum):
    INSTALL_FAILED = "install_failed"


class UpdateError(RuntimeError):
    """Base class for failures raised while checking for or applying updates."""

    def __init__(
        self,
        kind: Enum,
        message: str,
        *,
        path: Path | None = None,
        url: str | None = None,
        returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.path = path
        self.url = url
        self.returncode = returncode


class VersionLookupError(UpdateError):
    """Raised when the current or latest version cannot be read."""

    kind: VersionErrorKind


class ScriptFetchError(UpdateError):
    """Raised when the installer script cannot be downloaded or is not a script."""

    kind: ScriptFetchErrorKind


class UninstallError(UpdateError):
    """Raised when the installed application could not be moved to the trash."""

    kind: UninstallErrorKind


class InstallError(UpdateError):
    """Raised when the installer script did not complete successfully."""

    kind: InstallErrorKind


@dataclass(frozen=True)
class InstallerScript:
    """Installer script content that passed the interpreter directive check."""

    url: str
    content: bytes


class UpdateStatus(str, Enum):
    UP_TO_DATE = "up_to_date"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass(frozen=True)
class UpdateReport:
    """Human readable summary of a completed background update check."""

    status: UpdateStatus
    message: str
    error_kind: str | None = None
    version: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is not UpdateStatus.FAILED
