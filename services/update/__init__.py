"""Public API for the update service package."""

from __future__ import annotations

from services.update.builder import (
    RESTART_MESSAGE,
    build_update_service,
    run_update_check,
    schedule_startup_update_check,
)
from services.update.constants import (
    APP_BUNDLE_NAME,
    INSTALL_PATH_ENV,
    INSTALLER_SCRIPT_URL,
    MANIFEST_URL,
)
from services.update.installers import Installer, ScriptInstaller
from services.update.models import (
    InstallError,
    InstallErrorKind,
    InstallerScript,
    ScriptFetchError,
    ScriptFetchErrorKind,
    UninstallError,
    UninstallErrorKind,
    UpdateError,
    UpdateReport,
    UpdateStatus,
    VersionErrorKind,
    VersionLookupError,
)
from services.update.providers import (
    ManifestReleaseProvider,
    ReleaseProvider,
    get_current_version,
    get_latest_version,
)
from services.update.script_fetcher import cleanup_script, fetch_installer_script, persist_script
from services.update.service import UpdateService
from services.update.uninstall import TrashUninstaller, Uninstaller, escape_applescript_string
from services.update.versioning import compare_versions, is_update_available, parse_semantic_version

__all__ = [
    "APP_BUNDLE_NAME",
    "INSTALL_PATH_ENV",
    "INSTALLER_SCRIPT_URL",
    "MANIFEST_URL",
    "RESTART_MESSAGE",
    "InstallError",
    "InstallErrorKind",
    "Installer",
    "InstallerScript",
    "ManifestReleaseProvider",
    "ReleaseProvider",
    "ScriptFetchError",
    "ScriptFetchErrorKind",
    "ScriptInstaller",
    "TrashUninstaller",
    "UninstallError",
    "UninstallErrorKind",
    "Uninstaller",
    "UpdateError",
    "UpdateReport",
    "UpdateService",
    "UpdateStatus",
    "VersionErrorKind",
    "VersionLookupError",
    "build_update_service",
    "cleanup_script",
    "compare_versions",
    "escape_applescript_string",
    "fetch_installer_script",
    "get_current_version",
    "get_latest_version",
    "is_update_available",
    "parse_semantic_version",
    "persist_script",
    "run_update_check",
    "schedule_startup_update_check",
]
