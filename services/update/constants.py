"""Constants shared across the update service modules."""

from __future__ import annotations

from pathlib import Path

GITHUB_REPO = "myferr/zama"
RAW_BASE_URL = f"https://raw.githubusercontent.com/{GITHUB_REPO}/main"
MANIFEST_URL = f"{RAW_BASE_URL}/pkg/version.json"
INSTALLER_SCRIPT_URL = f"{RAW_BASE_URL}/scripts/install.sh"

DEFAULT_VERSION_FILE = Path("pkg") / "version.json"

APP_BUNDLE_NAME = "Zama.app"
SYSTEM_APPLICATIONS_DIR = Path("/Applications")

INSTALLER_SCRIPT_NAME = "install.sh"
INSTALLER_TEMP_PREFIX = "zama-update-"
INSTALLER_SCRIPT_MODE = 0o755
SCRIPT_INTERPRETER_DIRECTIVE = b"#!"

INSTALL_PATH_ENV = "ZAMA_INSTALL_PATH"
