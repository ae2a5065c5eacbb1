from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path() -> None:
    """Guarantee the repository root is discoverable for absolute imports."""

    root = Path(__file__).resolve().parent.parent
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_ensure_project_root_on_path()

_ZAMA_ENV_VARS = (
    "ZAMA_VERSION_FILE",
    "ZAMA_MANIFEST_URL",
    "ZAMA_INSTALLER_URL",
    "ZAMA_OLLAMA_URL",
    "ZAMA_OLLAMA_BIN",
    "ZAMA_INSTALL_PATH",
    "ZAMA_LOG_FILE",
)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Keep tests away from real user logs, config overrides and installations."""

    for name in _ZAMA_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ZAMA_LOG_DIR", str(tmp_path_factory.mktemp("logs")))

    from app.config import reset_app_config_cache

    reset_app_config_cache()
    yield
    reset_app_config_cache()
