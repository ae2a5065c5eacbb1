"""Application-wide configuration loaded from JSON resources."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from importlib import resources
from math import isfinite
from pathlib import Path
from typing import Any, Mapping, Tuple

from services.server.health import (
    DEFAULT_CONFIRM_TIMEOUT,
    DEFAULT_GRACE_PERIOD,
    DEFAULT_HEALTH_URL,
    DEFAULT_LAUNCH_COMMAND,
    DEFAULT_PROBE_TIMEOUT,
)

_CONFIG_RESOURCE = "app.json"
_APP_CONFIG_CACHE: AppConfig | None = None

VERSION_FILE_ENV = "ZAMA_VERSION_FILE"
MANIFEST_URL_ENV = "ZAMA_MANIFEST_URL"
INSTALLER_URL_ENV = "ZAMA_INSTALLER_URL"
OLLAMA_URL_ENV = "ZAMA_OLLAMA_URL"
OLLAMA_BIN_ENV = "ZAMA_OLLAMA_BIN"

_DEFAULT_VERSION_FILE = "pkg/version.json"
_DEFAULT_MANIFEST_URL = "https://raw.githubusercontent.com/myferr/zama/main/pkg/version.json"
_DEFAULT_INSTALLER_URL = "https://raw.githubusercontent.com/myferr/zama/main/scripts/install.sh"
_DEFAULT_EXECUTABLE = DEFAULT_LAUNCH_COMMAND[0]
_DEFAULT_SERVE_ARGS = tuple(DEFAULT_LAUNCH_COMMAND[1:])


@dataclass(frozen=True)
class UpdateConfig:
    """Where version records and the installer script are read from."""

    enabled: bool
    version_file: Path
    manifest_url: str
    installer_url: str


@dataclass(frozen=True)
class ServerConfig:
    """How the local inference server is probed and launched."""

    health_url: str
    executable: str
    serve_args: Tuple[str, ...]
    probe_timeout: float
    grace_period: float
    confirm_timeout: float

    @property
    def launch_command(self) -> Tuple[str, ...]:
        return (self.executable, *self.serve_args)


@dataclass(frozen=True)
class AppConfig:
    """Structured configuration values for the supervisor."""

    update: UpdateConfig
    server: ServerConfig


def get_app_config() -> AppConfig:
    """Return the cached application configuration."""

    global _APP_CONFIG_CACHE
    if _APP_CONFIG_CACHE is None:
        _APP_CONFIG_CACHE = load_app_config()
    return _APP_CONFIG_CACHE


def reset_app_config_cache() -> None:
    """Reset the cached configuration for subsequent reloads."""

    global _APP_CONFIG_CACHE
    _APP_CONFIG_CACHE = None


def load_app_config(
    path: str | Path | None = None, *, environ: Mapping[str, str] | None = None
) -> AppConfig:
    """Load configuration from ``path`` or the bundled JSON resource.

    Environment variables take precedence over values read from JSON.
    """

    environ = os.environ if environ is None else environ
    data = _read_config_data(path)
    update_section = data.get("update") if isinstance(data, Mapping) else None
    server_section = data.get("server") if isinstance(data, Mapping) else None
    return AppConfig(
        update=_parse_update_section(update_section, environ),
        server=_parse_server_section(server_section, environ),
    )


def _read_config_data(path: str | Path | None) -> Mapping[str, Any]:
    if path is not None:
        return _load_json_from_path(Path(path).expanduser())
    return _load_default_config_data()


def _load_json_from_path(path: Path) -> Mapping[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    return _parse_json(raw)


def _load_default_config_data() -> Mapping[str, Any]:
    try:
        resource = resources.files(__package__).joinpath(_CONFIG_RESOURCE)
        raw = resource.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return {}
    return _parse_json(raw)


def _parse_json(raw: str) -> Mapping[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if isinstance(parsed, Mapping):
        return parsed
    return {}


def _parse_update_section(
    section: Mapping[str, Any] | None, environ: Mapping[str, str]
) -> UpdateConfig:
    if not isinstance(section, Mapping):
        section = {}
    version_file = environ.get(VERSION_FILE_ENV) or _coerce_text(
        section.get("version_file"), default=_DEFAULT_VERSION_FILE
    )
    manifest_url = environ.get(MANIFEST_URL_ENV) or _coerce_url(
        section.get("manifest_url"), default=_DEFAULT_MANIFEST_URL
    )
    installer_url = environ.get(INSTALLER_URL_ENV) or _coerce_url(
        section.get("installer_url"), default=_DEFAULT_INSTALLER_URL
    )
    return UpdateConfig(
        enabled=_coerce_bool(section.get("enabled"), default=True),
        version_file=Path(version_file).expanduser(),
        manifest_url=manifest_url,
        installer_url=installer_url,
    )


def _parse_server_section(
    section: Mapping[str, Any] | None, environ: Mapping[str, str]
) -> ServerConfig:
    if not isinstance(section, Mapping):
        section = {}
    health_url = environ.get(OLLAMA_URL_ENV) or _coerce_url(
        section.get("health_url"), default=DEFAULT_HEALTH_URL
    )
    executable = environ.get(OLLAMA_BIN_ENV) or _coerce_text(
        section.get("executable"), default=_DEFAULT_EXECUTABLE
    )
    return ServerConfig(
        health_url=health_url,
        executable=executable,
        serve_args=_coerce_args(section.get("serve_args"), default=_DEFAULT_SERVE_ARGS),
        probe_timeout=_coerce_positive_float(
            section.get("probe_timeout"), default=DEFAULT_PROBE_TIMEOUT
        ),
        grace_period=_coerce_non_negative_float(
            section.get("grace_period"), default=DEFAULT_GRACE_PERIOD
        ),
        confirm_timeout=_coerce_positive_float(
            section.get("confirm_timeout"), default=DEFAULT_CONFIRM_TIMEOUT
        ),
    )


def _coerce_text(value: Any, *, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _coerce_url(value: Any, *, default: str) -> str:
    text = _coerce_text(value, default=default)
    if not text.startswith(("https://", "http://")):
        return default
    return text


def _coerce_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    return default


def _coerce_args(value: Any, *, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return default
    if not all(isinstance(item, str) for item in value):
        return default
    return tuple(value)


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        candidate = float(value)
    elif isinstance(value, str):
        try:
            candidate = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not isfinite(candidate):
        return None
    return candidate


def _coerce_positive_float(value: Any, *, default: float) -> float:
    candidate = _coerce_float(value)
    if candidate is None or candidate <= 0:
        return default
    return candidate


def _coerce_non_negative_float(value: Any, *, default: float) -> float:
    candidate = _coerce_float(value)
    if candidate is None or candidate < 0:
        return default
    return candidate
