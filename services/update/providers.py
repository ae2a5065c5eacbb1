"""Sources for the installed and the latest published application version."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

import httpx

from services.update.constants import DEFAULT_VERSION_FILE, MANIFEST_URL
from services.update.models import VersionErrorKind, VersionLookupError
from shared.http import client_session


_LOGGER = logging.getLogger(__name__)


class ReleaseProvider(Protocol):
    """Protocol describing sources of the latest published version."""

    async def fetch_latest(self) -> str:
        """Return the newest published version string."""


def resolve_version_file(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()
    return DEFAULT_VERSION_FILE


def get_current_version(path: str | Path | None = None) -> str:
    """Read the installed version from the local version record.

    The string is returned exactly as stored.
    """

    version_path = resolve_version_file(path)
    try:
        content = version_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise VersionLookupError(
            VersionErrorKind.CONFIG_MISSING,
            f"Failed to read {version_path}: {exc}",
            path=version_path,
        ) from exc
    except UnicodeDecodeError as exc:
        raise VersionLookupError(
            VersionErrorKind.CONFIG_MALFORMED,
            f"Failed to decode {version_path}: {exc}",
            path=version_path,
        ) from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise VersionLookupError(
            VersionErrorKind.CONFIG_MALFORMED,
            f"Failed to parse {version_path}: {exc}",
            path=version_path,
        ) from exc

    version = _extract_version(data)
    if version is None:
        raise VersionLookupError(
            VersionErrorKind.CONFIG_MALFORMED,
            f"Version not found in {version_path}",
            path=version_path,
        )
    return version


async def get_latest_version(
    url: str = MANIFEST_URL, *, client: httpx.AsyncClient | None = None
) -> str:
    """Fetch the published version manifest once, without retrying."""

    _LOGGER.debug("Fetching latest version manifest from %s", url)
    try:
        async with client_session(client) as session:
            response = await session.get(url)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise VersionLookupError(
            VersionErrorKind.NETWORK_ERROR,
            f"Failed to fetch latest version: {exc}",
            url=url,
        ) from exc

    try:
        data = response.json()
    except ValueError as exc:
        raise VersionLookupError(
            VersionErrorKind.REMOTE_MALFORMED,
            f"Failed to parse latest version JSON: {exc}",
            url=url,
        ) from exc

    version = _extract_version(data)
    if version is None:
        raise VersionLookupError(
            VersionErrorKind.REMOTE_MALFORMED,
            "Version not found in latest version JSON",
            url=url,
        )
    return version


class ManifestReleaseProvider:
    """Fetch the latest version from the published ``version.json`` manifest."""

    def __init__(self, url: str = MANIFEST_URL, *, client: httpx.AsyncClient | None = None) -> None:
        self._url = url
        self._client = client

    async def fetch_latest(self) -> str:
        return await get_latest_version(self._url, client=self._client)


def _extract_version(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    version = data.get("version")
    if not isinstance(version, str):
        return None
    return version


__all__ = [
    "ManifestReleaseProvider",
    "ReleaseProvider",
    "get_current_version",
    "get_latest_version",
    "resolve_version_file",
]
