from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx
import pytest

from services.update import (
    InstallError,
    InstallErrorKind,
    ManifestReleaseProvider,
    UninstallError,
    UninstallErrorKind,
    UpdateService,
    VersionErrorKind,
    VersionLookupError,
)
from tests.unit.update_service_test_utils import (
    RecordingInstaller,
    RecordingUninstaller,
    StaticReleaseProvider,
    missing_install_error,
    mock_client,
    write_version_file,
)


def _service(
    tmp_path: Path,
    current: str | None,
    provider: StaticReleaseProvider,
    installer: RecordingInstaller | None = None,
    uninstaller: RecordingUninstaller | None = None,
) -> UpdateService:
    if current is None:
        version_file = tmp_path / "missing.json"
    else:
        version_file = write_version_file(tmp_path, current)
    return UpdateService(
        provider,
        installer or RecordingInstaller(),
        uninstaller or RecordingUninstaller(),
        version_file=version_file,
    )


def test_newer_release_is_reported(tmp_path: Path) -> None:
    service = _service(tmp_path, "1.2.0", StaticReleaseProvider("1.3.0"))

    assert asyncio.run(service.get_available_version()) == "1.3.0"


@pytest.mark.parametrize("latest", ["1.2.0", "1.1.9", "1.2.0-rc.1", "1.2.0+build.7"])
def test_same_or_older_release_is_not_offered(tmp_path: Path, latest: str) -> None:
    service = _service(tmp_path, "1.2.0", StaticReleaseProvider(latest))

    assert asyncio.run(service.get_available_version()) is None


def test_malformed_remote_version_is_not_offered(tmp_path: Path) -> None:
    service = _service(tmp_path, "1.2.0", StaticReleaseProvider("latest"))

    assert asyncio.run(service.get_available_version()) is None


def test_missing_version_file_fails_before_any_network_call(tmp_path: Path) -> None:
    provider = StaticReleaseProvider("1.3.0")
    service = _service(tmp_path, None, provider)

    with pytest.raises(VersionLookupError) as excinfo:
        asyncio.run(service.get_available_version())

    assert excinfo.value.kind is VersionErrorKind.CONFIG_MISSING
    assert provider.calls == 0


def test_network_failure_propagates(tmp_path: Path) -> None:
    provider = StaticReleaseProvider(
        error=VersionLookupError(VersionErrorKind.NETWORK_ERROR, "connection refused")
    )
    service = _service(tmp_path, "1.2.0", provider)

    with pytest.raises(VersionLookupError) as excinfo:
        asyncio.run(service.check_for_updates())

    assert excinfo.value.kind is VersionErrorKind.NETWORK_ERROR


def test_check_for_updates_uninstalls_then_installs(tmp_path: Path) -> None:
    order: list[str] = []

    class OrderedUninstaller(RecordingUninstaller):
        async def uninstall(self) -> Path:
            order.append("uninstall")
            return await super().uninstall()

    class OrderedInstaller(RecordingInstaller):
        async def install(self, version: str) -> None:
            order.append("install")
            await super().install(version)

    installer = OrderedInstaller()
    service = _service(
        tmp_path, "1.2.0", StaticReleaseProvider("1.3.0"), installer, OrderedUninstaller()
    )

    assert asyncio.run(service.check_for_updates()) is True
    assert order == ["uninstall", "install"]
    assert installer.installed == ["1.3.0"]


def test_up_to_date_check_touches_nothing(tmp_path: Path) -> None:
    installer = RecordingInstaller()
    uninstaller = RecordingUninstaller()
    service = _service(tmp_path, "1.3.0", StaticReleaseProvider("1.3.0"), installer, uninstaller)

    assert asyncio.run(service.check_for_updates()) is False
    assert installer.installed == []
    assert uninstaller.calls == 0


def test_missing_installation_does_not_block_install(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    installer = RecordingInstaller()
    uninstaller = RecordingUninstaller(error=missing_install_error())
    service = _service(tmp_path, "1.2.0", StaticReleaseProvider("1.3.0"), installer, uninstaller)

    with caplog.at_level(logging.WARNING, logger="services.update.service"):
        assert asyncio.run(service.check_for_updates()) is True

    assert uninstaller.calls == 1
    assert installer.installed == ["1.3.0"]
    assert "Uninstall failed (not_found)" in caplog.text


def test_failed_trash_move_does_not_block_install(tmp_path: Path) -> None:
    installer = RecordingInstaller()
    uninstaller = RecordingUninstaller(
        error=UninstallError(UninstallErrorKind.TRASH_MOVE_FAILED, "Finder refused", returncode=1)
    )
    service = _service(tmp_path, "1.2.0", StaticReleaseProvider("1.3.0"), installer, uninstaller)

    asyncio.run(service.download_and_install("1.3.0"))

    assert installer.installed == ["1.3.0"]


def test_install_failure_propagates(tmp_path: Path) -> None:
    installer = RecordingInstaller(error=InstallError(InstallErrorKind.INSTALL_FAILED, "exit code 1"))
    service = _service(tmp_path, "1.2.0", StaticReleaseProvider("1.3.0"), installer)

    with pytest.raises(InstallError):
        asyncio.run(service.check_for_updates())


def test_version_discovery_is_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    service = _service(tmp_path, "1.2.0", StaticReleaseProvider("1.3.0"))

    with caplog.at_level(logging.INFO, logger="services.update.service"):
        asyncio.run(service.get_available_version())

    assert "Current version: 1.2.0" in caplog.text
    assert "Latest version available: 1.3.0" in caplog.text
    assert "Update available: 1.2.0 -> 1.3.0" in caplog.text


def test_service_reads_manifest_over_http(tmp_path: Path) -> None:
    url = "https://example.invalid/pkg/version.json"
    requests: list[str] = []
    client = mock_client({url: httpx.Response(200, json={"version": "2.0.0"})}, requests)
    service = UpdateService(
        ManifestReleaseProvider(url, client=client),
        RecordingInstaller(),
        RecordingUninstaller(),
        version_file=write_version_file(tmp_path, "1.9.9"),
    )

    assert asyncio.run(service.get_available_version()) == "2.0.0"
    assert requests == [url]
