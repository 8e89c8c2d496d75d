from __future__ import annotations

import io
import os
import stat
import tarfile
import zipfile
from pathlib import Path
from unittest import mock

import pytest

from geckofetch import installer
from geckofetch.config import RunOptions
from geckofetch.errors import DownloadError, ExtractionOrInstallError, GeckofetchError


def _fake_archive(_url: str, destination: Path, _transport=None, on_progress=None) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    if destination.name.endswith(".zip"):
        with zipfile.ZipFile(destination, "w") as zf:
            zf.writestr("geckodriver.exe", b"pe")
    else:
        with tarfile.open(destination, "w:gz") as tar:
            info = tarfile.TarInfo("geckodriver")
            info.size = 3
            tar.addfile(info, io.BytesIO(b"elf"))
    if on_progress is not None:
        on_progress(3, 3)


def _failing_for(slug_part: str):
    def fake(url: str, destination: Path, transport=None, on_progress=None) -> None:
        if slug_part in url:
            raise DownloadError("Download failed.", f"Could not fetch: {url}")
        _fake_archive(url, destination, transport, on_progress)

    return fake


def test_run_all_installs_every_bucket_in_order(tmp_path: Path) -> None:
    options = RunOptions.build(install_all=True, output_directory=tmp_path)
    statuses: list[tuple[str, str]] = []

    with mock.patch("geckofetch.installer.download.download_to", side_effect=_fake_archive) as dl:
        result = installer.run(
            "v0.33.0",
            options,
            host="win",
            on_status=lambda bucket, stage: statuses.append((bucket.name, stage)),
        )

    assert [a.bucket.name for a in result.attempts] == ["linux", "mac", "windows"]
    assert result.succeeded == ["linux", "mac", "windows"]
    assert result.failed == []
    assert [call.args[0] for call in dl.call_args_list] == [
        "https://github.com/mozilla/geckodriver/releases/download/v0.33.0/geckodriver-v0.33.0-linux64.tar.gz",
        "https://github.com/mozilla/geckodriver/releases/download/v0.33.0/geckodriver-v0.33.0-macos.tar.gz",
        "https://github.com/mozilla/geckodriver/releases/download/v0.33.0/geckodriver-v0.33.0-win64.zip",
    ]
    assert sorted(p.name for p in tmp_path.iterdir()) == [
        "geckodriver-linux",
        "geckodriver-mac",
        "geckodriver-windows.exe",
    ]
    assert statuses[:4] == [
        ("linux", "downloading"),
        ("linux", "extracting"),
        ("linux", "installing"),
        ("linux", "done"),
    ]


def test_installed_binary_is_executable(tmp_path: Path) -> None:
    options = RunOptions.build(output_directory=tmp_path)

    with mock.patch("geckofetch.installer.download.download_to", side_effect=_fake_archive):
        result = installer.run("v0.33.0", options, host="linux")

    (attempt,) = result.attempts
    assert attempt.path == tmp_path / "geckodriver-linux"
    assert stat.S_IMODE(attempt.path.stat().st_mode) == 0o755
    assert attempt.path.read_bytes() == b"elf"


def test_run_host_only_attempts_single_bucket(tmp_path: Path) -> None:
    options = RunOptions.build(output_directory=tmp_path)
    notices: list[str] = []

    with mock.patch("geckofetch.installer.download.download_to", side_effect=_fake_archive) as dl:
        result = installer.run("v0.33.0", options, host="mac-arm", on_notice=notices.append)

    assert [a.bucket.name for a in result.attempts] == ["mac"]
    assert dl.call_count == 1
    assert notices == ["ARM based macOS detected. Falling back to Intel build of Geckodriver."]


def test_run_detects_host_when_not_given(tmp_path: Path) -> None:
    options = RunOptions.build(output_directory=tmp_path)

    with mock.patch("geckofetch.installer.platform.host_id", return_value="mac-intel"), mock.patch(
        "geckofetch.installer.download.download_to", side_effect=_fake_archive
    ):
        result = installer.run("v0.33.0", options)

    assert result.succeeded == ["mac"]


def test_run_continues_after_failed_bucket(tmp_path: Path) -> None:
    options = RunOptions.build(install_all=True, output_directory=tmp_path)
    errors: list[tuple[str, GeckofetchError]] = []

    with mock.patch(
        "geckofetch.installer.download.download_to", side_effect=_failing_for("macos")
    ) as dl:
        result = installer.run(
            "v0.33.0",
            options,
            host="linux",
            on_error=lambda bucket, err: errors.append((bucket.name, err)),
        )

    assert dl.call_count == 3
    assert [a.bucket.name for a in result.attempts] == ["linux", "mac", "windows"]
    assert result.failed == ["mac"]
    assert result.succeeded == ["linux", "windows"]
    assert [name for name, _ in errors] == ["mac"]
    assert isinstance(errors[0][1], DownloadError)
    assert result.attempts[1].reason is not None
    assert "macos" in result.attempts[1].reason


def test_extraction_failure_is_recorded(tmp_path: Path) -> None:
    options = RunOptions.build(output_directory=tmp_path)

    def broken(_url: str, destination: Path, _transport=None, on_progress=None) -> None:
        destination.write_bytes(b"garbage")

    with mock.patch("geckofetch.installer.download.download_to", side_effect=broken):
        result = installer.run("v0.33.0", options, host="linux")

    assert result.failed == ["linux"]
    assert "Extraction failed" in (result.attempts[0].reason or "")


def test_archive_removed_after_install(tmp_path: Path) -> None:
    options = RunOptions.build(output_directory=tmp_path)

    with mock.patch("geckofetch.installer.download.download_to", side_effect=_fake_archive):
        installer.run("v0.33.0", options, host="win")

    assert [p.name for p in tmp_path.iterdir()] == ["geckodriver-windows.exe"]


def test_reinstall_replaces_previous_binary(tmp_path: Path) -> None:
    options = RunOptions.build(output_directory=tmp_path)
    (tmp_path / "geckodriver-linux").write_bytes(b"old")

    with mock.patch("geckofetch.installer.download.download_to", side_effect=_fake_archive):
        result = installer.run("v0.33.0", options, host="linux")

    assert result.succeeded == ["linux"]
    assert (tmp_path / "geckodriver-linux").read_bytes() == b"elf"


def test_unsupported_host_without_all_is_fatal(tmp_path: Path) -> None:
    options = RunOptions.build(output_directory=tmp_path)

    with mock.patch("geckofetch.installer.download.download_to") as dl:
        with pytest.raises(GeckofetchError, match="Unsupported OS"):
            installer.run("v0.33.0", options, host="freebsd")
    dl.assert_not_called()


def test_run_all_with_unsupported_proxy_records_every_bucket(tmp_path: Path) -> None:
    options = RunOptions.build(install_all=True, proxy="ftp://127.0.0.1:1", output_directory=tmp_path)
    errors: list[str] = []

    result = installer.run(
        "v0.33.0", options, host="linux", on_error=lambda bucket, _err: errors.append(bucket.name)
    )

    assert [a.bucket.name for a in result.attempts] == ["linux", "mac", "windows"]
    assert result.failed == ["linux", "mac", "windows"]
    assert errors == ["linux", "mac", "windows"]
    assert all(isinstance(a.error, DownloadError) for a in result.attempts)


def test_run_all_with_malformed_version_records_every_bucket(tmp_path: Path) -> None:
    options = RunOptions.build(install_all=True, output_directory=tmp_path)

    result = installer.run("v0.33.0\x00", options, host="linux")

    assert [a.bucket.name for a in result.attempts] == ["linux", "mac", "windows"]
    assert result.failed == ["linux", "mac", "windows"]
    assert "Invalid download URL" in (result.attempts[0].reason or "")


def test_install_stage_failure_continues_to_next_bucket(tmp_path: Path) -> None:
    options = RunOptions.build(install_all=True, output_directory=tmp_path)
    real_replace = os.replace

    def flaky_replace(source, target) -> None:
        if Path(target).name == "geckodriver-linux":
            raise OSError("device busy")
        real_replace(source, target)

    with mock.patch("geckofetch.installer.download.download_to", side_effect=_fake_archive), mock.patch(
        "geckofetch.installer.os.replace", side_effect=flaky_replace
    ):
        result = installer.run("v0.33.0", options, host="linux")

    assert result.failed == ["linux"]
    assert result.succeeded == ["mac", "windows"]
    assert isinstance(result.attempts[0].error, ExtractionOrInstallError)
    assert "Install failed" in (result.attempts[0].reason or "")


def test_chmod_failure_is_recorded(tmp_path: Path) -> None:
    options = RunOptions.build(output_directory=tmp_path)

    with mock.patch("geckofetch.installer.download.download_to", side_effect=_fake_archive), mock.patch.object(
        Path, "chmod", side_effect=OSError("read-only filesystem")
    ):
        result = installer.run("v0.33.0", options, host="linux")

    assert result.failed == ["linux"]
    assert isinstance(result.attempts[0].error, ExtractionOrInstallError)
    # The rename already happened; only the execute bit is missing.
    assert (tmp_path / "geckodriver-linux").exists()


def test_archive_cleanup_failure_is_not_fatal(tmp_path: Path) -> None:
    options = RunOptions.build(output_directory=tmp_path)

    with mock.patch("geckofetch.installer.download.download_to", side_effect=_fake_archive), mock.patch.object(
        Path, "unlink", side_effect=OSError("locked")
    ):
        result = installer.run("v0.33.0", options, host="linux")

    assert result.succeeded == ["linux"]
    assert (tmp_path / "geckodriver-linux").exists()
    assert (tmp_path / "geckodriver-v0.33.0-linux64.tar.gz").exists()
