from __future__ import annotations

import contextlib
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from geckofetch import archive, download, platform
from geckofetch.config import RunOptions
from geckofetch.download import DownloadProgressCallback
from geckofetch.errors import ExtractionOrInstallError, GeckofetchError
from geckofetch.platform import OSBucket

StatusCallback = Callable[[OSBucket, str], None]
ErrorCallback = Callable[[OSBucket, GeckofetchError], None]
NoticeCallback = Callable[[str], None]

EXECUTABLE_MODE = 0o755


@dataclass(frozen=True)
class Attempt:
    bucket: OSBucket
    path: Path | None = None
    error: GeckofetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def reason(self) -> str | None:
        return self.error.format() if self.error is not None else None


@dataclass
class RunResult:
    version: str
    options: RunOptions
    attempts: list[Attempt] = field(default_factory=list)

    @property
    def succeeded(self) -> list[str]:
        return [attempt.bucket.name for attempt in self.attempts if attempt.ok]

    @property
    def failed(self) -> list[str]:
        return [attempt.bucket.name for attempt in self.attempts if not attempt.ok]


def download_archive(
    version: str,
    bucket: OSBucket,
    options: RunOptions,
    on_download: DownloadProgressCallback | None = None,
) -> Path:
    url = platform.archive_url(version, bucket.slug)
    destination = options.output_directory / url.rsplit("/", 1)[-1]
    download.download_to(url, destination, options.transport(), on_progress=on_download)
    return destination


def extract_binary(archive_path: Path, bucket: OSBucket, directory: Path) -> str:
    return archive.extract(archive_path, bucket.slug, directory)


def install_binary(binary_name: str, bucket: OSBucket, directory: Path) -> Path:
    source = directory / binary_name
    target = directory / platform.installed_name(binary_name, bucket)
    try:
        os.replace(source, target)
        # Interrupted here, the binary lacks its execute bit; re-running fixes it.
        target.chmod(EXECUTABLE_MODE)
    except OSError as exc:
        raise ExtractionOrInstallError(
            "Install failed.", f"Could not place {target.name} in {directory}."
        ) from exc
    return target


def install_bucket(
    version: str,
    bucket: OSBucket,
    options: RunOptions,
    on_status: StatusCallback | None = None,
    on_download: DownloadProgressCallback | None = None,
) -> Attempt:
    directory = options.output_directory
    try:
        if on_status is not None:
            on_status(bucket, "downloading")
        archive_path = download_archive(version, bucket, options, on_download=on_download)
        if on_status is not None:
            on_status(bucket, "extracting")
        binary_name = extract_binary(archive_path, bucket, directory)
        if on_status is not None:
            on_status(bucket, "installing")
        installed = install_binary(binary_name, bucket, directory)
    except GeckofetchError as err:
        return Attempt(bucket=bucket, error=err)
    # A leftover archive does not affect the installed binary.
    with contextlib.suppress(OSError):
        archive_path.unlink()
    if on_status is not None:
        on_status(bucket, "done")
    return Attempt(bucket=bucket, path=installed)


def run(
    version: str,
    options: RunOptions,
    host: str | None = None,
    on_status: StatusCallback | None = None,
    on_download: DownloadProgressCallback | None = None,
    on_error: ErrorCallback | None = None,
    on_notice: NoticeCallback | None = None,
) -> RunResult:
    """Install the driver for every target bucket, in table order.

    A failing bucket is recorded and reported through ``on_error`` right away;
    the remaining buckets are still processed.
    """
    raw_host = host if host is not None else platform.host_id()
    notice = platform.fallback_notice(raw_host)
    if notice and on_notice is not None:
        on_notice(notice)

    result = RunResult(version=version, options=options)
    for bucket in platform.targets(raw_host, options.install_all):
        attempt = install_bucket(
            version, bucket, options, on_status=on_status, on_download=on_download
        )
        if attempt.error is not None and on_error is not None:
            on_error(bucket, attempt.error)
        result.attempts.append(attempt)
    return result
