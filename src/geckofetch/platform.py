from __future__ import annotations

import platform
from dataclasses import dataclass

from geckofetch.errors import UnsupportedPlatformError

BINARY_BASE = "geckodriver"
DOWNLOAD_URL = (
    "https://github.com/mozilla/geckodriver/releases/download/{version}/geckodriver-{version}-{os}"
)
ARM_FALLBACK_NOTICE = "ARM based macOS detected. Falling back to Intel build of Geckodriver."


@dataclass(frozen=True)
class OSBucket:
    name: str
    slug: str


# Order drives both processing order and summary order.
BUCKETS: dict[str, OSBucket] = {
    "linux": OSBucket(name="linux", slug="linux64.tar.gz"),
    "mac": OSBucket(name="mac", slug="macos.tar.gz"),
    "windows": OSBucket(name="windows", slug="win64.zip"),
}

_HOST_ALIASES = {
    "linux": "linux",
    "mac": "mac",
    "mac-intel": "mac",
    "mac-arm": "mac",
    "win": "windows",
    "windows": "windows",
}


def host_id() -> str:
    sys_name = platform.system().lower()
    machine = platform.machine().lower()

    if sys_name == "darwin":
        return "mac-arm" if machine in {"arm64", "aarch64"} else "mac-intel"
    if sys_name == "linux":
        return "linux"
    if sys_name == "windows":
        return "win"
    return sys_name


def normalize(raw_host_id: str) -> OSBucket:
    bucket_name = _HOST_ALIASES.get(raw_host_id.lower().strip())
    if bucket_name is None:
        options = ", ".join(BUCKETS)
        raise UnsupportedPlatformError(
            f"Unsupported OS: {raw_host_id}.",
            f"Supported: {options}. Use --all to install binaries for every supported OS.",
        )
    return BUCKETS[bucket_name]


def fallback_notice(raw_host_id: str) -> str | None:
    # No native ARM artifact is tracked; the Intel build runs under Rosetta.
    if raw_host_id.lower().strip() == "mac-arm":
        return ARM_FALLBACK_NOTICE
    return None


def targets(raw_host_id: str, install_all: bool) -> list[OSBucket]:
    if install_all:
        return list(BUCKETS.values())
    return [normalize(raw_host_id)]


def archive_format(slug: str) -> str | None:
    if slug.endswith(".zip"):
        return "zip"
    if slug.endswith((".tar.gz", ".tgz")):
        return "tar.gz"
    return None


def archive_url(version: str, slug: str) -> str:
    return DOWNLOAD_URL.replace("{version}", version).replace("{os}", slug)


def installed_name(binary_name: str, bucket: OSBucket) -> str:
    return binary_name.replace(BINARY_BASE, f"{BINARY_BASE}-{bucket.name}", 1)
