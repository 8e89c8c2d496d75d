from __future__ import annotations

import shutil
import tarfile
import zipfile
from pathlib import Path, PurePosixPath

from geckofetch.errors import ExtractionOrInstallError
from geckofetch.platform import BINARY_BASE, archive_format


def _is_binary_member(name: str) -> bool:
    return PurePosixPath(name).name in {BINARY_BASE, f"{BINARY_BASE}.exe"}


def _extract_tar(archive_path: Path, dest_dir: Path) -> str:
    with tarfile.open(archive_path, "r:gz") as tar:
        for member in tar.getmembers():
            if not member.isfile() or not _is_binary_member(member.name):
                continue
            source = tar.extractfile(member)
            if source is None:
                continue
            filename = PurePosixPath(member.name).name
            with source, (dest_dir / filename).open("wb") as target:
                shutil.copyfileobj(source, target)
            return filename
    raise ExtractionOrInstallError(
        "Extraction failed.", f"No {BINARY_BASE} binary found in {archive_path.name}."
    )


def _extract_zip(archive_path: Path, dest_dir: Path) -> str:
    with zipfile.ZipFile(archive_path) as archive:
        for info in archive.infolist():
            if info.is_dir() or not _is_binary_member(info.filename):
                continue
            filename = PurePosixPath(info.filename).name
            with archive.open(info) as source, (dest_dir / filename).open("wb") as target:
                shutil.copyfileobj(source, target)
            return filename
    raise ExtractionOrInstallError(
        "Extraction failed.", f"No {BINARY_BASE} binary found in {archive_path.name}."
    )


def extract(archive_path: Path, slug: str, dest_dir: Path) -> str:
    """Extract the driver binary from ``archive_path`` into ``dest_dir``.

    The archive format is inferred from the slug suffix. Only the binary
    member is written, flattened to ``dest_dir``; its filename is returned.
    """
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        fmt = archive_format(slug)
        if fmt == "zip":
            return _extract_zip(archive_path, dest_dir)
        if fmt == "tar.gz":
            return _extract_tar(archive_path, dest_dir)
    except (tarfile.TarError, zipfile.BadZipFile, EOFError) as exc:
        raise ExtractionOrInstallError(
            "Extraction failed.", f"{archive_path.name} is not a valid archive."
        ) from exc
    except OSError as exc:
        raise ExtractionOrInstallError(
            "Extraction failed.", f"Could not unpack {archive_path.name} into {dest_dir}."
        ) from exc
    raise ExtractionOrInstallError("Unknown archive format.", f"Cannot unpack slug: {slug}")
