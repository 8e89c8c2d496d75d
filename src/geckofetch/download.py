from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable

import httpx

from geckofetch.config import TransportOptions
from geckofetch.errors import DownloadError

DownloadProgressCallback = Callable[[int | None, int], None]


def client(transport: TransportOptions, timeout: float) -> httpx.Client:
    return httpx.Client(
        timeout=timeout,
        follow_redirects=True,
        proxy=transport.proxy,
        verify=transport.verify,
    )


def friendly_hint(exc: httpx.HTTPError, url: str) -> str:
    if isinstance(exc, httpx.ProxyError):
        return "Proxy error. Check the --proxy value or corporate proxy settings."
    if isinstance(exc, httpx.ConnectError):
        return "Network connection failed. Check internet connectivity, DNS, firewall, or VPN."
    if isinstance(exc, httpx.TimeoutException):
        return f"Timed out while fetching: {url}"
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 403 and exc.response.headers.get("x-ratelimit-remaining") == "0":
            return "GitHub API rate limit exceeded. Set GECKOFETCH_GITHUB_TOKEN or retry later."
        if status == 404:
            return f"Not found (HTTP 404): {url}. Check the version tag."
        if status in {401, 403}:
            return "GitHub request was unauthorized. Check GECKOFETCH_GITHUB_TOKEN and repository access."
        return f"Server responded with HTTP {status}: {url}"
    return f"Could not fetch: {url}"


def setup_hint(exc: Exception, url: str) -> str:
    if isinstance(exc, httpx.InvalidURL):
        return f"Invalid download URL: {url!r}. Check the version tag."
    if isinstance(exc, ImportError):
        return "Proxy support is missing. Install httpx[socks] for SOCKS proxies."
    return f"Invalid transport settings: {exc}. Check the --proxy value."


def download(
    url: str,
    transport: TransportOptions | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
) -> bytes:
    transport = transport or TransportOptions()
    try:
        with client(transport, timeout) as http:
            response = http.get(url, headers=headers or {})
            response.raise_for_status()
            return response.content
    except httpx.HTTPError as exc:
        raise DownloadError("Download failed.", friendly_hint(exc, url)) from exc
    except (httpx.InvalidURL, ValueError, ImportError) as exc:
        raise DownloadError("Download failed.", setup_hint(exc, url)) from exc


def download_to(
    url: str,
    destination: Path,
    transport: TransportOptions | None = None,
    timeout: float = 120.0,
    on_progress: DownloadProgressCallback | None = None,
) -> None:
    transport = transport or TransportOptions()
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            dir=str(destination.parent), prefix="geckodriver.", suffix=".tmp"
        )
        os.close(fd)
    except OSError as exc:
        raise DownloadError(
            "Download failed.", f"Could not write to {destination.parent}."
        ) from exc
    temp_path = Path(temp_name)

    try:
        with client(transport, timeout) as http:
            with http.stream("GET", url) as response:
                response.raise_for_status()
                total_header = response.headers.get("Content-Length")
                total_bytes = int(total_header) if total_header and total_header.isdigit() else None
                downloaded_bytes = 0
                if on_progress is not None:
                    on_progress(total_bytes, downloaded_bytes)
                with temp_path.open("wb") as fh:
                    for chunk in response.iter_bytes():
                        if chunk:
                            fh.write(chunk)
                            downloaded_bytes += len(chunk)
                            if on_progress is not None:
                                on_progress(total_bytes, downloaded_bytes)
                    fh.flush()
                    os.fsync(fh.fileno())

        os.replace(temp_path, destination)
    except httpx.HTTPError as exc:
        raise DownloadError("Download failed.", friendly_hint(exc, url)) from exc
    except (httpx.InvalidURL, ValueError, ImportError) as exc:
        raise DownloadError("Download failed.", setup_hint(exc, url)) from exc
    except OSError as exc:
        raise DownloadError("Download failed.", f"Could not save archive to {destination}.") from exc
    finally:
        if temp_path.exists():
            temp_path.unlink()
