from __future__ import annotations

import json

from geckofetch import config, download
from geckofetch.config import TransportOptions
from geckofetch.errors import DownloadError, VersionResolutionError

GITHUB_API_ROOT = "https://api.github.com/repos"
GECKODRIVER_REPO = "mozilla/geckodriver"
LATEST_RELEASE_URL = f"{GITHUB_API_ROOT}/{GECKODRIVER_REPO}/releases/latest"


def _github_headers() -> dict[str, str]:
    headers = {"Accept": "application/vnd.github+json"}
    token = config.github_token()
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def fetch_latest_tag(
    transport: TransportOptions | None = None,
    url: str = LATEST_RELEASE_URL,
    timeout: float = 30.0,
) -> str:
    try:
        body = download.download(url, transport, headers=_github_headers(), timeout=timeout)
    except DownloadError as exc:
        raise VersionResolutionError(
            "Failed to query the latest Geckodriver release.", url, exc.hint
        ) from exc

    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise VersionResolutionError(
            "Invalid GitHub response.", url, f"Response from {url} is not JSON."
        ) from exc

    tag = payload.get("tag_name") if isinstance(payload, dict) else None
    if not isinstance(tag, str) or not tag.strip():
        raise VersionResolutionError(
            'GitHub release JSON property "tag_name" is not defined.',
            url,
            f"Unable to discover the latest version from {url}. Pass a version explicitly.",
        )
    return tag
