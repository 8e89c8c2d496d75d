from __future__ import annotations

from geckofetch import github
from geckofetch.config import RunOptions


def resolve_version(explicit: str | None, options: RunOptions | None = None) -> str:
    """Return the version to install.

    An explicit version is passed through verbatim without touching the
    network. Otherwise the latest release tag is looked up on GitHub, which
    raises ``VersionResolutionError`` when no usable tag comes back.
    """
    if explicit:
        return explicit
    transport = options.transport() if options is not None else None
    return github.fetch_latest_tag(transport)
