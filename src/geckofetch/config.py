from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_BASE_DIR = Path.home() / ".geckofetch"


def base_dir() -> Path:
    return Path(os.environ.get("GECKOFETCH_HOME", DEFAULT_BASE_DIR)).expanduser()


def default_output_dir() -> Path:
    return base_dir() / "bin"


def github_token() -> str | None:
    token = os.environ.get("GECKOFETCH_GITHUB_TOKEN", "").strip()
    return token or None


def normalize_proxy(proxy: str | None) -> str | None:
    if proxy is None:
        return None
    proxy = proxy.strip()
    if not proxy:
        return None
    # httpx has no tcp:// transport; a plain HTTP proxy is what is meant.
    if proxy.startswith("tcp://"):
        return "http://" + proxy[len("tcp://"):]
    return proxy


@dataclass(frozen=True)
class TransportOptions:
    proxy: str | None = None
    verify: bool = True


@dataclass(frozen=True)
class RunOptions:
    output_directory: Path
    version: str | None = None
    install_all: bool = False
    proxy: str | None = None
    ssl_verify: bool = True

    @classmethod
    def build(
        cls,
        version: str | None = None,
        install_all: bool = False,
        proxy: str | None = None,
        ssl_verify: bool = True,
        output_directory: Path | None = None,
    ) -> "RunOptions":
        directory = output_directory if output_directory is not None else default_output_dir()
        return cls(
            output_directory=Path(directory).expanduser(),
            version=version or None,
            install_all=install_all,
            proxy=normalize_proxy(proxy),
            ssl_verify=ssl_verify,
        )

    def transport(self) -> TransportOptions:
        # Certificate checks are only relaxed when routing through a proxy.
        verify = self.ssl_verify if self.proxy else True
        return TransportOptions(proxy=self.proxy, verify=verify)
