from __future__ import annotations


class GeckofetchError(Exception):
    """Base exception with user-facing remediation text."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def format(self) -> str:
        if self.hint:
            return f"{self.message} {self.hint}"
        return self.message


class UnsupportedPlatformError(GeckofetchError):
    pass


class VersionResolutionError(GeckofetchError):
    """Latest release could not be determined; aborts the whole run."""

    def __init__(self, message: str, url: str, hint: str | None = None) -> None:
        super().__init__(message, hint)
        self.url = url


class DownloadError(GeckofetchError):
    pass


class ExtractionOrInstallError(GeckofetchError):
    pass
