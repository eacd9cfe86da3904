from __future__ import annotations

from typing import Optional


class ScanError(Exception):
    """Base class for errors that terminate a scan early."""


class WalkError(ScanError):
    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class ScanCancelled(WalkError):
    def __init__(self, message: str = "scan cancelled") -> None:
        super().__init__(message)


class TransportError(ScanError):
    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"request to {url} failed: {cause}")
        self.url = url
        self.cause = cause


class CheckError(ScanError):
    """An artifact check failed for a reason other than the remote request."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"check of {path} failed: {cause!r}")
        self.path = path
        self.cause = cause
