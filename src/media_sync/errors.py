"""Error types raised by the media sync engine and its collaborators."""
from __future__ import annotations


class MediaSyncError(Exception):
    """Base error for media synchronization."""


class ConfigError(MediaSyncError):
    """Raised when provider credentials or base URLs are missing."""

    def __init__(self, message: str, *, missing: list[str] | None = None) -> None:
        self.missing = list(missing or [])
        super().__init__(message)


class ProviderError(MediaSyncError):
    """Raised when a media provider returns a non-success or malformed response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class StorageError(MediaSyncError):
    """Raised when the local catalog rejects a read or write."""


class UnknownTargetError(MediaSyncError):
    """Raised when a sync request names a target that is not in the catalog."""
