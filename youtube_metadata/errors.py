"""Exception hierarchy shared by the metadata pipeline."""

from __future__ import annotations


class MetadataError(Exception):
    """Base class for failures raised by the metadata pipeline."""


class BackendError(MetadataError):
    """Raised when yt-dlp (search or fetch) fails for a request."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class InvalidRecordError(MetadataError):
    """Raised when an info JSON document cannot be turned into a record."""


__all__ = ["BackendError", "InvalidRecordError", "MetadataError"]
