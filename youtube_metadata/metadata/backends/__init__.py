"""Search and fetch backends."""

from .base import FetchBackend, SearchBackend
from .ytdlp import YtDlpBackend

__all__ = ["FetchBackend", "SearchBackend", "YtDlpBackend"]
