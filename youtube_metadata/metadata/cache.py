"""Freshness-gated on-disk cache of yt-dlp info documents."""

from __future__ import annotations

import asyncio
import contextlib
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncIterator, Callable, Dict, List, Optional, Protocol

from .. import logging_manager as log_mgr
from ..config import HostPaths
from ..constants import CHANNEL_URL, FRESHNESS_DAYS, RECORD_FILENAME, VIDEO_URL
from ..errors import InvalidRecordError
from .backends.base import FetchBackend
from .cancellation import raise_if_cancelled
from .types import RawRecord

logger = log_mgr.get_logger().getChild("metadata.cache")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheStore(Protocol):
    """File system access used by :class:`MetadataCache`."""

    def modified_at(self, path: Path) -> Optional[datetime]:
        """Return the last write time of ``path`` (UTC) or ``None`` when missing."""
        ...

    def read_text(self, path: Path) -> str:
        ...


class FileCacheStore:
    """Reads cache entries from the local file system."""

    def modified_at(self, path: Path) -> Optional[datetime]:
        try:
            stat = path.stat()
        except OSError:
            # Missing or unreachable entries are both cache misses.
            return None
        return datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")


class MetadataCache:
    """Returns cached records while fresh and re-fetches them otherwise.

    Entries live at ``{cache_root}/youtubemetadata/{key}/record.info.json``.
    A stale entry is kept on disk until the re-fetch overwrites it. Concurrent
    requests for the same entry wait for a single fetch.
    """

    def __init__(
        self,
        backend: FetchBackend,
        paths: HostPaths,
        *,
        store: Optional[CacheStore] = None,
        clock: Optional[Clock] = None,
        freshness: timedelta = timedelta(days=FRESHNESS_DAYS),
    ) -> None:
        """Initialize the cache.

        Args:
            backend: Writes fresh info documents to their cache path.
            paths: Host directories; the cache lives under ``cache_root``.
            store: File access used for freshness checks and reads.
            clock: Returns the current UTC time.
            freshness: Maximum age of an entry that is served without refetching.
        """
        self._backend = backend
        self._paths = paths
        self._store = store or FileCacheStore()
        self._clock = clock or utc_now
        self._freshness = freshness
        self._inflight: Dict[Path, List] = {}

    @property
    def cache_dir(self) -> Path:
        return self._paths.metadata_cache_dir

    def video_info_path(self, identifier: str) -> Path:
        return self.cache_dir / identifier / RECORD_FILENAME

    def channel_info_path(self, folder_name: str) -> Path:
        return self.cache_dir / folder_name / RECORD_FILENAME

    def is_fresh(self, path: Path) -> bool:
        """Check whether the entry at ``path`` is inside the freshness window.

        Args:
            path: Cache file to inspect.

        Returns:
            True when the file exists and was written at most ``freshness`` ago.
        """
        written_at = self._store.modified_at(path)
        if written_at is None:
            return False
        return self._clock() - written_at <= self._freshness

    def _load(self, path: Path) -> RawRecord:
        return RawRecord.from_info(json.loads(self._store.read_text(path)))

    def _load_cached(self, path: Path) -> Optional[RawRecord]:
        if not self.is_fresh(path):
            return None
        try:
            return self._load(path)
        except (OSError, ValueError, InvalidRecordError) as exc:
            logger.debug("Ignoring unreadable cache file %s: %s", path, exc)
            return None

    @contextlib.asynccontextmanager
    async def _exclusive(self, path: Path) -> AsyncIterator[None]:
        entry = self._inflight.setdefault(path, [asyncio.Lock(), 0])
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                self._inflight.pop(path, None)

    async def _get_or_fetch(
        self,
        path: Path,
        url: str,
        *,
        playlist_items: Optional[str],
        cancel_event: Optional[asyncio.Event],
    ) -> RawRecord:
        async with self._exclusive(path):
            cached = self._load_cached(path)
            if cached is not None:
                logger.debug("Cache hit for %s", path)
                return cached

            raise_if_cancelled(cancel_event)
            await self._backend.fetch(
                url,
                path,
                playlist_items=playlist_items,
                cookie_file=self._paths.resolve_cookie_file(),
            )
            try:
                return self._load(path)
            except (OSError, ValueError) as exc:
                raise InvalidRecordError(f"Fetched record at {path} is unreadable: {exc}") from exc

    async def get_record(
        self, identifier: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> RawRecord:
        """Return the video record for ``identifier``, fetching it when stale or missing.

        Args:
            identifier: YouTube video id.
            cancel_event: Optional signal; once set no fetch is issued.

        Returns:
            The parsed record.

        Raises:
            BackendError: If the fetch backend fails.
            InvalidRecordError: If the freshly fetched document is unusable.
        """
        with log_mgr.log_context(identifier=identifier):
            return await self._get_or_fetch(
                self.video_info_path(identifier),
                VIDEO_URL.format(identifier),
                playlist_items=None,
                cancel_event=cancel_event,
            )

    async def get_channel_record(
        self,
        channel_id: str,
        folder_name: str,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RawRecord:
        """Return the channel record cached under ``folder_name``; no videos are listed.

        Args:
            channel_id: YouTube channel id used to build the fetch URL.
            folder_name: Filesystem-safe cache key, usually the series folder name.
            cancel_event: Optional signal; once set no fetch is issued.

        Raises:
            BackendError: If the fetch backend fails.
            InvalidRecordError: If the freshly fetched document is unusable.
        """

        with log_mgr.log_context(identifier=channel_id):
            return await self._get_or_fetch(
                self.channel_info_path(folder_name),
                CHANNEL_URL.format(channel_id),
                playlist_items="0",
                cancel_event=cancel_event,
            )


__all__ = ["CacheStore", "FileCacheStore", "MetadataCache", "utc_now"]
