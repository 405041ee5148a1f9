"""YouTube search on top of a :class:`SearchBackend`."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import quote_plus, urlparse

from .. import logging_manager as log_mgr
from ..constants import CHANNEL_SEARCH_URL, MAX_SEARCH_RESULTS, VIDEO_SEARCH_URL
from ..identifiers import cleanup_search_text
from .backends.base import SearchBackend
from .cancellation import raise_if_cancelled
from .scoring import rank_candidates
from .types import SearchCandidate

logger = log_mgr.get_logger().getChild("metadata.search")

# Unit separator: never appears in natural-language titles.
FIELD_SEPARATOR = "\x1f"
_VIDEO_FIELDS = (
    "%(id)s",
    "%(title|)s",
    "%(channel_id|)s",
    "%(uploader,channel|)s",
    "%(thumbnail,thumbnails.-1.url|)s",
)
_CHANNEL_FIELDS = (
    "%(id)s",
    "%(title,channel|)s",
    "%(thumbnail,thumbnails.-1.url|)s",
)
VIDEO_TEMPLATE = FIELD_SEPARATOR.join(_VIDEO_FIELDS)
CHANNEL_TEMPLATE = FIELD_SEPARATOR.join(_CHANNEL_FIELDS)
URL_TEMPLATE = "%(url)s"


def clamp_search_limit(limit: int) -> int:
    """Clamp a requested result count to the 1..25 range YouTube search supports."""

    return max(1, min(int(limit), MAX_SEARCH_RESULTS))


class RemoteSearchClient:
    """Searches videos and channels and picks the most relevant hit."""

    def __init__(
        self,
        backend: SearchBackend,
        *,
        cookie_file: Optional[Callable[[], Optional[Path]]] = None,
    ) -> None:
        self._backend = backend
        self._cookie_file = cookie_file or (lambda: None)

    async def _run(
        self,
        url: str,
        *,
        playlist_items: str,
        template: str,
        cancel_event: Optional[asyncio.Event],
    ) -> List[str]:
        raise_if_cancelled(cancel_event)
        return await self._backend.search(
            url,
            playlist_items=playlist_items,
            template=template,
            cookie_file=self._cookie_file(),
        )

    async def search_videos(
        self,
        query: str,
        limit: int = 10,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[SearchCandidate]:
        """Search YouTube videos.

        Args:
            query: Free-text query, sent as given.
            limit: Number of results to request.
            cancel_event: Optional signal; once set no request is issued.

        Returns:
            Candidates in result order. Malformed lines are skipped.

        Raises:
            BackendError: If the search backend fails.
        """

        url = VIDEO_SEARCH_URL.format(quote_plus(query))
        lines = await self._run(
            url,
            playlist_items=f"1:{limit}",
            template=VIDEO_TEMPLATE,
            cancel_event=cancel_event,
        )
        results: List[SearchCandidate] = []
        for line in lines:
            parts = line.split(FIELD_SEPARATOR)
            if len(parts) < len(_VIDEO_FIELDS):
                continue
            results.append(
                SearchCandidate(
                    identifier=parts[0],
                    title=parts[1],
                    channel_id=parts[2],
                    uploader=parts[3],
                    thumbnail_url=parts[4],
                )
            )
        logger.debug("Video search for %r returned %d results", query, len(results))
        return results

    async def search_channels(
        self,
        query: str,
        limit: int = 10,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[SearchCandidate]:
        """Search YouTube channels; each candidate's id is the channel id.

        Args:
            query: Free-text query, sent as given.
            limit: Number of results to request.
            cancel_event: Optional signal; once set no request is issued.

        Returns:
            Channel candidates in result order.
        """

        url = CHANNEL_SEARCH_URL.format(quote_plus(query))
        lines = await self._run(
            url,
            playlist_items=f"1:{limit}",
            template=CHANNEL_TEMPLATE,
            cancel_event=cancel_event,
        )
        results: List[SearchCandidate] = []
        for line in lines:
            parts = line.split(FIELD_SEPARATOR)
            if len(parts) < len(_CHANNEL_FIELDS):
                continue
            # A channel is its own channel and uploader.
            results.append(
                SearchCandidate(
                    identifier=parts[0],
                    title=parts[1],
                    channel_id=parts[0],
                    uploader=parts[1],
                    thumbnail_url=parts[2],
                )
            )
        logger.debug("Channel search for %r returned %d results", query, len(results))
        return results

    async def search_channel_id(
        self,
        query: str,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[str]:
        """Return the channel id of the first channel search hit, if any."""

        url = CHANNEL_SEARCH_URL.format(quote_plus(query))
        lines = await self._run(url, playlist_items="1", template=URL_TEMPLATE, cancel_event=cancel_event)
        if not lines:
            return None
        segment = urlparse(lines[0].strip()).path.rstrip("/").split("/")[-1]
        return segment or None

    async def search_best_match(
        self,
        query: str,
        limit: int = 10,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[SearchCandidate]:
        """Return the most relevant video for ``query``.

        When nothing overlaps with the query the first result is returned, so a
        non-empty result list never yields ``None``.

        Args:
            query: Raw title or filename text; ids and separators are stripped.
            limit: Requested result count, clamped to 1..25.
            cancel_event: Optional signal; once set no request is issued.

        Returns:
            The chosen candidate, or ``None`` for a blank query or no results.
        """
        cleaned = cleanup_search_text(query)
        if not cleaned:
            return None
        results = await self.search_videos(cleaned, clamp_search_limit(limit), cancel_event=cancel_event)
        return self._pick_best(cleaned, results)

    async def search_best_channel(
        self,
        query: str,
        limit: int = 10,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[SearchCandidate]:
        cleaned = cleanup_search_text(query)
        if not cleaned:
            return None
        results = await self.search_channels(cleaned, clamp_search_limit(limit), cancel_event=cancel_event)
        return self._pick_best(cleaned, results)

    @staticmethod
    def _pick_best(query: str, results: List[SearchCandidate]) -> Optional[SearchCandidate]:
        if not results:
            return None
        best = rank_candidates(query, results)[0]
        if best.score <= 0:
            logger.debug("No candidate overlaps %r; using first result", query)
            return results[0]
        return best.candidate


__all__ = [
    "CHANNEL_TEMPLATE",
    "FIELD_SEPARATOR",
    "RemoteSearchClient",
    "URL_TEMPLATE",
    "VIDEO_TEMPLATE",
    "clamp_search_limit",
]
