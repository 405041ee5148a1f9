"""yt-dlp implementation of the search and fetch backends."""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError, ExtractorError

from ... import logging_manager as log_mgr
from ...errors import BackendError

logger = log_mgr.get_logger().getChild("metadata.backends.ytdlp")

_COMMON_YT_OPTS = {
    "quiet": True,
    "no_warnings": True,
    "skip_download": True,
    "noprogress": True,
}


class YtDlpBackend:
    """Runs yt-dlp in a worker thread so callers can await it."""

    def __init__(self, *, socket_timeout: float = 30.0) -> None:
        self._socket_timeout = socket_timeout

    def _options(self, cookie_file: Optional[Path], **extra: Any) -> Dict[str, Any]:
        options: Dict[str, Any] = dict(_COMMON_YT_OPTS)
        options["socket_timeout"] = self._socket_timeout
        if cookie_file is not None:
            options["cookiefile"] = str(cookie_file)
        options.update(extra)
        return options

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def _search_sync(
        self, url: str, playlist_items: str, template: str, cookie_file: Optional[Path]
    ) -> List[str]:
        options = self._options(cookie_file, extract_flat="in_playlist", playlist_items=playlist_items)
        try:
            with YoutubeDL(options) as ydl:
                info = ydl.extract_info(url, download=False)
                entries = info.get("entries") if isinstance(info, dict) else None
                return [
                    ydl.evaluate_outtmpl(template, entry)
                    for entry in entries or []
                    if isinstance(entry, dict)
                ]
        except (DownloadError, ExtractorError) as exc:
            raise BackendError(f"yt-dlp search failed: {exc}", url=url) from exc

    async def search(
        self,
        url: str,
        *,
        playlist_items: str,
        template: str,
        cookie_file: Optional[Path] = None,
    ) -> List[str]:
        logger.debug("Searching %s (items %s)", url, playlist_items)
        return await asyncio.to_thread(self._search_sync, url, playlist_items, template, cookie_file)

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------
    def _fetch_sync(
        self,
        url: str,
        destination: Path,
        playlist_items: Optional[str],
        cookie_file: Optional[Path],
    ) -> None:
        extra: Dict[str, Any] = {}
        if playlist_items is not None:
            extra["playlist_items"] = playlist_items
        options = self._options(cookie_file, **extra)
        try:
            with YoutubeDL(options) as ydl:
                info = ydl.extract_info(url, download=False)
                payload = ydl.sanitize_info(info)
        except (DownloadError, ExtractorError) as exc:
            raise BackendError(f"yt-dlp extraction failed: {exc}", url=url) from exc

        destination.parent.mkdir(parents=True, exist_ok=True)
        # Readers never see a partially written document.
        handle, temp_name = tempfile.mkstemp(
            prefix=".record-", suffix=".json", dir=str(destination.parent)
        )
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                json.dump(payload, stream, ensure_ascii=False)
            os.replace(temp_name, destination)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    async def fetch(
        self,
        url: str,
        destination: Path,
        *,
        playlist_items: Optional[str] = None,
        cookie_file: Optional[Path] = None,
    ) -> None:
        logger.info("Fetching metadata for %s", url)
        await asyncio.to_thread(self._fetch_sync, url, destination, playlist_items, cookie_file)


__all__ = ["YtDlpBackend"]
