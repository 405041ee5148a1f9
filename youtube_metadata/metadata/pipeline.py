"""End-to-end metadata resolution for local YouTube downloads."""

from __future__ import annotations

import asyncio
from pathlib import PurePath
from typing import Callable, Dict, Optional

import httpx

from .. import logging_manager as log_mgr
from ..config import HostPaths, IdType, PluginConfig
from ..identifiers import (
    build_search_query,
    cleanup_search_text,
    extract_bare_identifier,
    extract_identifier,
    is_channel_identifier,
    to_safe_cache_key,
)
from .backends.base import FetchBackend, SearchBackend
from .backends.ytdlp import YtDlpBackend
from .cache import MetadataCache
from .cancellation import raise_if_cancelled
from .local import read_local_record
from .mapping import to_episode, to_movie, to_music_video, to_series
from .refiner import AiMetadataRefiner, apply_refinement
from .search import RemoteSearchClient
from .types import MediaKind, MetadataResult, RawRecord

logger = log_mgr.get_logger().getChild("metadata.pipeline")


class MetadataPipeline:
    """Identify, fetch, map and optionally refine metadata for one local file.

    Every public coroutine accepts ``cancel_event``; once it is set no further
    backend call is issued. Search and fetch failures propagate to the caller,
    refinement failures never do.
    """

    def __init__(
        self,
        *,
        config: PluginConfig,
        search_client: RemoteSearchClient,
        cache: MetadataCache,
        refiner: AiMetadataRefiner,
    ) -> None:
        self._config = config
        self._search = search_client
        self._cache = cache
        self._refiner = refiner

    @property
    def config(self) -> PluginConfig:
        return self._config

    @property
    def search_client(self) -> RemoteSearchClient:
        return self._search

    # ------------------------------------------------------------------
    # Identification
    # ------------------------------------------------------------------
    def extract_identifier(self, path: str) -> str:
        if self._config.id_type is IdType.TUBEARCHIVIST:
            return extract_bare_identifier(path) or extract_identifier(path)
        return extract_identifier(path)

    async def resolve_identifier(
        self,
        path: str,
        *,
        title: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """Return the embedded video id, or the best search match when lookup by title is allowed.

        A channel id (e.g. from the parent folder) does not identify a video.
        """

        identifier = self.extract_identifier(path)
        if identifier and not is_channel_identifier(identifier):
            return identifier
        if not self._config.enable_title_lookup_without_id:
            return ""
        query = build_search_query(title, path)
        match = await self._search.search_best_match(
            query, self._config.search_result_limit, cancel_event=cancel_event
        )
        if match is None:
            logger.info("No search match for %r", query)
            return ""
        logger.info("Matched %r to %s (%s)", query, match.identifier, match.title)
        return match.identifier

    async def _video_record(
        self,
        path: str,
        title: Optional[str],
        cancel_event: Optional[asyncio.Event],
    ) -> Optional[RawRecord]:
        identifier = await self.resolve_identifier(path, title=title, cancel_event=cancel_event)
        if not identifier:
            return None
        return await self._cache.get_record(identifier, cancel_event=cancel_event)

    async def _refine(
        self, result: MetadataResult, cancel_event: Optional[asyncio.Event]
    ) -> MetadataResult:
        if not self._config.ai_cleanup_active:
            return result
        raise_if_cancelled(cancel_event)
        refinement = await self._refiner.refine(result.item.name, result.item.overview, self._config)
        return apply_refinement(result, refinement, self._config)

    # ------------------------------------------------------------------
    # Entity resolution
    # ------------------------------------------------------------------
    async def get_movie_metadata(
        self,
        path: str,
        *,
        title: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[MetadataResult]:
        """Resolve ``path`` to a movie; see :meth:`get_episode_metadata` for arguments."""

        with log_mgr.log_context(path=path, kind=MediaKind.MOVIE.value):
            record = await self._video_record(path, title, cancel_event)
            if record is None:
                return None
            return await self._refine(to_movie(record), cancel_event)

    async def get_music_video_metadata(
        self,
        path: str,
        *,
        title: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[MetadataResult]:
        with log_mgr.log_context(path=path, kind=MediaKind.MUSIC_VIDEO.value):
            record = await self._video_record(path, title, cancel_event)
            if record is None:
                return None
            return await self._refine(to_music_video(record), cancel_event)

    async def get_episode_metadata(
        self,
        path: str,
        *,
        title: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[MetadataResult]:
        """Resolve ``path`` to an episode.

        Args:
            path: Local media file.
            title: Library title, used for searching and as the fallback name.
            cancel_event: Optional signal; once set no backend call is issued.

        Returns:
            The mapped (and possibly refined) episode, or ``None`` when the
            file could not be matched to a video.

        Raises:
            BackendError: If search or fetch fails.
            InvalidRecordError: If the fetched document is unusable.
        """

        with log_mgr.log_context(path=path, kind=MediaKind.EPISODE.value):
            record = await self._video_record(path, title, cancel_event)
            if record is None:
                return None
            fallback_title = title or cleanup_search_text(PurePath(path).stem)
            result = to_episode(record, self._config, fallback_title)
            return await self._refine(result, cancel_event)

    async def get_series_metadata(
        self,
        path: str,
        *,
        name: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[MetadataResult]:
        """Resolve a series folder to its channel (or a video's channel) record.

        A channel id in the folder name is fetched directly, a video id is
        fetched as a video, and otherwise the folder name is searched as a
        channel when title lookup is enabled.

        Args:
            path: Series folder.
            name: Library name of the series; replaces the folder name when given.
            cancel_event: Optional signal; once set no backend call is issued.

        Returns:
            The mapped series, or ``None`` when no channel was found.
        """

        with log_mgr.log_context(path=path, kind=MediaKind.SERIES.value):
            folder_name = name or PurePath(path).name
            fallback_name = name or cleanup_search_text(PurePath(path).name)
            identifier = self.extract_identifier(path)

            if is_channel_identifier(identifier):
                record = await self._cache.get_channel_record(
                    identifier, to_safe_cache_key(folder_name), cancel_event=cancel_event
                )
            elif identifier:
                record = await self._cache.get_record(identifier, cancel_event=cancel_event)
            elif self._config.enable_title_lookup_without_id:
                query = build_search_query(name, path)
                match = await self._search.search_best_channel(
                    query, self._config.search_result_limit, cancel_event=cancel_event
                )
                if match is None or not match.channel_id:
                    logger.info("No channel match for %r", query)
                    return None
                record = await self._cache.get_channel_record(
                    match.channel_id, to_safe_cache_key(folder_name), cancel_event=cancel_event
                )
            else:
                return None
            return to_series(record, self._config, fallback_name)

    def get_local_movie_metadata(self, path: str) -> Optional[MetadataResult]:
        """Map the yt-dlp sidecar next to ``path`` without contacting any backend."""

        record = read_local_record(path)
        return to_movie(record) if record is not None else None

    async def resolve(
        self,
        path: str,
        kind: MediaKind,
        *,
        title: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[MetadataResult]:
        handlers: Dict[MediaKind, Callable] = {
            MediaKind.MOVIE: self.get_movie_metadata,
            MediaKind.MUSIC_VIDEO: self.get_music_video_metadata,
            MediaKind.EPISODE: self.get_episode_metadata,
        }
        if kind is MediaKind.SERIES:
            return await self.get_series_metadata(path, name=title, cancel_event=cancel_event)
        return await handlers[kind](path, title=title, cancel_event=cancel_event)

    async def aclose(self) -> None:
        await self._refiner.aclose()


def create_pipeline(
    paths: HostPaths,
    config: Optional[PluginConfig] = None,
    *,
    search_backend: Optional[SearchBackend] = None,
    fetch_backend: Optional[FetchBackend] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> MetadataPipeline:
    """Assemble a pipeline backed by yt-dlp unless other backends are supplied."""

    config = config or PluginConfig()
    default_backend = None
    if search_backend is None or fetch_backend is None:
        default_backend = YtDlpBackend()
    search_client = RemoteSearchClient(
        search_backend or default_backend, cookie_file=paths.resolve_cookie_file
    )
    cache = MetadataCache(fetch_backend or default_backend, paths)
    return MetadataPipeline(
        config=config,
        search_client=search_client,
        cache=cache,
        refiner=AiMetadataRefiner(http_client),
    )


__all__ = ["MetadataPipeline", "create_pipeline"]
