"""Pure mapping from :class:`RawRecord` to library entities."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional

from ..config import PluginConfig
from ..constants import PLUGIN_NAME, SERIES_OVERVIEW_FALLBACK
from .types import Episode, MetadataResult, Movie, MusicVideo, Person, PersonKind, RawRecord, Series

# Sentinel for dates that are missing or malformed. It is indistinguishable
# from a real 1970-01-01 upload except through ``is_unknown_date``.
UNKNOWN_DATE = date(1970, 1, 1)

_UPLOAD_DATE = re.compile(r"^\d{8}$")
_SEASON_EPISODE = re.compile(r"s([0-9]{1,2})e([0-9]{1,3})", re.IGNORECASE)
_EPISODE = re.compile(r"(?:episode|folge|ep\.?)\s*([0-9]{1,4})", re.IGNORECASE)


def parse_date(raw: Optional[str]) -> date:
    """Parse a ``YYYYMMDD`` upload date, returning ``UNKNOWN_DATE`` on any failure."""

    if not raw or not _UPLOAD_DATE.match(raw):
        return UNKNOWN_DATE
    try:
        return datetime.strptime(raw, "%Y%m%d").date()
    except ValueError:
        return UNKNOWN_DATE


def is_unknown_date(value: date) -> bool:
    return value == UNKNOWN_DATE


def create_person(name: Optional[str], channel_id: Optional[str]) -> Person:
    provider_ids = {} if channel_id is None else {PLUGIN_NAME: channel_id}
    return Person(name=name, kind=PersonKind.DIRECTOR, provider_ids=provider_ids)


def extract_episode_number(title: Optional[str]) -> Optional[int]:
    """Return the episode number in ``title``; ``SxxEyy`` wins over ``Episode N``."""

    if not title or not title.strip():
        return None
    match = _SEASON_EPISODE.search(title)
    if match:
        return int(match.group(2))
    match = _EPISODE.search(title)
    if match:
        return int(match.group(1))
    return None


def series_name_for(record: RawRecord, fallback_name: Optional[str], prefer_uploader: bool) -> str:
    """Resolve a series name: uploader (if preferred), playlist, uploader, fallback."""

    uploader = record.uploader if record.uploader and record.uploader.strip() else None
    if prefer_uploader and uploader:
        return uploader
    if record.playlist_title and record.playlist_title.strip():
        return record.playlist_title
    if uploader:
        return uploader
    if fallback_name and fallback_name.strip():
        return fallback_name
    return ""


def to_movie(record: RawRecord) -> MetadataResult:
    """Map a video record to a movie with its uploader as director.

    Args:
        record: Parsed yt-dlp info document.

    Returns:
        The movie result. Missing or malformed upload dates become ``UNKNOWN_DATE``.
    """
    premiere = parse_date(record.upload_date)
    movie = Movie(
        name=record.title,
        overview=record.description,
        production_year=premiere.year,
        premiere_date=premiere,
        provider_ids={PLUGIN_NAME: record.identifier},
    )
    return MetadataResult(item=movie, people=(create_person(record.uploader, record.channel_id),))


def to_music_video(record: RawRecord) -> MetadataResult:
    """Like :func:`to_movie`, but named after the track and credited to its artist."""
    premiere = parse_date(record.upload_date)
    video = MusicVideo(
        name=record.track if record.track else record.title,
        overview=record.description,
        production_year=premiere.year,
        premiere_date=premiere,
        artists=[record.artist],
        album=record.album,
        provider_ids={PLUGIN_NAME: record.identifier},
    )
    return MetadataResult(item=video, people=(create_person(record.uploader, record.channel_id),))


def to_episode(
    record: RawRecord,
    config: Optional[PluginConfig] = None,
    fallback_title: Optional[str] = None,
) -> MetadataResult:
    """Map a video record to an episode of season 1.

    Args:
        record: Parsed yt-dlp info document.
        config: Plugin settings; controls automatic episode indexing.
        fallback_title: Name used when the record has no title.

    Returns:
        The episode result, sorted by ``YYYYMMDD-<title>``. The index is the
        number found in the title when indexing is enabled, otherwise 1.
    """
    config = config or PluginConfig()
    name = record.title if record.title and record.title.strip() else fallback_title
    premiere = parse_date(record.upload_date)

    episode_number = extract_episode_number(name)
    if config.enable_auto_episode_indexing and episode_number is not None:
        index_number = episode_number
    else:
        index_number = 1

    episode = Episode(
        name=name,
        overview=record.description or "",
        production_year=premiere.year,
        premiere_date=premiere,
        # Date prefix keeps uploads in chronological order within a series.
        forced_sort_name=f"{premiere:%Y%m%d}-{name or ''}",
        index_number=index_number,
        parent_index_number=1,
        provider_ids={PLUGIN_NAME: record.identifier},
    )
    return MetadataResult(item=episode, people=(create_person(record.uploader, record.channel_id),))


def to_series(
    record: RawRecord,
    config: Optional[PluginConfig] = None,
    fallback_name: Optional[str] = None,
) -> MetadataResult:
    """Map a channel (or video) record to a series.

    Args:
        record: Parsed yt-dlp info document.
        config: Plugin settings; controls whether the uploader names the series.
        fallback_name: Name used when the record offers none, e.g. the folder name.

    Returns:
        The series result keyed by the channel id, with a generic overview
        when the record has no description.
    """
    config = config or PluginConfig()
    provider_ids = {PLUGIN_NAME: record.channel_id} if record.channel_id else {}
    series = Series(
        name=series_name_for(record, fallback_name, config.prefer_uploader_as_series_name),
        overview=record.description if record.description and record.description.strip() else SERIES_OVERVIEW_FALLBACK,
        provider_ids=provider_ids,
    )
    return MetadataResult(item=series)


__all__ = [
    "UNKNOWN_DATE",
    "create_person",
    "extract_episode_number",
    "is_unknown_date",
    "parse_date",
    "series_name_for",
    "to_episode",
    "to_movie",
    "to_music_video",
    "to_series",
]
