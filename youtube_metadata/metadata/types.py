"""Core type definitions for the YouTube metadata pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..errors import InvalidRecordError


class MediaKind(str, Enum):
    """Target entity produced by the record mapper."""

    MOVIE = "movie"
    EPISODE = "episode"
    SERIES = "series"
    MUSIC_VIDEO = "music_video"


class PersonKind(str, Enum):
    DIRECTOR = "Director"


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    return None


@dataclass(frozen=True, slots=True)
class RawRecord:
    """The subset of a yt-dlp info JSON document the mapper consumes."""

    identifier: str
    title: Optional[str] = None
    description: Optional[str] = None
    upload_date: Optional[str] = None  # YYYYMMDD
    uploader: Optional[str] = None
    channel_id: Optional[str] = None
    track: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    playlist_title: Optional[str] = None

    @classmethod
    def from_info(cls, info: Any) -> "RawRecord":
        """Build a record from a decoded info JSON document.

        Raises:
            InvalidRecordError: If ``info`` is not an object or has no ``id``.
        """
        if not isinstance(info, Mapping):
            raise InvalidRecordError("info JSON must be an object")
        identifier = _text(info.get("id"))
        if not identifier or not identifier.strip():
            raise InvalidRecordError("info JSON has no id")

        upload_date = info.get("upload_date")
        if isinstance(upload_date, int) and not isinstance(upload_date, bool):
            upload_date = str(upload_date)

        return cls(
            identifier=identifier.strip(),
            title=_text(info.get("title")),
            description=_text(info.get("description")),
            upload_date=_text(upload_date),
            uploader=_text(info.get("uploader")) or _text(info.get("channel")),
            channel_id=_text(info.get("channel_id")),
            track=_text(info.get("track")),
            artist=_text(info.get("artist")),
            album=_text(info.get("album")),
            playlist_title=_text(info.get("playlist_title")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identifier,
            "title": self.title,
            "description": self.description,
            "upload_date": self.upload_date,
            "uploader": self.uploader,
            "channel_id": self.channel_id,
            "track": self.track,
            "artist": self.artist,
            "album": self.album,
            "playlist_title": self.playlist_title,
        }


@dataclass(frozen=True, slots=True)
class SearchCandidate:
    """Lightweight search hit, considered before the full record is fetched."""

    identifier: str
    title: str
    channel_id: str
    uploader: str
    thumbnail_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identifier,
            "title": self.title,
            "channel_id": self.channel_id,
            "uploader": self.uploader,
            "thumbnail": self.thumbnail_url,
        }


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    candidate: SearchCandidate
    score: float

    @property
    def sort_key(self) -> Tuple[float, int]:
        """Higher scores first, then shorter titles."""
        return (-self.score, len(self.candidate.title))

    def to_dict(self) -> Dict[str, Any]:
        payload = self.candidate.to_dict()
        payload["score"] = self.score
        return payload


@dataclass(frozen=True, slots=True)
class Person:
    name: Optional[str]
    kind: PersonKind = PersonKind.DIRECTOR
    provider_ids: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.kind.value, "provider_ids": dict(self.provider_ids)}


@dataclass(frozen=True, slots=True)
class Movie:
    name: Optional[str]
    overview: Optional[str]
    production_year: int
    premiere_date: date
    provider_ids: Dict[str, str] = field(default_factory=dict)

    kind = MediaKind.MOVIE


@dataclass(frozen=True, slots=True)
class MusicVideo:
    name: Optional[str]
    overview: Optional[str]
    production_year: int
    premiere_date: date
    artists: List[Optional[str]] = field(default_factory=list)
    album: Optional[str] = None
    provider_ids: Dict[str, str] = field(default_factory=dict)

    kind = MediaKind.MUSIC_VIDEO


@dataclass(frozen=True, slots=True)
class Episode:
    name: Optional[str]
    overview: str
    production_year: int
    premiere_date: date
    forced_sort_name: str
    index_number: int
    parent_index_number: int
    provider_ids: Dict[str, str] = field(default_factory=dict)

    kind = MediaKind.EPISODE


@dataclass(frozen=True, slots=True)
class Series:
    name: str
    overview: str
    provider_ids: Dict[str, str] = field(default_factory=dict)

    kind = MediaKind.SERIES


Entity = Union[Movie, MusicVideo, Episode, Series]


def _entity_to_dict(item: Entity) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"kind": item.kind.value}
    for name in item.__slots__:
        value = getattr(item, name)
        if isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, dict):
            value = dict(value)
        elif isinstance(value, list):
            value = list(value)
        payload[name] = value
    return payload


@dataclass(frozen=True, slots=True)
class MetadataResult:
    """Mapped entity plus the people attached to it."""

    item: Entity
    has_metadata: bool = True
    people: Tuple[Person, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_metadata": self.has_metadata,
            "item": _entity_to_dict(self.item),
            "people": [person.to_dict() for person in self.people],
        }


@dataclass(frozen=True, slots=True)
class Refined:
    title: str
    description: str


@dataclass(frozen=True, slots=True)
class Unchanged:
    """The refinement step had no usable effect; keep the original text."""


UNCHANGED = Unchanged()

RefinementResult = Union[Refined, Unchanged]


__all__ = [
    "Entity",
    "Episode",
    "MediaKind",
    "MetadataResult",
    "Movie",
    "MusicVideo",
    "Person",
    "PersonKind",
    "RawRecord",
    "Refined",
    "RefinementResult",
    "ScoredCandidate",
    "SearchCandidate",
    "Series",
    "UNCHANGED",
    "Unchanged",
]
