"""YouTube metadata identification, caching, mapping and refinement.

Usage:
    from youtube_metadata.config import HostPaths
    from youtube_metadata.metadata import create_pipeline

    pipeline = create_pipeline(HostPaths(cache_root=..., plugins_root=...))
    result = await pipeline.get_episode_metadata("/media/Show/Clip [dQw4w9WgXcQ].mkv")
"""

from .cache import FileCacheStore, MetadataCache
from .mapping import (
    UNKNOWN_DATE,
    extract_episode_number,
    is_unknown_date,
    parse_date,
    to_episode,
    to_movie,
    to_music_video,
    to_series,
)
from .pipeline import MetadataPipeline, create_pipeline
from .refiner import AiMetadataRefiner, apply_refinement
from .scoring import rank_candidates, score_search_result
from .search import RemoteSearchClient
from .types import (
    UNCHANGED,
    Episode,
    MediaKind,
    MetadataResult,
    Movie,
    MusicVideo,
    Person,
    RawRecord,
    Refined,
    ScoredCandidate,
    SearchCandidate,
    Series,
    Unchanged,
)

__all__ = [
    "AiMetadataRefiner",
    "Episode",
    "FileCacheStore",
    "MediaKind",
    "MetadataCache",
    "MetadataPipeline",
    "MetadataResult",
    "Movie",
    "MusicVideo",
    "Person",
    "RawRecord",
    "Refined",
    "RemoteSearchClient",
    "ScoredCandidate",
    "SearchCandidate",
    "Series",
    "UNCHANGED",
    "UNKNOWN_DATE",
    "Unchanged",
    "apply_refinement",
    "create_pipeline",
    "extract_episode_number",
    "is_unknown_date",
    "parse_date",
    "rank_candidates",
    "score_search_result",
    "to_episode",
    "to_movie",
    "to_music_video",
    "to_series",
]
