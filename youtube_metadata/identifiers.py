"""Identifier extraction and search-text normalisation for local filenames."""

from __future__ import annotations

import re
from pathlib import PurePath
from typing import Optional

# yt-dlp names downloads ``Title [VIDEO_ID].ext``; channel folders carry the
# 24 character channel id in the same bracket position.
_VIDEO_ID_IN_BRACKETS = re.compile(r"(?<=\[)[a-zA-Z0-9\-_]{11}(?=\])")
_CHANNEL_ID_IN_BRACKETS = re.compile(r"(?<=\[)[a-zA-Z0-9\-_]{24}(?=\])")
_VIDEO_ID_ONLY = re.compile(r"^[a-zA-Z0-9\-_]{11}$")
_CHANNEL_ID_ONLY = re.compile(r"^[a-zA-Z0-9\-_]{24}$")
_BRACKETED_ID = re.compile(r"\[[a-zA-Z0-9\-_]{11,24}\]")
_SEPARATORS = re.compile(r"[_.]+")
_WHITESPACE = re.compile(r"\s+")
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def extract_identifier(name: Optional[str]) -> str:
    """Return the video (or, failing that, channel) id embedded in ``name``.

    An empty string means the name carries no identifier.
    """

    if not name or not name.strip():
        return ""
    match = _VIDEO_ID_IN_BRACKETS.search(name)
    if match is None:
        match = _CHANNEL_ID_IN_BRACKETS.search(name)
    return match.group(0) if match else ""


def extract_bare_identifier(path: Optional[str]) -> str:
    """Return the id used as a whole file stem or folder name (TubeArchivist layout).

    TubeArchivist stores ``<channel_id>/<video_id>.mp4``, so a video file's stem
    is the video id and a channel folder's name is the channel id.
    """

    if not path or not path.strip():
        return ""
    pure = PurePath(path)
    for candidate in (pure.stem, pure.name):
        if _VIDEO_ID_ONLY.match(candidate) or _CHANNEL_ID_ONLY.match(candidate):
            return candidate
    return ""


def is_channel_identifier(value: Optional[str]) -> bool:
    return bool(value) and _CHANNEL_ID_ONLY.match(value) is not None


def cleanup_search_text(value: Optional[str]) -> str:
    """Strip bracketed ids and separator noise so ``value`` can be used as a query."""

    if not value or not value.strip():
        return ""
    without_id, removed = _BRACKETED_ID.subn("", value)
    # Removing an inner token can expose an enclosing one.
    while removed:
        without_id, removed = _BRACKETED_ID.subn("", without_id)
    without_separators = _SEPARATORS.sub(" ", without_id)
    return _WHITESPACE.sub(" ", without_separators).strip()


def build_search_query(title: Optional[str], path: Optional[str]) -> str:
    """Prefer the item title; otherwise derive the query from the filename stem."""

    if title and title.strip():
        return cleanup_search_text(title)
    if not path or not path.strip():
        return ""
    return cleanup_search_text(PurePath(path).stem)


def to_safe_cache_key(value: Optional[str]) -> str:
    if not value or not value.strip():
        return "unknown"
    replaced = _INVALID_FILENAME_CHARS.sub("_", value)
    cleaned = cleanup_search_text(replaced).replace(" ", "_")
    return cleaned or "unknown"


__all__ = [
    "build_search_query",
    "cleanup_search_text",
    "extract_bare_identifier",
    "extract_identifier",
    "is_channel_identifier",
    "to_safe_cache_key",
]
