"""Shared fakes for the metadata pipeline tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from youtube_metadata.config import HostPaths
from youtube_metadata.errors import BackendError


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeSearchBackend:
    """Returns canned template lines and records every call."""

    def __init__(self, lines: Optional[List[str]] = None, *, error: Optional[Exception] = None) -> None:
        self.lines = list(lines or [])
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def search(
        self,
        url: str,
        *,
        playlist_items: str,
        template: str,
        cookie_file: Optional[Path] = None,
    ) -> List[str]:
        self.calls.append(
            {
                "url": url,
                "playlist_items": playlist_items,
                "template": template,
                "cookie_file": cookie_file,
            }
        )
        if self.error is not None:
            raise self.error
        return list(self.lines)


class FakeFetchBackend:
    """Writes a canned info document per URL, like yt-dlp's info JSON output."""

    def __init__(self, documents: Optional[Dict[str, Any]] = None, *, error: Optional[Exception] = None) -> None:
        self.documents = dict(documents or {})
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def fetch(
        self,
        url: str,
        destination: Path,
        *,
        playlist_items: Optional[str] = None,
        cookie_file: Optional[Path] = None,
    ) -> None:
        self.calls.append(
            {
                "url": url,
                "destination": destination,
                "playlist_items": playlist_items,
                "cookie_file": cookie_file,
            }
        )
        if self.error is not None:
            raise self.error
        if url not in self.documents:
            raise BackendError(f"no document for {url}", url=url)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(json.dumps(self.documents[url]), encoding="utf-8")


def video_line(identifier: str, title: str, channel_id: str = "UC" + "c" * 22, uploader: str = "Chan") -> str:
    return "\x1f".join([identifier, title, channel_id, uploader, f"https://i.ytimg.com/vi/{identifier}/hq.jpg"])


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def host_paths(tmp_path: Path) -> HostPaths:
    return HostPaths(cache_root=tmp_path / "cache", plugins_root=tmp_path / "plugins")


@pytest.fixture
def make_search_backend():
    return FakeSearchBackend


@pytest.fixture
def make_fetch_backend():
    return FakeFetchBackend


@pytest.fixture
def make_video_line():
    return video_line


@pytest.fixture
def sample_info() -> Dict[str, Any]:
    return {
        "id": "dQw4w9WgXcQ",
        "title": "Show S02E07 Extra",
        "description": "An episode.",
        "upload_date": "20230115",
        "uploader": "Chan",
        "channel_id": "UCuAXFkgsw1L7xaCfnd5JJOw",
        "playlist_title": "Pl",
    }
