import asyncio
import json
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from youtube_metadata.errors import BackendError, InvalidRecordError
from youtube_metadata.metadata.cache import FileCacheStore, MetadataCache

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
VIDEO_ID = "dQw4w9WgXcQ"
VIDEO_URL = f"https://www.youtube.com/watch?v={VIDEO_ID}"
CHANNEL_ID = "UCuAXFkgsw1L7xaCfnd5JJOw"
CHANNEL_URL = f"https://www.youtube.com/channel/{CHANNEL_ID}"


def _write(path: Path, payload, *, age: timedelta) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    stamp = (NOW - age).timestamp()
    os.utime(path, (stamp, stamp))


@pytest.fixture
def make_cache(host_paths):
    def factory(backend) -> MetadataCache:
        return MetadataCache(backend, host_paths, clock=lambda: NOW)

    return factory


def test_cache_layout(make_cache, make_fetch_backend, host_paths):
    cache = make_cache(make_fetch_backend())
    root = host_paths.cache_root / "youtubemetadata"
    assert cache.video_info_path(VIDEO_ID) == root / VIDEO_ID / "record.info.json"
    assert cache.channel_info_path("Chan") == root / "Chan" / "record.info.json"


@pytest.mark.parametrize(
    "age,fresh",
    [
        (timedelta(hours=1), True),
        (timedelta(days=9, hours=23), True),
        (timedelta(days=10), True),
        (timedelta(days=10, seconds=1), False),
        (timedelta(days=30), False),
    ],
)
def test_freshness_window(make_cache, make_fetch_backend, sample_info, age, fresh):
    cache = make_cache(make_fetch_backend())
    path = cache.video_info_path(VIDEO_ID)
    _write(path, sample_info, age=age)

    assert cache.is_fresh(path) is fresh


def test_missing_entry_is_not_fresh(make_cache, make_fetch_backend):
    cache = make_cache(make_fetch_backend())
    assert cache.is_fresh(cache.video_info_path(VIDEO_ID)) is False


def test_fresh_entry_is_served_without_backend(make_cache, make_fetch_backend, sample_info):
    backend = make_fetch_backend()
    cache = make_cache(backend)
    _write(cache.video_info_path(VIDEO_ID), sample_info, age=timedelta(days=2))

    record = asyncio.run(cache.get_record(VIDEO_ID))

    assert record.identifier == VIDEO_ID
    assert record.title == "Show S02E07 Extra"
    assert backend.calls == []


def test_missing_entry_is_fetched_and_persisted(make_cache, make_fetch_backend, sample_info):
    backend = make_fetch_backend({VIDEO_URL: sample_info})
    cache = make_cache(backend)

    record = asyncio.run(cache.get_record(VIDEO_ID))

    assert record.uploader == "Chan"
    assert cache.video_info_path(VIDEO_ID).is_file()
    assert backend.calls[0]["destination"] == cache.video_info_path(VIDEO_ID)
    assert backend.calls[0]["playlist_items"] is None


def test_stale_entry_is_refetched_and_overwritten(make_cache, make_fetch_backend, sample_info):
    updated = dict(sample_info, title="Updated Title")
    backend = make_fetch_backend({VIDEO_URL: updated})
    cache = make_cache(backend)
    _write(cache.video_info_path(VIDEO_ID), sample_info, age=timedelta(days=11))

    record = asyncio.run(cache.get_record(VIDEO_ID))

    assert record.title == "Updated Title"
    assert len(backend.calls) == 1


@pytest.mark.parametrize("payload", ["{not json", "[]", json.dumps({"title": "no id"})])
def test_corrupt_entry_is_treated_as_miss(make_cache, make_fetch_backend, sample_info, payload):
    backend = make_fetch_backend({VIDEO_URL: sample_info})
    cache = make_cache(backend)
    _write(cache.video_info_path(VIDEO_ID), payload, age=timedelta(hours=1))

    record = asyncio.run(cache.get_record(VIDEO_ID))

    assert record.identifier == VIDEO_ID
    assert len(backend.calls) == 1


def test_fetch_errors_propagate(make_cache, make_fetch_backend):
    cache = make_cache(make_fetch_backend(error=BackendError("network down")))

    with pytest.raises(BackendError):
        asyncio.run(cache.get_record(VIDEO_ID))


def test_invalid_fetched_record_is_a_hard_error(make_cache, make_fetch_backend):
    cache = make_cache(make_fetch_backend({VIDEO_URL: {"title": "missing id"}}))

    with pytest.raises(InvalidRecordError):
        asyncio.run(cache.get_record(VIDEO_ID))


def test_channel_record_lists_no_videos(make_cache, make_fetch_backend):
    backend = make_fetch_backend({CHANNEL_URL: {"id": CHANNEL_ID, "title": "Chan", "channel_id": CHANNEL_ID}})
    cache = make_cache(backend)

    record = asyncio.run(cache.get_channel_record(CHANNEL_ID, "Chan_Folder"))

    assert record.channel_id == CHANNEL_ID
    assert backend.calls[0]["playlist_items"] == "0"
    assert backend.calls[0]["destination"] == cache.channel_info_path("Chan_Folder")


def test_cookie_file_is_passed_to_fetch(make_cache, make_fetch_backend, sample_info, host_paths):
    cookie = host_paths.plugins_root / "YoutubeAutoMetadata" / "cookies.txt"
    cookie.parent.mkdir(parents=True)
    cookie.write_text("", encoding="utf-8")
    backend = make_fetch_backend({VIDEO_URL: sample_info})

    asyncio.run(make_cache(backend).get_record(VIDEO_ID))

    assert backend.calls[0]["cookie_file"] == cookie


def test_cancelled_fetch_never_reaches_backend(make_cache, make_fetch_backend, sample_info):
    backend = make_fetch_backend({VIDEO_URL: sample_info})
    cache = make_cache(backend)

    async def run() -> None:
        cancel_event = asyncio.Event()
        cancel_event.set()
        await cache.get_record(VIDEO_ID, cancel_event=cancel_event)

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(run())
    assert backend.calls == []


def test_concurrent_requests_share_one_fetch(host_paths, sample_info):
    class SlowBackend:
        def __init__(self) -> None:
            self.calls = 0

        async def fetch(self, url, destination, *, playlist_items=None, cookie_file=None):
            self.calls += 1
            await asyncio.sleep(0.01)
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(json.dumps(sample_info), encoding="utf-8")

    backend = SlowBackend()
    # Real clock: the freshly written file must count as fresh.
    cache = MetadataCache(backend, host_paths)

    async def run():
        return await asyncio.gather(*(cache.get_record(VIDEO_ID) for _ in range(5)))

    records = asyncio.run(run())

    assert backend.calls == 1
    assert {record.identifier for record in records} == {VIDEO_ID}


def test_injected_store_controls_freshness(make_fetch_backend, host_paths, sample_info):
    class MemoryStore:
        def __init__(self) -> None:
            self.files = {}

        def modified_at(self, path):
            entry = self.files.get(path)
            return entry[0] if entry else None

        def read_text(self, path):
            return self.files[path][1]

    store = MemoryStore()
    cache = MetadataCache(make_fetch_backend(), host_paths, store=store, clock=lambda: NOW)
    store.files[cache.video_info_path(VIDEO_ID)] = (NOW - timedelta(days=1), json.dumps(sample_info))

    record = asyncio.run(cache.get_record(VIDEO_ID))

    assert record.playlist_title == "Pl"


def test_failed_refetch_keeps_stale_entry(make_cache, make_fetch_backend, sample_info):
    cache = make_cache(make_fetch_backend(error=BackendError("network down")))
    path = cache.video_info_path(VIDEO_ID)
    _write(path, sample_info, age=timedelta(days=11))
    before = path.read_text(encoding="utf-8")

    with pytest.raises(BackendError):
        asyncio.run(cache.get_record(VIDEO_ID))

    assert path.is_file()
    assert path.read_text(encoding="utf-8") == before


def test_unreachable_entry_counts_as_missing(make_cache, make_fetch_backend, host_paths):
    # A file where the cache directory should be makes every entry path unreachable.
    host_paths.cache_root.mkdir(parents=True)
    host_paths.metadata_cache_dir.write_text("", encoding="utf-8")
    cache = make_cache(make_fetch_backend())
    path = cache.video_info_path(VIDEO_ID)

    assert FileCacheStore().modified_at(path) is None
    assert cache.is_fresh(path) is False
