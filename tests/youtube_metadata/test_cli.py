import json
from pathlib import Path

import pytest

from youtube_metadata import cli
from youtube_metadata.metadata.pipeline import create_pipeline


def test_parse_resolve_arguments():
    args = cli.parse_args(["resolve", "/media/Clip.mkv", "--kind", "music-video", "--title", "Clip", "--debug"])

    assert args.command == "resolve"
    assert args.path == "/media/Clip.mkv"
    assert args.kind == "music-video"
    assert args.title == "Clip"
    assert args.debug is True
    assert args.local is False


def test_parse_search_arguments():
    args = cli.parse_args(["search", "daily show", "--channels", "--limit", "3"])

    assert args.command == "search"
    assert args.channels is True
    assert args.limit == 3


def test_unknown_kind_is_rejected():
    with pytest.raises(SystemExit):
        cli.parse_args(["resolve", "x", "--kind", "podcast"])


@pytest.fixture
def fake_pipeline(monkeypatch, make_search_backend, make_fetch_backend, sample_info):
    search_backend = make_search_backend(
        ["dQw4w9WgXcQ\x1fShow S02E07 Extra\x1fUCuAXFkgsw1L7xaCfnd5JJOw\x1fChan\x1f"]
    )
    fetch_backend = make_fetch_backend({"https://www.youtube.com/watch?v=dQw4w9WgXcQ": sample_info})

    def factory(paths, config=None):
        return create_pipeline(paths, config, search_backend=search_backend, fetch_backend=fetch_backend)

    monkeypatch.setattr(cli, "create_pipeline", factory)
    return search_backend, fetch_backend


def _common(tmp_path: Path):
    return [
        "--config",
        str(tmp_path / "missing.yaml"),
        "--cache-root",
        str(tmp_path / "cache"),
        "--plugins-root",
        str(tmp_path / "plugins"),
    ]


def test_resolve_prints_metadata(fake_pipeline, tmp_path: Path, capsys):
    code = cli.run_cli(["resolve", "/media/Clip [dQw4w9WgXcQ].mkv", "--kind", "episode", *_common(tmp_path)])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["item"]["kind"] == "episode"
    assert payload["item"]["index_number"] == 7
    assert (tmp_path / "cache" / "youtubemetadata" / "dQw4w9WgXcQ" / "record.info.json").is_file()


def test_resolve_without_match_exits_one(fake_pipeline, tmp_path: Path, capsys):
    search_backend, _ = fake_pipeline
    search_backend.lines = []

    code = cli.run_cli(["resolve", "/media/Nothing.mkv", *_common(tmp_path)])

    assert code == 1
    assert json.loads(capsys.readouterr().out)["has_metadata"] is False


def test_backend_failure_exits_two(fake_pipeline, tmp_path: Path):
    _, fetch_backend = fake_pipeline
    fetch_backend.documents = {}

    assert cli.run_cli(["resolve", "/media/Clip [dQw4w9WgXcQ].mkv", *_common(tmp_path)]) == 2


def test_search_prints_ranked_candidates(fake_pipeline, tmp_path: Path, capsys):
    code = cli.run_cli(["search", "Show S02E07", "--limit", "2", *_common(tmp_path)])

    assert code == 0
    ranked = json.loads(capsys.readouterr().out)
    assert ranked[0]["id"] == "dQw4w9WgXcQ"
    assert ranked[0]["score"] == 8.0
    assert fake_pipeline[0].calls[0]["playlist_items"] == "1:2"


def test_invalid_config_exits_two(tmp_path: Path):
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("search_result_limit: -1\n", encoding="utf-8")

    assert cli.run_cli(["search", "x", "--config", str(config_file)]) == 2


def test_search_cleans_query_and_caps_limit(fake_pipeline, tmp_path: Path, capsys):
    code = cli.run_cli(["search", "Show_S02E07 [dQw4w9WgXcQ]", "--limit", "100", *_common(tmp_path)])

    assert code == 0
    call = fake_pipeline[0].calls[0]
    assert call["playlist_items"] == "1:25"
    assert "search_query=Show+S02E07&" in call["url"]
    assert json.loads(capsys.readouterr().out)[0]["score"] == 8.0


def test_search_channel_id_prints_first_hit(fake_pipeline, tmp_path: Path, capsys):
    search_backend, _ = fake_pipeline
    search_backend.lines = ["https://www.youtube.com/channel/UCuAXFkgsw1L7xaCfnd5JJOw"]

    code = cli.run_cli(["search", "Chan", "--channel-id", *_common(tmp_path)])

    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"query": "Chan", "channel_id": "UCuAXFkgsw1L7xaCfnd5JJOw"}
    assert search_backend.calls[0]["playlist_items"] == "1"
    assert search_backend.calls[0]["template"] == "%(url)s"


def test_channels_and_channel_id_are_exclusive():
    with pytest.raises(SystemExit):
        cli.parse_args(["search", "x", "--channels", "--channel-id"])
