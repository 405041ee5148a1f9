"""Command line entry point for resolving and searching YouTube metadata."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import logging_manager as log_mgr
from .config import HostPaths, PluginConfig, load_plugin_config
from .errors import MetadataError
from .identifiers import cleanup_search_text
from .metadata.pipeline import MetadataPipeline, create_pipeline
from .metadata.scoring import rank_candidates
from .metadata.search import clamp_search_limit
from .metadata.types import MediaKind

_DEFAULT_CACHE_ROOT = Path.home() / ".cache" / "youtube-metadata"
_DEFAULT_PLUGINS_ROOT = Path.home() / ".config" / "youtube-metadata" / "plugins"
_KIND_CHOICES = {
    "movie": MediaKind.MOVIE,
    "episode": MediaKind.EPISODE,
    "series": MediaKind.SERIES,
    "music-video": MediaKind.MUSIC_VIDEO,
}


def _add_shared_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.add_argument("--config", default=None, help="Path to a YAML plugin configuration file.")
    parser.add_argument(
        "--cache-root",
        default=str(_DEFAULT_CACHE_ROOT),
        help="Directory that holds the youtubemetadata cache folder.",
    )
    parser.add_argument(
        "--plugins-root",
        default=str(_DEFAULT_PLUGINS_ROOT),
        help="Directory searched for <plugin>/cookies.txt.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging output.")
    return parser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="youtube-metadata",
        description="Resolve library metadata for local YouTube downloads.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = _add_shared_arguments(
        subparsers.add_parser("resolve", help="Resolve metadata for a local file or folder.")
    )
    resolve.add_argument("path", help="Media file (or series folder) to identify.")
    resolve.add_argument("--kind", choices=sorted(_KIND_CHOICES), default="movie")
    resolve.add_argument("--title", default=None, help="Title used when searching without an id.")
    resolve.add_argument(
        "--local",
        action="store_true",
        help="Only read the yt-dlp .info.json sidecar next to the file.",
    )

    search = _add_shared_arguments(subparsers.add_parser("search", help="Search YouTube and score the results."))
    search.add_argument("query", help="Free-text query.")
    mode = search.add_mutually_exclusive_group()
    mode.add_argument("--channels", action="store_true", help="Search channels instead of videos.")
    mode.add_argument(
        "--channel-id",
        action="store_true",
        help="Print only the channel id of the first channel hit.",
    )
    search.add_argument("--limit", type=int, default=None, help="Maximum number of results.")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


async def _resolve(pipeline: MetadataPipeline, args: argparse.Namespace) -> int:
    kind = _KIND_CHOICES[args.kind]
    if args.local:
        result = pipeline.get_local_movie_metadata(args.path)
    else:
        result = await pipeline.resolve(args.path, kind, title=args.title)
    if result is None:
        print(json.dumps({"path": args.path, "has_metadata": False}))
        return 1
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0


async def _search(pipeline: MetadataPipeline, config: PluginConfig, args: argparse.Namespace) -> int:
    query = cleanup_search_text(args.query)
    if not query:
        print(json.dumps([]))
        return 1
    client = pipeline.search_client
    if args.channel_id:
        channel_id = await client.search_channel_id(query)
        print(json.dumps({"query": query, "channel_id": channel_id}))
        return 0 if channel_id else 1

    limit = clamp_search_limit(args.limit or config.search_result_limit)
    if args.channels:
        candidates = await client.search_channels(query, limit)
    else:
        candidates = await client.search_videos(query, limit)
    ranked = rank_candidates(query, candidates)
    print(json.dumps([entry.to_dict() for entry in ranked], ensure_ascii=False, indent=2))
    return 0


async def _run(args: argparse.Namespace) -> int:
    config = load_plugin_config(args.config)
    paths = HostPaths(cache_root=Path(args.cache_root), plugins_root=Path(args.plugins_root))
    pipeline = create_pipeline(paths, config)
    try:
        if args.command == "resolve":
            return await _resolve(pipeline, args)
        return await _search(pipeline, config, args)
    finally:
        await pipeline.aclose()


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    log_mgr.configure_logging_level(debug_enabled=args.debug)
    try:
        return asyncio.run(_run(args))
    except MetadataError as exc:
        log_mgr.logger.error("Metadata lookup failed: %s", exc)
        return 2
    except ValueError as exc:
        log_mgr.logger.error("Invalid configuration: %s", exc)
        return 2


def main() -> None:
    sys.exit(run_cli())


__all__ = ["build_parser", "main", "parse_args", "run_cli"]
