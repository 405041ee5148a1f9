"""Plugin-wide constants: names, YouTube URL templates and cache layout."""

from __future__ import annotations

PLUGIN_NAME = "YoutubeAutoMetadata"

VIDEO_URL = "https://www.youtube.com/watch?v={0}"
CHANNEL_URL = "https://www.youtube.com/channel/{0}"
# ``sp`` filters the results page to videos / channels respectively.
VIDEO_SEARCH_URL = "https://www.youtube.com/results?search_query={0}&sp=EgIQAQ%253D%253D"
CHANNEL_SEARCH_URL = "https://www.youtube.com/results?search_query={0}&sp=EgIQAg%253D%253D"

CACHE_DIR_NAME = "youtubemetadata"
RECORD_BASENAME = "record"
RECORD_FILENAME = f"{RECORD_BASENAME}.info.json"
COOKIE_FILENAME = "cookies.txt"

FRESHNESS_DAYS = 10
MAX_SEARCH_RESULTS = 25

DEFAULT_AI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_AI_MODEL = "gpt-4o-mini"

SERIES_OVERVIEW_FALLBACK = "Series metadata from YouTube."

__all__ = [
    "CACHE_DIR_NAME",
    "CHANNEL_SEARCH_URL",
    "CHANNEL_URL",
    "COOKIE_FILENAME",
    "DEFAULT_AI_BASE_URL",
    "DEFAULT_AI_MODEL",
    "FRESHNESS_DAYS",
    "MAX_SEARCH_RESULTS",
    "PLUGIN_NAME",
    "RECORD_BASENAME",
    "RECORD_FILENAME",
    "SERIES_OVERVIEW_FALLBACK",
    "VIDEO_SEARCH_URL",
    "VIDEO_URL",
]
