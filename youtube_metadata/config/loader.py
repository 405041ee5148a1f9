"""Plugin configuration loader and validation utilities."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

import yaml

from ..constants import (
    CACHE_DIR_NAME,
    COOKIE_FILENAME,
    DEFAULT_AI_BASE_URL,
    DEFAULT_AI_MODEL,
    MAX_SEARCH_RESULTS,
    PLUGIN_NAME,
)

CONFIG_PATH_ENV = "YOUTUBE_METADATA_CONFIG"
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "conf" / "youtube_metadata.yaml"

_ENV_OVERRIDES = {
    "ai_api_key": "YOUTUBE_METADATA_AI_API_KEY",
    "ai_base_url": "YOUTUBE_METADATA_AI_BASE_URL",
    "ai_model": "YOUTUBE_METADATA_AI_MODEL",
}


class IdType(str, Enum):
    """Naming scheme used to embed identifiers in local filenames."""

    YTDLP = "yt-dlp"
    TUBEARCHIVIST = "tubearchivist"


_DEFAULT_CONFIG = {
    "id_type": IdType.YTDLP.value,
    "enable_title_lookup_without_id": True,
    "search_result_limit": 10,
    "enable_auto_episode_indexing": True,
    "prefer_uploader_as_series_name": True,
    "enable_ai_metadata_cleanup": False,
    "enable_ai_description_cleanup": False,
    "ai_api_key": "",
    "ai_base_url": DEFAULT_AI_BASE_URL,
    "ai_model": DEFAULT_AI_MODEL,
}


def _coerce_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a positive integer, not a boolean")
    if isinstance(value, int):
        candidate = value
    elif isinstance(value, str) and value.strip():
        if not value.strip().isdigit():
            raise ValueError(f"{name} must be a positive integer")
        candidate = int(value.strip())
    else:
        raise ValueError(f"{name} must be a positive integer")
    if candidate <= 0:
        raise ValueError(f"{name} must be greater than zero")
    return candidate


def _coerce_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off"}:
            return False
    raise ValueError(f"{name} must be a boolean value")


def _coerce_string(name: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise ValueError(f"{name} must be a string")


def _coerce_id_type(value: Any) -> IdType:
    if isinstance(value, IdType):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower().replace("_", "-")
        for member in IdType:
            if member.value == lowered or member.name.lower() == lowered.replace("-", ""):
                return member
    raise ValueError(f"id_type must be one of {', '.join(m.value for m in IdType)}")


def _coerce_path(name: str, value: Any) -> Path:
    if isinstance(value, Path):
        return value
    if isinstance(value, str) and value.strip():
        return Path(value.strip()).expanduser()
    raise ValueError(f"{name} must be a non-empty path string")


def _normalise_payload(data: Mapping[str, Any] | None) -> MutableMapping[str, Any]:
    payload: MutableMapping[str, Any] = dict(_DEFAULT_CONFIG)
    if not data:
        return payload
    for key, value in data.items():
        if key not in payload:
            continue
        payload[key] = value
    return payload


@dataclass(frozen=True, slots=True)
class PluginConfig:
    """Validated plugin settings; the field defaults mirror ``_DEFAULT_CONFIG``."""

    id_type: IdType = IdType.YTDLP
    enable_title_lookup_without_id: bool = True
    search_result_limit: int = 10
    enable_auto_episode_indexing: bool = True
    prefer_uploader_as_series_name: bool = True
    enable_ai_metadata_cleanup: bool = False
    enable_ai_description_cleanup: bool = False
    ai_api_key: str = ""
    ai_base_url: str = DEFAULT_AI_BASE_URL
    ai_model: str = DEFAULT_AI_MODEL

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "PluginConfig":
        normalised = _normalise_payload(payload)
        limit = _coerce_positive_int("search_result_limit", normalised["search_result_limit"])
        return cls(
            id_type=_coerce_id_type(normalised["id_type"]),
            enable_title_lookup_without_id=_coerce_bool(
                "enable_title_lookup_without_id", normalised["enable_title_lookup_without_id"]
            ),
            search_result_limit=min(limit, MAX_SEARCH_RESULTS),
            enable_auto_episode_indexing=_coerce_bool(
                "enable_auto_episode_indexing", normalised["enable_auto_episode_indexing"]
            ),
            prefer_uploader_as_series_name=_coerce_bool(
                "prefer_uploader_as_series_name", normalised["prefer_uploader_as_series_name"]
            ),
            enable_ai_metadata_cleanup=_coerce_bool(
                "enable_ai_metadata_cleanup", normalised["enable_ai_metadata_cleanup"]
            ),
            enable_ai_description_cleanup=_coerce_bool(
                "enable_ai_description_cleanup", normalised["enable_ai_description_cleanup"]
            ),
            ai_api_key=_coerce_string("ai_api_key", normalised["ai_api_key"]),
            ai_base_url=_coerce_string("ai_base_url", normalised["ai_base_url"]) or DEFAULT_AI_BASE_URL,
            ai_model=_coerce_string("ai_model", normalised["ai_model"]),
        )

    @property
    def ai_cleanup_active(self) -> bool:
        """Return True when AI cleanup is enabled and fully configured."""

        return bool(self.enable_ai_metadata_cleanup and self.ai_api_key and self.ai_model)

    def with_updates(self, **updates: Any) -> "PluginConfig":
        """Return a copy of the settings with provided keyword overrides applied."""

        return replace(self, **updates)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id_type": self.id_type.value,
            "enable_title_lookup_without_id": self.enable_title_lookup_without_id,
            "search_result_limit": self.search_result_limit,
            "enable_auto_episode_indexing": self.enable_auto_episode_indexing,
            "prefer_uploader_as_series_name": self.prefer_uploader_as_series_name,
            "enable_ai_metadata_cleanup": self.enable_ai_metadata_cleanup,
            "enable_ai_description_cleanup": self.enable_ai_description_cleanup,
            "ai_api_key": "***" if self.ai_api_key else "",
            "ai_base_url": self.ai_base_url,
            "ai_model": self.ai_model,
        }


@dataclass(frozen=True, slots=True)
class HostPaths:
    """Directories owned by the host application."""

    cache_root: Path
    plugins_root: Path

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "HostPaths":
        return cls(
            cache_root=_coerce_path("cache_root", payload.get("cache_root")),
            plugins_root=_coerce_path("plugins_root", payload.get("plugins_root")),
        )

    @property
    def metadata_cache_dir(self) -> Path:
        return self.cache_root / CACHE_DIR_NAME

    def resolve_cookie_file(self) -> Optional[Path]:
        """Return the plugin's cookie file when present; absence is not an error."""

        candidate = self.plugins_root / PLUGIN_NAME / COOKIE_FILENAME
        return candidate if candidate.is_file() else None


def _apply_env_overrides(raw_data: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    for key, env_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            raw_data[key] = value
    return raw_data


def load_plugin_config(path: Optional[Path | str] = None) -> PluginConfig:
    """Load and validate the plugin configuration from disk."""

    if path:
        config_path = Path(path)
    elif os.environ.get(CONFIG_PATH_ENV):
        config_path = Path(os.environ[CONFIG_PATH_ENV])
    else:
        config_path = _DEFAULT_CONFIG_PATH
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw_data = yaml.safe_load(handle) or {}
    except FileNotFoundError:
        raw_data = {}
    if not isinstance(raw_data, Mapping):
        raise ValueError(f"{config_path} must contain a mapping of settings")
    return PluginConfig.from_mapping(_apply_env_overrides(dict(raw_data)))


@lru_cache(maxsize=1)
def get_plugin_config() -> PluginConfig:
    """Return the cached plugin configuration."""

    return load_plugin_config()


__all__ = ["HostPaths", "IdType", "PluginConfig", "get_plugin_config", "load_plugin_config"]
