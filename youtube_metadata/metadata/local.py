"""Reader for ``.info.json`` sidecars that yt-dlp writes next to downloads."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from .. import logging_manager as log_mgr
from ..errors import InvalidRecordError
from .types import RawRecord

logger = log_mgr.get_logger().getChild("metadata.local")

SIDECAR_SUFFIX = ".info.json"


def find_local_info_file(media_path: Path | str) -> Optional[Path]:
    media_path = Path(media_path)
    candidate = media_path.with_name(media_path.stem + SIDECAR_SUFFIX)
    return candidate if candidate.is_file() else None


def read_local_record(media_path: Path | str) -> Optional[RawRecord]:
    """Return the record stored beside ``media_path``, or ``None`` when absent or unreadable."""

    info_file = find_local_info_file(media_path)
    if info_file is None:
        return None
    try:
        return RawRecord.from_info(json.loads(info_file.read_text(encoding="utf-8")))
    except (OSError, ValueError, InvalidRecordError) as exc:
        logger.warning("Unable to read sidecar %s: %s", info_file, exc)
        return None


__all__ = ["SIDECAR_SUFFIX", "find_local_info_file", "read_local_record"]
