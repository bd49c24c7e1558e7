"""Loading of the static media-group and video-player lookup tables."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import TableError
from .models import MediaGroupTable, VideoPlayerTable

logger = logging.getLogger("newsprobe")

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_MEDIA_GROUPS_PATH = DATA_DIR / "media-groups.json"
DEFAULT_VIDEO_PLAYERS_PATH = DATA_DIR / "video-players.json"

# Keys holding the secondary table, consulted only when no primary group matches.
FALLBACK_KEYS = ("OtherGroups", "Other Groups")

PathLike = Union[str, Path]


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise TableError(f"Cannot read lookup table {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise TableError(f"Invalid JSON in lookup table {path}: {exc}") from exc


def _pattern_list(path: Path, key: str, value: Any) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise TableError(f"{path}: entry {key!r} must be a list of strings")
    return [v for v in value if v]


def parse_media_groups(data: Any, source: Path = Path("<memory>")) -> MediaGroupTable:
    """Build a ``MediaGroupTable`` preserving the document's key order."""
    if not isinstance(data, dict):
        raise TableError(f"{source}: media group table must be a JSON object")

    groups: Dict[str, List[str]] = {}
    fallback: Dict[str, List[str]] = {}
    for key, value in data.items():
        if key in FALLBACK_KEYS:
            if not isinstance(value, dict):
                raise TableError(f"{source}: {key!r} must be a JSON object")
            for group, fragments in value.items():
                fallback[group] = _pattern_list(source, group, fragments)
            continue
        groups[key] = _pattern_list(source, key, value)
    return MediaGroupTable.from_mappings(groups, fallback)


def parse_video_players(data: Any, source: Path = Path("<memory>")) -> VideoPlayerTable:
    if not isinstance(data, dict):
        raise TableError(f"{source}: video player table must be a JSON object")
    players = {name: _pattern_list(source, name, patterns) for name, patterns in data.items()}
    return VideoPlayerTable.from_mapping(players)


def load_media_groups(path: Optional[PathLike] = None) -> MediaGroupTable:
    table_path = Path(path) if path else DEFAULT_MEDIA_GROUPS_PATH
    table = parse_media_groups(_read_json(table_path), table_path)
    logger.debug(
        "Loaded %d media groups (+%d fallback) from %s",
        len(table.groups),
        len(table.fallback),
        table_path,
    )
    return table


def load_video_players(path: Optional[PathLike] = None) -> VideoPlayerTable:
    table_path = Path(path) if path else DEFAULT_VIDEO_PLAYERS_PATH
    table = parse_video_players(_read_json(table_path), table_path)
    logger.debug("Loaded %d video players from %s", len(table.players), table_path)
    return table
