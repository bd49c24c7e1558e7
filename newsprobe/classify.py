"""Heuristics turning page observations into a ``DetectionResult``.

Everything here is pure: the lookup tables are passed in by the caller and
the only clock read happens when ``classify`` is not given ``now``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from .models import (
    AdFormats,
    DetectionResult,
    MediaGroupTable,
    NetworkObservation,
    VideoPlayerTable,
)
from .utils import hostname_of, strip_www

UNKNOWN_MEDIA_GROUP = "Unknown"
CUSTOM_PLAYER = "Custom"

VAST_MARKER = "vast.xml"
OUTSTREAM_MARKERS = ("teads.tv", "outbrain.com/lp-video")


def _first_matching_group(
    domain: str, groups: Mapping[str, Sequence[str]]
) -> Optional[str]:
    for group, fragments in groups.items():
        if any(strip_www(fragment.lower()) in domain for fragment in fragments):
            return group
    return None


def resolve_media_group(hostname: str, table: MediaGroupTable) -> str:
    """Return the media group owning ``hostname``.

    Groups are tried in table order and the first hit wins, so overlapping
    fragments resolve to whichever group is listed first. The fallback table
    is only consulted when the primary one has no match.
    """
    domain = strip_www(hostname.lower())
    group = _first_matching_group(domain, table.groups)
    if group is None:
        group = _first_matching_group(domain, table.fallback)
    return group or UNKNOWN_MEDIA_GROUP


def detect_players(urls: Iterable[str], table: VideoPlayerTable) -> Tuple[str, ...]:
    """All players with at least one pattern contained in an observed URL."""
    observed = list(urls)
    return tuple(
        player
        for player, patterns in table.players.items()
        if any(pattern in url for pattern in patterns for url in observed)
    )


def has_html5_video(mime_types: Iterable[str]) -> bool:
    return any(mime.startswith("video/") for mime in mime_types if mime)


def detect_ad_formats(entry_names: Iterable[str]) -> AdFormats:
    names = list(entry_names)
    return AdFormats(
        instream=any(VAST_MARKER in name for name in names),
        outstream=any(marker in name for name in names for marker in OUTSTREAM_MARKERS),
    )


def classify(
    observation: NetworkObservation,
    media_groups: MediaGroupTable,
    video_players: VideoPlayerTable,
    now: Optional[datetime] = None,
) -> DetectionResult:
    """Derive the media group, video players and ad formats of one page."""
    players = detect_players(observation.observed_urls(), video_players)
    if not players and has_html5_video(observation.video_mime_types):
        players = (CUSTOM_PLAYER,)

    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    return DetectionResult(
        url=observation.url,
        media_group=resolve_media_group(hostname_of(observation.url), media_groups),
        video_players=players,
        ad_formats=detect_ad_formats(observation.resource_entries),
        timestamp=timestamp,
    )
