"""Data models used throughout the crawl-and-classify pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.robotparser import RobotFileParser


@dataclass(frozen=True)
class CrawlTarget:
    """Seed site supplied by the target source."""

    url: str


class RobotsPolicy:
    """Exclusion rules for one site.

    Wraps a parsed ``RobotFileParser``; a policy without a parser allows every
    URL, which is what a missing or unreadable robots file resolves to.
    """

    def __init__(self, parser: Optional[RobotFileParser] = None) -> None:
        self._parser = parser

    @classmethod
    def allow_all(cls) -> "RobotsPolicy":
        return cls(None)

    @property
    def is_allow_all(self) -> bool:
        return self._parser is None

    def allowed(self, url: str, agent: str = "*") -> bool:
        if self._parser is None:
            return True
        return self._parser.can_fetch(agent, url)


@dataclass
class NetworkObservation:
    """Evidence gathered during a single article page load."""

    url: str
    requests: List[str] = field(default_factory=list)
    scripts: List[str] = field(default_factory=list)
    iframes: List[str] = field(default_factory=list)
    video_sources: List[str] = field(default_factory=list)
    video_mime_types: List[str] = field(default_factory=list)
    resource_entries: List[str] = field(default_factory=list)

    def observed_urls(self) -> List[str]:
        """Union of every URL the page requested or referenced."""
        return [*self.requests, *self.scripts, *self.iframes, *self.video_sources]


@dataclass(frozen=True)
class AdFormats:
    instream: bool = False
    outstream: bool = False


@dataclass(frozen=True)
class DetectionResult:
    """Classification of one article page."""

    url: str
    media_group: str
    video_players: Tuple[str, ...]
    ad_formats: AdFormats
    timestamp: str  # ISO8601

    def to_record(self) -> Dict[str, Any]:
        """Row shape written to the result sink."""
        return {
            "url": self.url,
            "mediaGroup": self.media_group,
            "videoPlayers": list(self.video_players),
            "adFormats": {
                "instream": self.ad_formats.instream,
                "outstream": self.ad_formats.outstream,
            },
            "timestamp": self.timestamp,
        }


class OutcomeStatus(str, enum.Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class ArticleOutcome:
    url: str
    status: OutcomeStatus
    result: Optional[DetectionResult] = None
    error: Optional[str] = None


@dataclass
class SiteOutcome:
    url: str
    status: OutcomeStatus
    articles: List[ArticleOutcome] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def records_written(self) -> int:
        return sum(1 for a in self.articles if a.status is OutcomeStatus.SUCCESS)


@dataclass
class CrawlSummary:
    """Per-site outcomes of a full run."""

    sites: List[SiteOutcome] = field(default_factory=list)

    @property
    def records_written(self) -> int:
        return sum(site.records_written for site in self.sites)

    @property
    def article_failures(self) -> int:
        return sum(
            1
            for site in self.sites
            for article in site.articles
            if article.status is OutcomeStatus.ERROR
        )

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for site in self.sites if site.status is status)


def _freeze(mapping: Mapping[str, Sequence[str]]) -> Mapping[str, Tuple[str, ...]]:
    return MappingProxyType({key: tuple(values) for key, values in mapping.items()})


@dataclass(frozen=True)
class MediaGroupTable:
    """Ordered group name -> domain fragments, plus a fallback table.

    Iteration order is the configured order and decides ties.
    """

    groups: Mapping[str, Tuple[str, ...]]
    fallback: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_mappings(
        cls,
        groups: Mapping[str, Sequence[str]],
        fallback: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> "MediaGroupTable":
        return cls(groups=_freeze(groups), fallback=_freeze(fallback or {}))


@dataclass(frozen=True)
class VideoPlayerTable:
    """Player name -> URL substrings identifying it."""

    players: Mapping[str, Tuple[str, ...]]

    @classmethod
    def from_mapping(cls, players: Mapping[str, Sequence[str]]) -> "VideoPlayerTable":
        return cls(players=_freeze(players))

    def all_patterns(self) -> List[str]:
        return [pattern for patterns in self.players.values() for pattern in patterns]
