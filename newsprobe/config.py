"""Configuration objects and constants for the crawler."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import ConfigurationError

DEFAULT_TARGETS_TABLE = "crawl_targets_italy"
DEFAULT_RESULTS_TABLE = "crawled_data_italy"


@dataclass
class CrawlConfig:
    """Top-level settings that control crawling and politeness behaviour.

    Timeouts and delays are expressed in seconds.
    """

    homepage_timeout: float = 60.0
    article_timeout: float = 60.0
    player_probe_timeout: float = 8.0
    settle_delay: Tuple[float, float] = (2.0, 4.0)
    cooldown_delay: Tuple[float, float] = (3.0, 6.0)
    max_articles: int = 6
    user_agent: str = "*"
    robots_timeout: float = 15.0
    headless: bool = True
    show_progress: bool = True


@dataclass
class StoreSettings:
    """Remote store credentials and table names."""

    url: Optional[str] = None
    key: Optional[str] = None
    targets_table: str = DEFAULT_TARGETS_TABLE
    results_table: str = DEFAULT_RESULTS_TABLE

    @classmethod
    def from_env(cls) -> "StoreSettings":
        return cls(
            url=os.getenv("SUPABASE_URL"),
            key=os.getenv("SUPABASE_KEY"),
            targets_table=os.getenv("NEWSPROBE_TARGETS_TABLE", DEFAULT_TARGETS_TABLE),
            results_table=os.getenv("NEWSPROBE_RESULTS_TABLE", DEFAULT_RESULTS_TABLE),
        )

    def require_credentials(self) -> Tuple[str, str]:
        if not self.url or not self.key:
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_KEY must be set to use the Supabase store"
            )
        return self.url, self.key
