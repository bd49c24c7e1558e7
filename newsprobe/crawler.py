"""High-level orchestration: targets -> sites -> articles -> results."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional, Sequence, Set

import requests
from playwright.async_api import Page, async_playwright
from tqdm import tqdm

from .classify import classify
from .config import CrawlConfig
from .errors import RobotsDisallowedError, TargetFetchError
from .links import discover_article_links
from .models import (
    ArticleOutcome,
    CrawlSummary,
    CrawlTarget,
    DetectionResult,
    MediaGroupTable,
    OutcomeStatus,
    RobotsPolicy,
    SiteOutcome,
    VideoPlayerTable,
)
from .observer import observe_page, politeness_delay
from .robots import fetch_robots_policy, is_allowed
from .store import ResultSink, TargetSource
from .utils import ensure_scheme

logger = logging.getLogger("newsprobe")


@dataclass
class CrawlContext:
    """Everything a run needs besides the browser page."""

    sink: ResultSink
    media_groups: MediaGroupTable
    video_players: VideoPlayerTable
    config: CrawlConfig = field(default_factory=CrawlConfig)
    http: requests.Session = field(default_factory=requests.Session)
    analyzed: Set[str] = field(default_factory=set)

    @property
    def player_patterns(self) -> List[str]:
        return self.video_players.all_patterns()


@asynccontextmanager
async def browser_session(config: CrawlConfig) -> AsyncIterator[Page]:
    """Launch Chromium with a single page; the browser is always closed."""
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=config.headless)
        try:
            context = await browser.new_context()
            page = await context.new_page()
            yield page
        finally:
            await browser.close()


async def process_article(page: Page, url: str, ctx: CrawlContext) -> ArticleOutcome:
    """Observe, classify and store a single article.

    Failures of any step, including the sink write, are logged and reported
    as an ``error`` outcome; they never escape.
    """
    try:
        observation = await observe_page(page, url, ctx.config, ctx.player_patterns)
        result = classify(observation, ctx.media_groups, ctx.video_players)
        ctx.sink.insert(result)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Failed crawling article %s", url)
        return ArticleOutcome(url=url, status=OutcomeStatus.ERROR, error=str(exc))

    logger.info("Saved: %s", url)
    try:
        await politeness_delay(page, ctx.config.cooldown_delay)
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Cooldown after %s failed: %s", url, exc)
    return ArticleOutcome(url=url, status=OutcomeStatus.SUCCESS, result=result)


async def _visit_candidate(
    page: Page, url: str, policy: RobotsPolicy, ctx: CrawlContext
) -> ArticleOutcome:
    if url in ctx.analyzed:
        logger.info("Skipping %s: already analyzed in this run", url)
        return ArticleOutcome(
            url=url, status=OutcomeStatus.SKIPPED, error="already analyzed in this run"
        )
    if not policy.allowed(url, ctx.config.user_agent):
        logger.info("Skipping %s: disallowed by robots.txt", url)
        return ArticleOutcome(
            url=url, status=OutcomeStatus.SKIPPED, error="disallowed by robots.txt"
        )
    ctx.analyzed.add(url)
    return await process_article(page, url, ctx)


async def crawl_site(page: Page, target: CrawlTarget, ctx: CrawlContext) -> SiteOutcome:
    """Gate a site on robots.txt, discover its articles and process them."""
    base_url = ensure_scheme(target.url)
    agent = ctx.config.user_agent
    try:
        policy: RobotsPolicy = fetch_robots_policy(
            base_url, session=ctx.http, timeout=ctx.config.robots_timeout
        )
        if not is_allowed(policy, base_url, agent):
            logger.warning("Crawling disallowed by robots.txt for %s", base_url)
            return SiteOutcome(
                url=base_url, status=OutcomeStatus.SKIPPED, reason="disallowed by robots.txt"
            )
        candidates = await discover_article_links(page, base_url, ctx.config)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Failed crawling base URL %s", base_url)
        return SiteOutcome(url=base_url, status=OutcomeStatus.ERROR, reason=str(exc))

    if not candidates:
        logger.info("No article links found on %s", base_url)
        return SiteOutcome(
            url=base_url, status=OutcomeStatus.SKIPPED, reason="no article candidates"
        )

    articles: List[ArticleOutcome] = []
    try:
        for url in candidates:
            articles.append(await _visit_candidate(page, url, policy, ctx))
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Failed crawling articles of %s", base_url)
        return SiteOutcome(
            url=base_url, status=OutcomeStatus.ERROR, articles=articles, reason=str(exc)
        )
    return SiteOutcome(url=base_url, status=OutcomeStatus.SUCCESS, articles=articles)


async def crawl_targets(
    page: Page,
    targets: Sequence[CrawlTarget],
    ctx: CrawlContext,
) -> CrawlSummary:
    """Visit every target in order, one site at a time."""
    summary = CrawlSummary()
    progress = tqdm(
        total=len(targets),
        desc="Sites",
        unit="site",
        disable=not ctx.config.show_progress,
    )
    try:
        for target in targets:
            summary.sites.append(await crawl_site(page, target, ctx))
            progress.update(1)
    finally:
        progress.close()
    return summary


def _fetch_targets(source: TargetSource) -> List[CrawlTarget]:
    try:
        return source.fetch_targets()
    except TargetFetchError:
        raise
    except Exception as exc:
        raise TargetFetchError(f"Error fetching crawl targets: {exc}") from exc


async def run_crawler(
    source: TargetSource,
    sink: ResultSink,
    media_groups: MediaGroupTable,
    video_players: VideoPlayerTable,
    config: Optional[CrawlConfig] = None,
) -> CrawlSummary:
    """Run a full crawl and return the per-site outcomes.

    A failure to load the targets aborts the run with ``TargetFetchError``
    once the browser has been closed.
    """
    config = config or CrawlConfig()
    ctx = CrawlContext(
        sink=sink,
        media_groups=media_groups,
        video_players=video_players,
        config=config,
    )
    overall_start = time.perf_counter()
    try:
        async with browser_session(config) as page:
            targets = _fetch_targets(source)
            if not targets:
                logger.info("No URLs found.")
                return CrawlSummary()
            summary = await crawl_targets(page, targets, ctx)
    finally:
        ctx.http.close()

    logger.info(
        "Crawling finished in %.2fs (%d sites, %d skipped, %d failed, %d records, %d article failures)",
        time.perf_counter() - overall_start,
        len(summary.sites),
        summary.count(OutcomeStatus.SKIPPED),
        summary.count(OutcomeStatus.ERROR),
        summary.records_written,
        summary.article_failures,
    )
    return summary


async def analyze_article(
    url: str,
    media_groups: MediaGroupTable,
    video_players: VideoPlayerTable,
    config: Optional[CrawlConfig] = None,
) -> DetectionResult:
    """Observe and classify one article page without recording it.

    Raises ``RobotsDisallowedError`` when the site's robots.txt forbids the URL.
    """
    config = config or CrawlConfig()
    url = ensure_scheme(url)
    with requests.Session() as http:
        policy = fetch_robots_policy(url, session=http, timeout=config.robots_timeout)
    if not policy.allowed(url, config.user_agent):
        raise RobotsDisallowedError(f"Crawling disallowed by robots.txt for {url}")
    async with browser_session(config) as page:
        observation = await observe_page(page, url, config, video_players.all_patterns())
    return classify(observation, media_groups, video_players)
