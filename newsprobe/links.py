"""Homepage loading and article candidate extraction."""

from __future__ import annotations

import logging
from typing import List
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup
from playwright.async_api import Page

from .config import CrawlConfig

logger = logging.getLogger("newsprobe")

MAX_ARTICLES = 6
_ARTICLE_PATH_MARKERS = ("article", "news")


def _looks_like_article(path: str) -> bool:
    return any(marker in path for marker in _ARTICLE_PATH_MARKERS) or path.endswith(".html")


def extract_article_links(html: str, page_url: str, limit: int = MAX_ARTICLES) -> List[str]:
    """Return same-host article links in first-seen order, at most ``limit``."""
    page_host = (urlparse(page_url).hostname or "").lower()
    soup = BeautifulSoup(html, "html.parser")

    seen = set()
    candidates: List[str] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href:
            continue
        try:
            absolute, _ = urldefrag(urljoin(page_url, href))
            parsed = urlparse(absolute)
            host = (parsed.hostname or "").lower()
        except ValueError:
            continue
        if parsed.scheme not in ("http", "https") or host != page_host:
            continue
        if not _looks_like_article(parsed.path):
            continue
        if absolute in seen:
            continue
        seen.add(absolute)
        candidates.append(absolute)
        if len(candidates) >= limit:
            break
    return candidates


async def discover_article_links(page: Page, base_url: str, config: CrawlConfig) -> List[str]:
    """Load a site's homepage and pick the article pages worth analyzing.

    Navigation errors propagate; the caller decides whether the site is
    skipped.
    """
    logger.info("Loading homepage %s", base_url)
    await page.goto(
        base_url,
        wait_until="domcontentloaded",
        timeout=config.homepage_timeout * 1000,
    )
    html = await page.content()
    links = extract_article_links(html, page.url, limit=config.max_articles)
    logger.debug("Found %d article candidates on %s", len(links), base_url)
    return links
