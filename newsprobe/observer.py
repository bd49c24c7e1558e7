"""Article page loading and evidence gathering."""

from __future__ import annotations

import logging
import random
from typing import List, Sequence, Tuple

from playwright.async_api import (
    Error as PlaywrightError,
    Page,
    Request,
    TimeoutError as PlaywrightTimeoutError,
)

from .config import CrawlConfig
from .models import NetworkObservation

logger = logging.getLogger("newsprobe")

_PLAYER_SCRIPT_PROBE = """
(patterns) => {
  const scripts = Array.from(document.querySelectorAll('script[src]')).map(s => s.src);
  return patterns.some(pattern => scripts.some(src => src.includes(pattern)));
}
"""
_ELEMENT_SOURCES = "elements => elements.map(el => el.src)"
_VIDEO_MIME_TYPES = """
() => Array.from(document.querySelectorAll('video source'))
  .map(source => source.type)
  .filter(Boolean)
"""
_RESOURCE_ENTRY_NAMES = """
() => Array.from(window.performance.getEntriesByType('resource')).map(r => r.name)
"""


class RequestCapture:
    """Collects outgoing request URLs for the duration of one navigation.

    The listener is attached on ``__enter__`` and detached on ``__exit__``;
    once closed, the capture no longer grows and cannot be reopened.
    """

    def __init__(self, page: Page) -> None:
        self._page = page
        self._urls: List[str] = []
        self._open = False
        self._closed = False

    def _on_request(self, request: Request) -> None:
        self._urls.append(request.url)

    def __enter__(self) -> "RequestCapture":
        if self._closed:
            raise RuntimeError("RequestCapture cannot be reused")
        self._page.on("request", self._on_request)
        self._open = True
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._open:
            self._page.remove_listener("request", self._on_request)
            self._open = False
        self._closed = True

    @property
    def urls(self) -> List[str]:
        return list(self._urls)


async def politeness_delay(page: Page, window: Tuple[float, float]) -> float:
    """Pause for a random duration drawn from ``window`` seconds."""
    low, high = window
    seconds = random.uniform(low, high)
    if seconds > 0:
        await page.wait_for_timeout(seconds * 1000)
    return seconds


async def wait_for_player_script(page: Page, patterns: Sequence[str], timeout: float) -> bool:
    """Give known player scripts a chance to be injected.

    Returns ``False`` when none showed up in time or the page could not be
    queried; neither is an error.
    """
    if not patterns:
        return False
    try:
        await page.wait_for_function(
            _PLAYER_SCRIPT_PROBE, arg=list(patterns), timeout=timeout * 1000
        )
    except PlaywrightTimeoutError:
        logger.debug("No player script detected on %s within %.1fs", page.url, timeout)
        return False
    except PlaywrightError as exc:
        logger.debug("Player script check failed on %s: %s", page.url, exc)
        return False
    return True


async def observe_page(
    page: Page,
    url: str,
    config: CrawlConfig,
    player_patterns: Sequence[str],
) -> NetworkObservation:
    """Load an article and record the network and DOM evidence it exposes."""
    logger.info("Loading article %s", url)
    with RequestCapture(page) as capture:
        await page.goto(url, wait_until="networkidle", timeout=config.article_timeout * 1000)
        await politeness_delay(page, config.settle_delay)
        await wait_for_player_script(page, player_patterns, config.player_probe_timeout)
    requests = capture.urls

    scripts = await page.eval_on_selector_all("script[src]", _ELEMENT_SOURCES)
    iframes = await page.eval_on_selector_all("iframe[src]", _ELEMENT_SOURCES)
    videos = await page.eval_on_selector_all("video source[src]", _ELEMENT_SOURCES)
    mime_types = await page.evaluate(_VIDEO_MIME_TYPES)
    resource_entries = await page.evaluate(_RESOURCE_ENTRY_NAMES)

    return NetworkObservation(
        url=url,
        requests=requests,
        scripts=list(scripts),
        iframes=list(iframes),
        video_sources=list(videos),
        video_mime_types=list(mime_types),
        resource_entries=list(resource_entries),
    )
