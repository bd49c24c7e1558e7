"""MCP server exposing newsprobe crawl/analysis tools."""

from __future__ import annotations

import json
import logging

from mcp.server.fastmcp import FastMCP

from .config import CrawlConfig, StoreSettings
from .crawler import analyze_article as analyze_article_page
from .crawler import run_crawler
from .store import build_stores
from .tables import load_media_groups, load_video_players

logger = logging.getLogger("newsprobe.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="newsprobe")

MEDIA_GROUPS = load_media_groups()
VIDEO_PLAYERS = load_video_players()


@mcp.tool()
async def crawl_now() -> str:
    """Crawl every configured target site and store the detections in Supabase."""
    source, sink = build_stores(StoreSettings.from_env())
    summary = await run_crawler(
        source,
        sink,
        MEDIA_GROUPS,
        VIDEO_PLAYERS,
        CrawlConfig(show_progress=False),
    )
    return (
        f"Crawled {len(summary.sites)} sites, "
        f"saved {summary.records_written} records, "
        f"{summary.article_failures} article failures."
    )


@mcp.tool()
async def analyze_article(
    url: str,
) -> str:
    """Render one article page and return its media group, video players and ad formats as JSON."""
    config = CrawlConfig(show_progress=False, settle_delay=(0.0, 0.0))
    result = await analyze_article_page(url, MEDIA_GROUPS, VIDEO_PLAYERS, config)
    return json.dumps(result.to_record(), ensure_ascii=False)


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
