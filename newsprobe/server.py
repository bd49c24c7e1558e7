"""HTTP trigger for a full crawl run."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .config import CrawlConfig, StoreSettings
from .crawler import run_crawler
from .models import CrawlSummary, MediaGroupTable, VideoPlayerTable
from .store import build_stores
from .tables import load_media_groups, load_video_players

logger = logging.getLogger("newsprobe.server")


async def crawl_now(
    media_groups: MediaGroupTable,
    video_players: VideoPlayerTable,
) -> CrawlSummary:
    """Run one crawl against the configured Supabase tables."""
    source, sink = build_stores(StoreSettings.from_env())
    return await run_crawler(
        source,
        sink,
        media_groups,
        video_players,
        CrawlConfig(show_progress=False),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the lookup tables once per process."""
    app.state.media_groups = load_media_groups()
    app.state.video_players = load_video_players()
    yield


app = FastAPI(title="newsprobe", version="0.1", lifespan=lifespan)


@app.get("/crawl-now", response_class=PlainTextResponse)
async def crawl_now_endpoint(request: Request) -> PlainTextResponse:
    state = request.app.state
    try:
        logger.info("Crawler started!")
        await crawl_now(state.media_groups, state.video_players)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Error triggering crawl")
        return PlainTextResponse(f"Error triggering crawl: {exc}", status_code=500)
    return PlainTextResponse("Crawl triggered successfully!")
