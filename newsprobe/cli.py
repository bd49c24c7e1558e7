"""Command-line entry point for newsprobe."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Sequence

from dotenv import load_dotenv

from .config import CrawlConfig, StoreSettings
from .crawler import analyze_article, run_crawler
from .errors import NewsprobeError
from .store import build_stores
from .tables import load_media_groups, load_video_players

logger = logging.getLogger("newsprobe.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("crawl", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--media-groups",
        type=Path,
        default=None,
        help="JSON file mapping media groups to domain fragments (default: bundled table)",
    )
    parser.add_argument(
        "--video-players",
        type=Path,
        default=None,
        help="JSON file mapping video players to URL patterns (default: bundled table)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Navigation timeout in seconds for homepages and articles",
    )
    parser.add_argument(
        "--no-delay",
        action="store_true",
        help="Disable the randomized politeness delays (only for local testing)",
    )
    parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_crawl_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "urls",
        nargs="*",
        help="Sites to crawl; when omitted, targets come from --targets-file or Supabase",
    )
    parser.add_argument(
        "--targets-file",
        type=Path,
        default=None,
        help="Text file with one site URL per line instead of the Supabase targets table",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Append results to this JSONL file instead of the Supabase results table",
    )
    _add_common_arguments(parser)


def _add_analyze_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="Article URL to analyze")
    _add_common_arguments(parser)


def _add_serve_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=3000, help="Port to listen on")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Crawl news sites with Playwright and detect their media group, "
            "video players and ad formats."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    crawl_parser = subparsers.add_parser(
        "crawl", help="Crawl target sites and record one result per article"
    )
    _add_crawl_arguments(crawl_parser)

    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyze a single article page and print the result"
    )
    _add_analyze_arguments(analyze_parser)

    serve_parser = subparsers.add_parser(
        "serve", help="Serve the /crawl-now HTTP trigger"
    )
    _add_serve_arguments(serve_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _build_config(args: argparse.Namespace) -> CrawlConfig:
    config = CrawlConfig(
        homepage_timeout=args.timeout,
        article_timeout=args.timeout,
        headless=not args.headful,
    )
    if args.no_delay:
        config.settle_delay = (0.0, 0.0)
        config.cooldown_delay = (0.0, 0.0)
    return config


def _run_crawl(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    config = _build_config(args)
    media_groups = load_media_groups(args.media_groups)
    video_players = load_video_players(args.video_players)
    source, sink = build_stores(
        StoreSettings.from_env(),
        targets_file=args.targets_file,
        output=args.output,
        urls=args.urls,
    )

    summary = asyncio.run(run_crawler(source, sink, media_groups, video_players, config))
    logger.info(
        "%d records written from %d sites",
        summary.records_written,
        len(summary.sites),
    )
    return 0


def _run_analyze(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    config = _build_config(args)
    config.show_progress = False
    result = asyncio.run(
        analyze_article(
            args.url,
            load_media_groups(args.media_groups),
            load_video_players(args.video_players),
            config,
        )
    )
    sys.stdout.write(json.dumps(result.to_record(), ensure_ascii=False, indent=2) + "\n")
    sys.stdout.flush()
    return 0


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    _configure_logging(args.verbose)
    uvicorn.run("newsprobe.server:app", host=args.host, port=args.port)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    handlers = {
        "crawl": _run_crawl,
        "analyze": _run_analyze,
        "serve": _run_serve,
    }
    try:
        return handlers[args.command](args)
    except NewsprobeError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
