"""Seed target sources and result sinks."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from supabase import Client, create_client

from .config import StoreSettings
from .errors import TargetFetchError
from .models import CrawlTarget, DetectionResult

logger = logging.getLogger("newsprobe")


class TargetSource:
    """Supplies the sites to crawl.

    Subclasses implement ``fetch_targets`` and raise ``TargetFetchError``
    when the list cannot be produced.
    """

    def fetch_targets(self) -> List[CrawlTarget]:
        raise NotImplementedError


class ResultSink:
    """Append-only destination for detection results."""

    def insert(self, result: DetectionResult) -> None:
        raise NotImplementedError


def create_supabase_client(settings: StoreSettings) -> Client:
    url, key = settings.require_credentials()
    return create_client(url, key)


class SupabaseTargetSource(TargetSource):
    def __init__(self, client: Client, table: str) -> None:
        self.client = client
        self.table = table

    def fetch_targets(self) -> List[CrawlTarget]:
        logger.info("Fetching URLs from Supabase table %s", self.table)
        try:
            response = self.client.table(self.table).select("url").execute()
        except Exception as exc:  # pylint: disable=broad-except
            raise TargetFetchError(
                f"Error fetching URLs from Supabase table {self.table}: {exc}"
            ) from exc
        rows = response.data or []
        return [CrawlTarget(url=row["url"]) for row in rows if row.get("url")]


class SupabaseResultSink(ResultSink):
    def __init__(self, client: Client, table: str) -> None:
        self.client = client
        self.table = table

    def insert(self, result: DetectionResult) -> None:
        self.client.table(self.table).insert([result.to_record()]).execute()


class FileTargetSource(TargetSource):
    """Reads one URL per line; blank lines and ``#`` comment lines are ignored."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def fetch_targets(self) -> List[CrawlTarget]:
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise TargetFetchError(f"Cannot read targets file {self.path}: {exc}") from exc
        targets = []
        for line in lines:
            line = line.strip()
            if line and not line.startswith("#"):
                targets.append(CrawlTarget(url=line))
        return targets


class StaticTargetSource(TargetSource):
    """Targets given directly, e.g. on the command line."""

    def __init__(self, urls: Sequence[str]) -> None:
        self.urls = list(urls)

    def fetch_targets(self) -> List[CrawlTarget]:
        return [CrawlTarget(url=url) for url in self.urls]


class JsonlResultSink(ResultSink):
    """Appends each record as one JSON line."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def insert(self, result: DetectionResult) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(result.to_record(), ensure_ascii=False) + "\n")


class MemorySink(ResultSink):
    def __init__(self) -> None:
        self.results: List[DetectionResult] = []

    def insert(self, result: DetectionResult) -> None:
        self.results.append(result)

    def records(self) -> List[dict]:
        return [r.to_record() for r in self.results]


def build_source(
    settings: StoreSettings,
    targets_file: Optional[Path] = None,
    urls: Optional[Sequence[str]] = None,
) -> TargetSource:
    """Explicit URLs first, then a local file, then the Supabase table."""
    if urls:
        return StaticTargetSource(urls)
    if targets_file is not None:
        return FileTargetSource(targets_file)
    return SupabaseTargetSource(create_supabase_client(settings), settings.targets_table)


def build_sink(settings: StoreSettings, output: Optional[Path] = None) -> ResultSink:
    if output is not None:
        return JsonlResultSink(output)
    return SupabaseResultSink(create_supabase_client(settings), settings.results_table)


def build_stores(
    settings: Optional[StoreSettings] = None,
    targets_file: Optional[Path] = None,
    output: Optional[Path] = None,
    urls: Optional[Sequence[str]] = None,
) -> Tuple[TargetSource, ResultSink]:
    settings = settings or StoreSettings.from_env()
    return build_source(settings, targets_file, urls), build_sink(settings, output)
