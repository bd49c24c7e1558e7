import json

from newsprobe import cli
from newsprobe.errors import RobotsDisallowedError
from newsprobe.models import AdFormats, CrawlSummary, DetectionResult


def test_parse_args_defaults_to_crawl():
    args = cli.parse_args(["repubblica.it", "corriere.it"])
    assert args.command == "crawl"
    assert args.urls == ["repubblica.it", "corriere.it"]
    assert args.output is None


def test_parse_args_crawl_options(tmp_path):
    args = cli.parse_args(
        ["crawl", "--targets-file", str(tmp_path / "t.txt"), "--no-delay", "--timeout", "10"]
    )
    config = cli._build_config(args)
    assert args.urls == []
    assert config.settle_delay == (0.0, 0.0)
    assert config.cooldown_delay == (0.0, 0.0)
    assert config.homepage_timeout == 10.0
    assert config.article_timeout == 10.0


def test_crawl_command_writes_jsonl(monkeypatch, tmp_path):
    captured = {}

    async def fake_run_crawler(source, sink, media_groups, video_players, config):
        captured["targets"] = source.fetch_targets()
        sink.insert(
            DetectionResult(
                url="https://www.ansa.it/news/a.html",
                media_group="ANSA",
                video_players=(),
                ad_formats=AdFormats(),
                timestamp="2024-05-01T12:00:00+00:00",
            )
        )
        return CrawlSummary()

    monkeypatch.setattr(cli, "run_crawler", fake_run_crawler)
    output = tmp_path / "results.jsonl"

    code = cli.main(["ansa.it", "--output", str(output)])

    assert code == 0
    assert [t.url for t in captured["targets"]] == ["ansa.it"]
    record = json.loads(output.read_text(encoding="utf-8"))
    assert record["mediaGroup"] == "ANSA"


def test_crawl_command_reports_configuration_errors(monkeypatch, tmp_path):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    assert cli.main(["crawl"]) == 1


def test_analyze_command_prints_record(monkeypatch, capsys):
    async def fake_analyze(url, media_groups, video_players, config):
        assert config.show_progress is False
        return DetectionResult(
            url=url,
            media_group="GEDI",
            video_players=("JWPlayer",),
            ad_formats=AdFormats(outstream=True),
            timestamp="2024-05-01T12:00:00+00:00",
        )

    monkeypatch.setattr(cli, "analyze_article", fake_analyze)

    code = cli.main(["analyze", "https://www.repubblica.it/news/a.html"])

    assert code == 0
    record = json.loads(capsys.readouterr().out)
    assert record["videoPlayers"] == ["JWPlayer"]
    assert record["adFormats"] == {"instream": False, "outstream": True}


def test_analyze_command_fails_when_robots_disallow(monkeypatch, capsys):
    async def refuse(url, media_groups, video_players, config):
        raise RobotsDisallowedError(f"Crawling disallowed by robots.txt for {url}")

    monkeypatch.setattr(cli, "analyze_article", refuse)

    assert cli.main(["analyze", "https://www.repubblica.it/news/a.html"]) == 1
    assert capsys.readouterr().out == ""
