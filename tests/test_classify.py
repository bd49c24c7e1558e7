import itertools
from datetime import datetime, timezone

from newsprobe.classify import (
    classify,
    detect_ad_formats,
    detect_players,
    has_html5_video,
    resolve_media_group,
)
from newsprobe.models import (
    AdFormats,
    MediaGroupTable,
    NetworkObservation,
    VideoPlayerTable,
)


def test_resolve_media_group_strips_www():
    table = MediaGroupTable.from_mappings({"GEDI": ["repubblica.it"]})
    assert resolve_media_group("www.repubblica.it", table) == "GEDI"


def test_resolve_media_group_ignores_fragment_case():
    table = MediaGroupTable.from_mappings({"GEDI": ["Repubblica.IT", "WWW.LaStampa.it"]})
    assert resolve_media_group("www.repubblica.it", table) == "GEDI"
    assert resolve_media_group("LASTAMPA.it", table) == "GEDI"


def test_resolve_media_group_strips_www_from_fragments(media_groups):
    assert resolve_media_group("www.lastampa.it", media_groups) == "GEDI"
    assert resolve_media_group("torino.lastampa.it", media_groups) == "GEDI"


def test_resolve_media_group_defaults_to_unknown(media_groups):
    assert resolve_media_group("www.example.org", media_groups) == "Unknown"
    assert resolve_media_group("", media_groups) == "Unknown"


def test_resolve_media_group_uses_fallback_only_without_primary_match():
    table = MediaGroupTable.from_mappings(
        {"Primary": ["ansa.it"]},
        {"ANSA": ["ansa.it"], "Other": ["ilpost.it"]},
    )
    assert resolve_media_group("www.ansa.it", table) == "Primary"
    assert resolve_media_group("www.ilpost.it", table) == "Other"


def test_resolve_media_group_first_configured_group_wins():
    # Both fragments match; the group listed first is returned.
    first = MediaGroupTable.from_mappings(
        {"Mediaset": ["mediaset.it"], "TGCom": ["tgcom24.mediaset.it"]}
    )
    second = MediaGroupTable.from_mappings(
        {"TGCom": ["tgcom24.mediaset.it"], "Mediaset": ["mediaset.it"]}
    )
    assert resolve_media_group("tgcom24.mediaset.it", first) == "Mediaset"
    assert resolve_media_group("tgcom24.mediaset.it", second) == "TGCom"


def test_detect_players_single_match():
    table = VideoPlayerTable.from_mapping({"JWPlayer": ["jwplayer.com"]})
    urls = ["https://cdn.jwplayer.com/players/x.js"]
    assert detect_players(urls, table) == ("JWPlayer",)


def test_detect_players_returns_every_match(video_players):
    urls = [
        "https://www.youtube.com/embed/abc",
        "https://ssl.p.jwpcdn.com/player/v/8.26.0/jwplayer.js",
        "https://example.com/app.js",
    ]
    assert set(detect_players(urls, video_players)) == {"JWPlayer", "YouTube"}


def test_detect_players_is_order_independent(video_players):
    urls = [
        "https://players.brightcove.net/123/default_default/index.min.js",
        "https://cdn.jwplayer.com/libraries/abc.js",
        "https://static.example.com/site.css",
    ]
    expected = set(detect_players(urls, video_players))
    for permutation in itertools.permutations(urls):
        assert set(detect_players(permutation, video_players)) == expected


def test_detect_players_no_duplicates(video_players):
    urls = ["https://cdn.jwplayer.com/a.js", "https://ssl.p.jwpcdn.com/b.js"] * 3
    assert detect_players(urls, video_players) == ("JWPlayer",)


def test_has_html5_video():
    assert has_html5_video(["application/x-mpegURL", "video/mp4"])
    assert not has_html5_video(["application/x-mpegURL", ""])
    assert not has_html5_video([])


def test_detect_ad_formats():
    assert detect_ad_formats([]) == AdFormats(instream=False, outstream=False)
    assert detect_ad_formats(["https://ads.example.com/vast.xml?x=1"]).instream
    assert detect_ad_formats(["https://a.teads.tv/page/123/tag"]).outstream
    assert detect_ad_formats(["https://widgets.outbrain.com/lp-video/x.js"]).outstream
    assert not detect_ad_formats(["https://widgets.outbrain.com/outbrain.js"]).outstream


def _observation(**kwargs):
    return NetworkObservation(url="https://www.repubblica.it/cronaca/2024/article.html", **kwargs)


def test_classify_builds_full_result(media_groups, video_players):
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    observation = _observation(
        requests=["https://cdn.jwplayer.com/libraries/abc.js"],
        resource_entries=["https://ads.example.com/vast.xml", "https://a.teads.tv/tag"],
    )

    result = classify(observation, media_groups, video_players, now=now)

    assert result.media_group == "GEDI"
    assert result.video_players == ("JWPlayer",)
    assert result.ad_formats == AdFormats(instream=True, outstream=True)
    assert result.to_record() == {
        "url": "https://www.repubblica.it/cronaca/2024/article.html",
        "mediaGroup": "GEDI",
        "videoPlayers": ["JWPlayer"],
        "adFormats": {"instream": True, "outstream": True},
        "timestamp": "2024-05-01T12:00:00+00:00",
    }


def test_classify_custom_when_only_html5_video(media_groups, video_players):
    observation = _observation(
        video_sources=["https://media.repubblica.it/clip.mp4"],
        video_mime_types=["video/mp4"],
    )
    result = classify(observation, media_groups, video_players)
    assert result.video_players == ("Custom",)


def test_classify_pattern_matches_win_over_custom(media_groups, video_players):
    observation = _observation(
        iframes=["https://www.youtube.com/embed/xyz"],
        video_mime_types=["video/mp4"],
    )
    result = classify(observation, media_groups, video_players)
    assert result.video_players == ("YouTube",)


def test_classify_no_video_evidence(media_groups, video_players):
    result = classify(_observation(), media_groups, video_players)
    assert result.video_players == ()
    assert result.ad_formats == AdFormats()
    assert result.timestamp.endswith("+00:00")
