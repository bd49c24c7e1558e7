import pytest

from newsprobe.config import CrawlConfig
from newsprobe.models import MediaGroupTable, VideoPlayerTable


@pytest.fixture
def media_groups():
    return MediaGroupTable.from_mappings(
        {
            "GEDI": ["repubblica.it", "www.lastampa.it"],
            "RCS MediaGroup": ["corriere.it", "gazzetta.it"],
        },
        {"ANSA": ["ansa.it"]},
    )


@pytest.fixture
def video_players():
    return VideoPlayerTable.from_mapping(
        {
            "JWPlayer": ["jwplayer.com", "jwpcdn.com"],
            "Brightcove": ["players.brightcove.net"],
            "YouTube": ["youtube.com/embed"],
        }
    )


@pytest.fixture
def fast_config():
    return CrawlConfig(
        settle_delay=(0.0, 0.0),
        cooldown_delay=(0.0, 0.0),
        show_progress=False,
    )
