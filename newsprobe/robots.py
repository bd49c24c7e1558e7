"""robots.txt retrieval and evaluation."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit
from urllib.robotparser import RobotFileParser

import requests

from .models import RobotsPolicy

logger = logging.getLogger("newsprobe")

DEFAULT_ROBOTS_TIMEOUT = 15.0


def robots_url(base_url: str) -> str:
    parts = urlsplit(base_url)
    return f"{parts.scheme}://{parts.netloc}/robots.txt"


def parse_robots(text: str, url: str) -> RobotsPolicy:
    """Parse robots.txt content into a ``RobotsPolicy``."""
    parser = RobotFileParser()
    parser.set_url(url)
    parser.parse(text.splitlines())
    return RobotsPolicy(parser)


def fetch_robots_policy(
    base_url: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_ROBOTS_TIMEOUT,
) -> RobotsPolicy:
    """Download and parse the robots file of ``base_url``'s origin.

    Any failure leaves the site unrestricted: the returned policy allows
    everything and a warning is logged.
    """
    url = robots_url(base_url)
    http = session or requests.Session()
    try:
        resp = http.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("No robots.txt found at %s: %s", url, exc)
        return RobotsPolicy.allow_all()
    finally:
        if session is None:
            http.close()

    try:
        return parse_robots(resp.text, url)
    except (ValueError, UnicodeError) as exc:
        logger.warning("Unparsable robots.txt at %s: %s", url, exc)
        return RobotsPolicy.allow_all()


def is_allowed(policy: RobotsPolicy, base_url: str, agent: str = "*") -> bool:
    return policy.allowed(base_url, agent)
