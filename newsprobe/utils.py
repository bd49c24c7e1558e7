"""Utility helpers for URL and hostname normalization."""

from __future__ import annotations

from urllib.parse import urlparse

_WWW_PREFIX = "www."


def ensure_scheme(url: str, default_scheme: str = "https") -> str:
    """Prefix ``https://`` to bare hostnames such as ``repubblica.it``."""
    url = url.strip()
    if "://" in url:
        return url
    return f"{default_scheme}://{url}"


def strip_www(value: str) -> str:
    """Drop a leading ``www.`` from a hostname or domain fragment."""
    if value.startswith(_WWW_PREFIX):
        return value[len(_WWW_PREFIX):]
    return value


def hostname_of(url: str) -> str:
    return (urlparse(url).hostname or "").lower()
