"""Exception types raised by newsprobe."""

from __future__ import annotations


class NewsprobeError(Exception):
    """Base class for errors raised by the crawler."""


class ConfigurationError(NewsprobeError):
    """Missing or invalid process configuration."""


class TableError(NewsprobeError):
    """A lookup table file is missing or malformed."""


class TargetFetchError(NewsprobeError):
    """The seed targets could not be loaded; the run cannot proceed."""


class RobotsDisallowedError(NewsprobeError):
    """robots.txt forbids crawling the requested URL."""
