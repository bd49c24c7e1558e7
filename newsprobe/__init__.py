"""Crawl news sites and detect their media group, video players and ad formats."""

__version__ = "0.1.0"
