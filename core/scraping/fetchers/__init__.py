"""Fetcher modules for retrieving origin pages."""

from core.scraping.fetchers.http_fetcher import FetchOutcome, PageFetcher

__all__ = ["FetchOutcome", "PageFetcher"]
