"""Extraction modules for finding links in fetched content."""

from core.scraping.extractors.link_extractor import LinkExtractor

__all__ = ["LinkExtractor"]
