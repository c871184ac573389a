"""Scraper package — listing fetch & page extraction."""

from harvester.scraper.extractor import PageExtractor, extract_packages
from harvester.scraper.fetcher import fetch_listing_page
from harvester.scraper.models import PackageRef

__all__ = ["fetch_listing_page", "extract_packages", "PageExtractor", "PackageRef"]
