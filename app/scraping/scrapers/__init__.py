"""
Scraper exports.
"""

from app.scraping.scrapers.competitor_scraper import CompetitorScraper

__all__ = ["CompetitorScraper"]
