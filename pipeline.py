from __future__ import annotations

import logging

from dedup import DedupResult, DedupStats, Deduplicator
from models import Event
from scrapers import ALL_SCRAPERS
from scrapers.base import BaseScraper

logger = logging.getLogger(__name__)


class ScraperManager:
    """Runs the configured scrapers and dedupes what they return as one batch."""

    def __init__(
        self,
        scrapers: list[BaseScraper] | None = None,
        deduplicator: Deduplicator | None = None,
    ):
        self.scrapers = scrapers if scrapers is not None else [cls() for cls in ALL_SCRAPERS]
        self.deduplicator = deduplicator or Deduplicator()

    def scrape_all(self) -> DedupResult:
        raw_events: list[Event] = []
        for scraper in self.scrapers:
            raw_events.extend(scraper.run())
        logger.info(f"Raw events collected: {len(raw_events)}")
        return self._dedupe(raw_events)

    def scrape_source(self, name: str) -> DedupResult:
        """Scrape a single source and dedupe it against what this run has seen."""
        for scraper in self.scrapers:
            if scraper.name == name:
                return self._dedupe(scraper.run())
        raise KeyError(f"Scraper not found: {name}")

    def _dedupe(self, raw_events: list[Event]) -> DedupResult:
        result = self.deduplicator.dedupe(raw_events)
        logger.info(
            f"Deduplication complete: {len(raw_events)} raw -> "
            f"{len(result.unique_events)} unique"
        )
        logger.info(f"Deduplication stats: {self.stats().to_dict()}")
        return result

    def stats(self) -> DedupStats:
        return self.deduplicator.get_stats()

    def reset(self) -> None:
        self.deduplicator.reset()
        logger.info("Deduplicator state reset")
