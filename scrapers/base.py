from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import requests
from requests.adapters import HTTPAdapter, Retry

from models import Event

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

PAGE_TIMEOUT = 30
MAX_RETRIES = 3
# urllib3 sleeps BACKOFF_FACTOR * 2**(n - 1) seconds before retry n: 5, 10, 20
BACKOFF_FACTOR = 5
RETRY_STATUSES = (429, 500, 502, 503, 504)


def make_session() -> requests.Session:
    """Session that retries transient listing-page failures inside the adapter."""
    session = requests.Session()
    session.headers.update(BROWSER_HEADERS)
    retry = Retry(
        total=MAX_RETRIES,
        connect=MAX_RETRIES,
        read=MAX_RETRIES,
        status=MAX_RETRIES,
        backoff_factor=BACKOFF_FACTOR,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset(["GET"]),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class BaseScraper(ABC):
    """One family-event source: a listing page turned into raw events."""

    name: str = "base"

    def __init__(self, session: requests.Session | None = None):
        self.session = session or make_session()

    def fetch_page(self, url: str) -> str:
        response = self.session.get(url, timeout=PAGE_TIMEOUT)
        # retries are exhausted by now, so any error status is final
        response.raise_for_status()
        logger.debug(f"[{self.name}] {url} -> {response.status_code}, {len(response.text)} chars")
        return response.text

    @abstractmethod
    def scrape(self) -> list[Event]:
        """Raw, un-deduplicated events from this source."""

    def run(self) -> list[Event]:
        try:
            events = self.scrape()
        except Exception:
            logger.exception(f"[{self.name}] Scraping failed")
            return []
        logger.info(f"[{self.name}] Scraped {len(events)} events")
        return events
