from __future__ import annotations

import json
import logging
from typing import Any, Iterator

from bs4 import BeautifulSoup

from models import AgeRange, Event
from scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

EVENT_TYPES = {
    "Event", "ChildrensEvent", "EducationEvent", "ExhibitionEvent", "Festival",
    "MusicEvent", "ScreeningEvent", "SocialEvent", "TheaterEvent", "DanceEvent",
}


def _is_event(item: dict) -> bool:
    kind = item.get("@type")
    kinds = kind if isinstance(kind, list) else [kind]
    return any(k in EVENT_TYPES for k in kinds)


def iter_jsonld_events(html: str) -> Iterator[dict]:
    """Yield every schema.org Event object embedded as JSON-LD."""
    soup = BeautifulSoup(html, "lxml")
    for script in soup.find_all("script", {"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or "")
        except ValueError:
            continue
        stack = data if isinstance(data, list) else [data]
        while stack:
            item = stack.pop(0)
            if not isinstance(item, dict):
                continue
            if _is_event(item):
                yield item
            graph = item.get("@graph")
            if isinstance(graph, list):
                stack.extend(graph)


def _address_text(location: Any) -> tuple[str, str | None, str | None]:
    """(address, venue name, city) from a schema.org Place or plain text."""
    if isinstance(location, list):
        location = location[0] if location else None
    if isinstance(location, str):
        return location.strip(), None, None
    if not isinstance(location, dict):
        return "", None, None

    name = location.get("name") or None
    address = location.get("address")
    city = None
    if isinstance(address, dict):
        city = address.get("addressLocality") or None
        parts = [
            address.get("streetAddress"),
            city,
            address.get("addressRegion"),
            address.get("postalCode"),
        ]
        address = ", ".join(p.strip() for p in parts if isinstance(p, str) and p.strip())
    if not isinstance(address, str) or not address:
        address = name or ""
    return address.strip(), name, city


def _cost(item: dict) -> float:
    if item.get("isAccessibleForFree") in (True, "true", "True"):
        return 0.0
    offers = item.get("offers")
    if isinstance(offers, list):
        offers = offers[0] if offers else None
    if isinstance(offers, dict):
        price = offers.get("lowPrice") or offers.get("price")
        try:
            return float(price) if price not in (None, "") else 0.0
        except (TypeError, ValueError):
            return 0.0
    return 0.0


def _image(item: dict) -> str | None:
    image = item.get("image")
    if isinstance(image, list):
        image = image[0] if image else None
    if isinstance(image, dict):
        image = image.get("url")
    return image if isinstance(image, str) else None


class JsonLdScraper(BaseScraper):
    """Reads schema.org Event markup from one listing page."""

    url: str = ""

    def scrape(self) -> list[Event]:
        events = self.parse(self.fetch_page(self.url))
        if not events:
            logger.warning(f"[{self.name}] No JSON-LD events found on {self.url}")
        return events

    def parse(self, html: str) -> list[Event]:
        events: list[Event] = []
        for item in iter_jsonld_events(html):
            try:
                parsed = self._parse_item(item)
            except Exception:
                logger.warning(f"[{self.name}] Failed to parse event: {item.get('name', '?')}")
                continue
            if parsed:
                events.append(parsed)
        return events

    def _parse_item(self, item: dict) -> Event | None:
        title = (item.get("name") or "").strip()
        if not title:
            return None
        address, venue, city = _address_text(item.get("location"))
        description = item.get("description")

        record = {
            "source": self.name,
            "title": title,
            "date": item.get("startDate"),
            "location": {"address": address, "name": venue, "city": city},
            "ageRange": AgeRange.parse(item.get("typicalAgeRange")),
            "cost": _cost(item),
            "description": description.strip() if isinstance(description, str) else None,
            "imageUrl": _image(item),
            "registrationUrl": item.get("url") or self.url,
        }
        event = Event.from_dict(record)
        if event.date is None and item.get("startDate"):
            logger.debug(f"[{self.name}] Unparseable startDate for {title!r}: {item['startDate']}")
        return event
