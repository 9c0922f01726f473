import json

import pytest
import requests

from models import AgeRange
from scrapers import ALL_SCRAPERS, SFLibraryScraper
from scrapers.base import RETRY_STATUSES, make_session
from scrapers.jsonld import JsonLdScraper, iter_jsonld_events


def _page(*blocks) -> str:
    scripts = "\n".join(
        f'<script type="application/ld+json">{b if isinstance(b, str) else json.dumps(b)}</script>'
        for b in blocks
    )
    return f"<html><head>{scripts}</head><body><h1>Events</h1></body></html>"


STORYTIME = {
    "@context": "https://schema.org",
    "@type": "ChildrensEvent",
    "name": "Preschool Storytime",
    "startDate": "2025-08-17T10:30:00-07:00",
    "location": {
        "@type": "Place",
        "name": "Main Library",
        "address": {
            "@type": "PostalAddress",
            "streetAddress": "100 Larkin St",
            "addressLocality": "San Francisco",
            "addressRegion": "CA",
            "postalCode": "94102",
        },
    },
    "typicalAgeRange": "3-5",
    "isAccessibleForFree": True,
    "image": ["https://sfpl.org/img/story.jpg"],
    "url": "https://sfpl.org/events/storytime",
    "description": "Stories, songs and rhymes.",
}


class FakeSession:
    def __init__(self, statuses, body="<html></html>"):
        self.headers = {}
        self.statuses = list(statuses)
        self.body = body
        self.calls = 0

    def get(self, url, **kwargs):
        self.calls += 1
        response = requests.Response()
        response.status_code = self.statuses.pop(0)
        response.url = url
        response._content = self.body.encode("utf-8")
        response.encoding = "utf-8"
        return response


def test_iter_jsonld_events_walks_lists_and_graphs():
    graph = {"@graph": [{"@type": "WebPage"}, {"@type": "Event", "name": "Family Festival"}]}
    listing = [{"@type": ["Event", "Festival"], "name": "Night Market"}, "junk"]
    html = _page(graph, listing, "{not json", {"@type": "Organization", "name": "SFPL"})

    names = [item["name"] for item in iter_jsonld_events(html)]
    assert names == ["Family Festival", "Night Market"]


def test_parse_maps_schema_org_fields():
    events = SFLibraryScraper(session=FakeSession([])).parse(_page(STORYTIME))
    assert len(events) == 1
    event = events[0]
    assert event.source == "sf-library"
    assert event.title == "Preschool Storytime"
    assert event.date.isoformat() == "2025-08-17T10:30:00-07:00"
    assert event.location.address == "100 Larkin St, San Francisco, CA, 94102"
    assert event.location.name == "Main Library"
    assert event.location.city == "San Francisco"
    assert event.age_range == AgeRange(3, 5)
    assert event.cost == 0.0
    assert event.image_url == "https://sfpl.org/img/story.jpg"
    assert event.registration_url == "https://sfpl.org/events/storytime"


def test_parse_reads_offer_price_and_text_location():
    item = {
        "@type": "Event",
        "name": "Planetarium Show",
        "startDate": "2025-08-17T14:00:00",
        "location": "55 Music Concourse Dr, San Francisco",
        "offers": [{"@type": "Offer", "price": "15.00"}],
    }
    scraper = SFLibraryScraper(session=FakeSession([]))
    [event] = scraper.parse(_page(item))
    assert event.cost == 15.0
    assert event.location.address == "55 Music Concourse Dr, San Francisco"
    assert event.registration_url == scraper.url


def test_parse_skips_untitled_and_malformed_events():
    scraper = SFLibraryScraper(session=FakeSession([]))
    untitled = {"@type": "Event", "name": "  "}
    malformed = {"@type": "Event", "name": {"en": "Craft Hour"}}
    assert scraper.parse(_page(untitled, malformed)) == []


def test_session_retries_transient_failures():
    session = make_session()
    retry = session.get_adapter("https://sfpl.org/events").max_retries
    assert retry.total == 3
    assert set(retry.status_forcelist) == set(RETRY_STATUSES)
    assert 404 not in retry.status_forcelist
    assert session.headers["Accept-Language"].startswith("en-US")


def test_scrape_reads_fetched_page():
    session = FakeSession([200], body=_page(STORYTIME))
    [event] = SFLibraryScraper(session=session).scrape()
    assert event.title == "Preschool Storytime"
    assert session.calls == 1


def test_fetch_page_raises_on_error_status():
    session = FakeSession([404])
    with pytest.raises(requests.exceptions.HTTPError):
        SFLibraryScraper(session=session).fetch_page("https://sfpl.org/missing")
    assert session.calls == 1


def test_run_swallows_scrape_failures(caplog):
    scraper = SFLibraryScraper(session=FakeSession([503]))
    assert scraper.run() == []
    assert "[sf-library] Scraping failed" in caplog.text


def test_configured_sources_are_json_ld_scrapers():
    names = [cls.name for cls in ALL_SCRAPERS]
    assert len(names) == len(set(names))
    for cls in ALL_SCRAPERS:
        assert issubclass(cls, JsonLdScraper)
        assert cls.url.startswith("https://")
