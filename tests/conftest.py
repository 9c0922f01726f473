from __future__ import annotations

import itertools
import sys
from pathlib import Path
from typing import Any

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from models import Event  # noqa: E402


class FakeAuditSink:
    def __init__(self, result: str | None = "merge-1") -> None:
        self.result = result
        self.calls: list[dict[str, Any]] = []

    def record_event_merge(self, primary_id, duplicate_event, similarity_score, merge_type):
        self.calls.append(
            {
                "primary_id": primary_id,
                "duplicate_id": duplicate_event.id,
                "score": similarity_score,
                "merge_type": merge_type,
            }
        )
        return self.result


class BrokenAuditSink:
    def record_event_merge(self, primary_id, duplicate_event, similarity_score, merge_type):
        raise ConnectionError("database unavailable")


@pytest.fixture
def make_event():
    counter = itertools.count(1)

    def factory(**overrides: Any) -> Event:
        record = {
            "id": f"evt-{next(counter)}",
            "source": "sf-library",
            "title": "Storytime at SF Library",
            "date": "2025-08-17T10:00:00",
            "location": {"address": "100 Larkin St, San Francisco"},
        }
        record.update(overrides)
        return Event.from_dict(record)

    return factory


@pytest.fixture
def fake_sink() -> FakeAuditSink:
    return FakeAuditSink()


@pytest.fixture
def broken_sink() -> BrokenAuditSink:
    return BrokenAuditSink()


def scenario_c_records() -> list[dict[str, Any]]:
    """Five distinct events followed by three exact and two fuzzy duplicates."""
    return [
        {"id": "story", "source": "exploratorium", "title": "Storytime Science for Kids",
         "date": "2025-08-16T12:00:00", "location": "Pier 15, The Embarcadero, San Francisco, CA"},
        {"id": "planets", "source": "cal-academy", "title": "Planetarium Show",
         "date": "2025-08-17T14:00:00", "location": "55 Music Concourse Dr, San Francisco"},
        {"id": "yoga", "source": "sf-recparks", "title": "Family Yoga in the Park",
         "date": "2025-08-18T09:00:00", "location": "Dolores Park, San Francisco"},
        {"id": "lego", "source": "sf-library", "title": "Lego Build Night",
         "date": "2025-08-19T18:00:00", "location": "100 Larkin St, San Francisco"},
        {"id": "movie", "source": "funcheapsf", "title": "Outdoor Movie: Moana",
         "date": "2025-08-20T19:30:00", "location": "Union Square, San Francisco"},
        {"id": "story-2", "source": "funcheapsf", "title": "STORYTIME SCIENCE FOR KIDS!",
         "date": "2025-08-16T12:00:00", "location": "Pier 15, The Embarcadero, San Francisco, CA"},
        {"id": "planets-2", "source": "sf-library", "title": "planetarium show",
         "date": "2025-08-17T15:00:00", "location": "55 Music Concourse Dr., San Francisco"},
        {"id": "lego-2", "source": "funcheapsf", "title": "Lego Build Night.",
         "date": "2025-08-19T18:30:00", "location": "100 Larkin St., San Francisco"},
        {"id": "yoga-2", "source": "funcheapsf", "title": "Family Yoga",
         "date": "2025-08-18T09:00:00", "location": "Dolores Park"},
        {"id": "movie-2", "source": "sf-library", "title": "Outdoor Movie Night: Moana",
         "date": "2025-08-20T19:30:00", "location": "Union Square"},
    ]
