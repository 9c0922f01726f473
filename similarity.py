from __future__ import annotations

import re
from dataclasses import dataclass

from location import AddressComparator, LocationComparator
from models import AgeRange, Event
from text import composite_string_similarity, normalize

TITLE_WEIGHT = 0.40
LOCATION_WEIGHT = 0.25
DATE_WEIGHT = 0.20
TIME_WEIGHT = 0.10
AGE_WEIGHT = 0.05

# Applied when title, location and date all agree strongly at once.
BOOST = 0.10
BOOST_TITLE = 0.95
BOOST_LOCATION = 0.90
BOOST_DATE = 0.90

NEUTRAL_DATE_SCORE = 0.5
NEUTRAL_AGE_SCORE = 0.5

_TIME_OF_DAY = re.compile(r"\b(\d{1,2}):(\d{2})\s*(am|pm)\b", re.IGNORECASE)


def extract_time_of_day(event: Event) -> int | None:
    """Minutes after midnight, from an "H:MM am/pm" mention or a non-midnight timestamp."""
    text = f"{event.title} {event.description or ''}"
    match = _TIME_OF_DAY.search(text)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2))
        period = match.group(3).lower()
        if period == "pm" and hours != 12:
            hours += 12
        if period == "am" and hours == 12:
            hours = 0
        return hours * 60 + minutes

    if event.date and (event.date.hour or event.date.minute):
        return event.date.hour * 60 + event.date.minute
    return None


def _gap_hours(a: Event, b: Event) -> float | None:
    if a.date is None or b.date is None:
        return None
    return abs((a.date - b.date).total_seconds()) / 3600


def date_proximity(a: Event, b: Event) -> float:
    gap = _gap_hours(a, b)
    if gap is None:
        return NEUTRAL_DATE_SCORE
    if gap <= 1:
        return 1.0
    return max(0.0, 1 - gap / 24)


def time_proximity(a: Event, b: Event) -> float:
    gap = _gap_hours(a, b)
    if gap is None or gap > 24:
        return 1.0
    time_a = extract_time_of_day(a)
    time_b = extract_time_of_day(b)
    if time_a is None or time_b is None:
        return 1.0
    diff = abs(time_a - time_b)
    if diff <= 30:
        return 1.0
    return max(0.0, 1 - diff / 480)


def age_range_overlap(a: AgeRange | None, b: AgeRange | None) -> float:
    if a is None or b is None:
        return NEUTRAL_AGE_SCORE
    overlap = max(0.0, min(a.max, b.max) - max(a.min, b.min))
    union = max(a.max, b.max) - min(a.min, b.min)
    if union > 0:
        return overlap / union
    # Both ranges collapse to the same single age.
    return 1.0 if a == b else 0.0


@dataclass(frozen=True)
class SimilarityBreakdown:
    title: float
    location: float
    date: float
    time: float
    age: float

    @property
    def boosted(self) -> bool:
        return (
            self.title > BOOST_TITLE
            and self.location > BOOST_LOCATION
            and self.date > BOOST_DATE
        )

    @property
    def score(self) -> float:
        score = (
            TITLE_WEIGHT * self.title
            + LOCATION_WEIGHT * self.location
            + DATE_WEIGHT * self.date
            + TIME_WEIGHT * self.time
            + AGE_WEIGHT * self.age
        )
        if self.boosted:
            return min(1.0, score + BOOST)
        return score


class EventSimilarityScorer:
    """Weighted blend of the five signals two listings of one event share."""

    def __init__(self, location_comparator: LocationComparator | None = None):
        self.location_comparator = location_comparator or AddressComparator()

    def breakdown(self, a: Event, b: Event) -> SimilarityBreakdown:
        return SimilarityBreakdown(
            title=composite_string_similarity(normalize(a.title), normalize(b.title)),
            location=self.location_comparator.compare_locations(a.location, b.location),
            date=date_proximity(a, b),
            time=time_proximity(a, b),
            age=age_range_overlap(a.age_range, b.age_range),
        )

    def __call__(self, a: Event, b: Event) -> float:
        return self.breakdown(a, b).score
