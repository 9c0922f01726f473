from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime, time, timezone
from typing import Any, Mapping

from text import normalize

INVALID_DATE = "invalid-date"

_AGE_NUMBERS = re.compile(r"\d+(?:\.\d+)?")


def parse_date(value: Any) -> datetime | None:
    """
    Best-effort coercion of a scraped date to an aware datetime.
    Naive values are taken as UTC; anything unparseable gives None.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time())
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def date_key(value: datetime | None) -> str:
    """Calendar day of an instant in UTC, or the invalid-date bucket."""
    if value is None:
        return INVALID_DATE
    return value.astimezone(timezone.utc).date().isoformat()


def _make_id(source: str, title: str, day: str, address: str) -> str:
    """Deterministic hash for records that arrive without an id."""
    key = f"{source}|{normalize(title)}|{day}|{normalize(address)}"
    return hashlib.sha256(key.encode()).hexdigest()[:12]


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    if isinstance(value, str):
        value = value.strip().lstrip("$").replace(",", "")
        if value.lower() == "free":
            return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass
class Location:
    address: str = ""
    name: str | None = None
    city: str | None = None

    @classmethod
    def parse(cls, value: Any) -> Location:
        if isinstance(value, Location):
            return value
        if isinstance(value, str):
            return cls(address=value.strip())
        if isinstance(value, Mapping):
            return cls(
                address=(value.get("address") or "").strip(),
                name=value.get("name") or None,
                city=value.get("city") or None,
            )
        return cls()

    def merged_with(self, other: Location) -> Location:
        """Shallow merge: every field set on `other` wins."""
        updates = {f.name: getattr(other, f.name) for f in fields(other) if getattr(other, f.name)}
        return replace(self, **updates)


@dataclass
class AgeRange:
    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min

    @classmethod
    def parse(cls, value: Any) -> AgeRange | None:
        """Accepts {min, max}, a pair, or text like "3-8", "5+", "ages 2 to 10"."""
        if value is None or isinstance(value, AgeRange):
            return value
        if isinstance(value, Mapping):
            low, high = value.get("min"), value.get("max")
        elif isinstance(value, (list, tuple)) and len(value) == 2:
            low, high = value
        elif isinstance(value, str):
            numbers = _AGE_NUMBERS.findall(value)
            if not numbers:
                return None
            low = numbers[0]
            if len(numbers) > 1:
                high = numbers[1]
            elif "+" in value:
                high = 18
            else:
                high = low
        else:
            return None

        if low is None and high is None:
            return None
        low = _to_float(low, 0.0)
        high = _to_float(high, 18.0)
        if high < low:
            low, high = high, low
        return cls(min=low, max=high)

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max}


@dataclass
class Event:
    id: str
    source: str
    title: str
    date: datetime | None = None
    location: Location = field(default_factory=Location)
    age_range: AgeRange | None = None
    cost: float = 0.0
    description: str | None = None
    image_url: str | None = None
    registration_url: str | None = None
    sources: list[str] = field(default_factory=list)
    alternate_urls: list[str] = field(default_factory=list)
    merge_count: int = 1
    last_merged: datetime | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Event:
        """Build an event from a scraped record, resolving every default."""
        if not isinstance(data, Mapping):
            raise TypeError(f"Event record must be a mapping, got {type(data).__name__}")

        source = str(_pick(data, "source", "source_name", default="unknown"))
        title = str(_pick(data, "title", "name", default="")).strip()
        when = parse_date(_pick(data, "date", "start_time", "startDate"))
        location = Location.parse(data.get("location"))
        event_id = _pick(data, "id")
        if event_id is None:
            event_id = _make_id(source, title, date_key(when), location.address)

        return cls(
            id=str(event_id),
            source=source,
            title=title,
            date=when,
            location=location,
            age_range=AgeRange.parse(_pick(data, "ageRange", "age_range")),
            cost=_to_float(data.get("cost")),
            description=_pick(data, "description"),
            image_url=_pick(data, "imageUrl", "image_url"),
            registration_url=_pick(data, "registrationUrl", "registration_url"),
            sources=list(_pick(data, "sources", default=[])),
            alternate_urls=list(_pick(data, "alternateUrls", "alternate_urls", default=[])),
            merge_count=int(_pick(data, "mergeCount", "merge_count", default=1)),
            last_merged=parse_date(_pick(data, "lastMerged", "last_merged")),
        )

    @property
    def fingerprint(self) -> str:
        return fingerprint(self)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "sources": self.sources or [self.source],
            "title": self.title,
            "date": self.date.isoformat() if self.date else None,
            "location": {
                "address": self.location.address,
                "name": self.location.name,
                "city": self.location.city,
            },
            "ageRange": self.age_range.to_dict() if self.age_range else None,
            "cost": self.cost,
            "description": self.description,
            "imageUrl": self.image_url,
            "registrationUrl": self.registration_url,
            "alternateUrls": self.alternate_urls,
            "mergeCount": self.merge_count,
            "lastMerged": self.last_merged.isoformat() if self.last_merged else None,
        }


def fingerprint(event: Event) -> str:
    """Exact-match key: normalized title, UTC calendar day, normalized address."""
    return f"{normalize(event.title)}|{date_key(event.date)}|{normalize(event.location.address)}"
