from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Mapping

from audit import MergeAuditSink
from location import LocationComparator
from merge import merge_events, record_merge
from models import Event, fingerprint
from similarity import EventSimilarityScorer

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.75
# Fuzzy matching only considers canonical events at most this far apart.
MAX_FUZZY_GAP_HOURS = 24

UNIQUE = "unique"
EXACT = "exact"
FUZZY = "fuzzy"
KNOWN = "known"
PASSTHROUGH = "passthrough"

Scorer = Callable[[Event, Event], float]


def within_window(a: Event, b: Event) -> bool:
    """False only when both dates parse and lie more than a day apart."""
    if a.date is None or b.date is None:
        return True
    return abs((a.date - b.date).total_seconds()) <= MAX_FUZZY_GAP_HOURS * 3600


@dataclass
class MergeInfo:
    primary_id: str
    duplicate_event: Event
    similarity_score: float
    merge_type: str


@dataclass
class DedupOutcome:
    """What happened to one incoming record."""

    kind: str
    event: Any
    primary: Event | None = None
    score: float | None = None
    error: Exception | None = None

    @property
    def is_duplicate(self) -> bool:
        return self.kind in (EXACT, FUZZY)


@dataclass
class DedupResult:
    unique_events: list[Any] = field(default_factory=list)
    merge_info: list[MergeInfo] = field(default_factory=list)


@dataclass
class DedupStats:
    total_unique_events: int
    events_by_source: dict[str, int]
    duplicates_detected: int

    def to_dict(self) -> dict:
        return {
            "totalUniqueEvents": self.total_unique_events,
            "eventsBySource": dict(self.events_by_source),
            "duplicatesDetected": self.duplicates_detected,
        }


class DuplicateIndex:
    """Canonical events of the current run, keyed by fingerprint in registration order."""

    def __init__(self):
        self._by_fingerprint: dict[str, Event] = {}
        self._members: set[int] = set()

    def __len__(self) -> int:
        return len(self._by_fingerprint)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._by_fingerprint.values())

    def __contains__(self, event: object) -> bool:
        return id(event) in self._members

    def get(self, key: str) -> Event | None:
        return self._by_fingerprint.get(key)

    def add(self, key: str, event: Event) -> None:
        if key in self._by_fingerprint:
            raise ValueError(f"Fingerprint already registered: {key}")
        self._by_fingerprint[key] = event
        self._members.add(id(event))

    def best_match(
        self,
        event: Event,
        scorer: Scorer,
        eligible: Callable[[Event, Event], bool] | None = None,
    ) -> tuple[Event | None, float]:
        """Highest-scoring canonical event; earlier registrations win ties."""
        best: Event | None = None
        best_score = 0.0
        for candidate in self._by_fingerprint.values():
            if eligible is not None and not eligible(event, candidate):
                continue
            score = scorer(event, candidate)
            if best is None or score > best_score:
                best, best_score = candidate, score
        return best, best_score

    def source_counts(self) -> dict[str, int]:
        return dict(Counter(e.source for e in self._by_fingerprint.values()))

    def clear(self) -> None:
        self._by_fingerprint.clear()
        self._members.clear()


class Deduplicator:
    """
    Collapses listings of the same real-world event within one run.

    Each incoming event is matched first by fingerprint, then against every
    canonical event by composite similarity. Matches are merged into the
    canonical event; everything else becomes a new canonical event.
    """

    def __init__(
        self,
        location_comparator: LocationComparator | None = None,
        scorer: Scorer | None = None,
        audit_sink: MergeAuditSink | None = None,
        threshold: float = SIMILARITY_THRESHOLD,
    ):
        self.scorer = scorer or EventSimilarityScorer(location_comparator)
        self.audit_sink = audit_sink
        self.threshold = threshold
        self.index = DuplicateIndex()
        self._duplicates = 0

    def process(self, raw: Any) -> DedupOutcome:
        """Dedupe one record. Never raises: failures pass the record through."""
        event = raw
        try:
            if not isinstance(event, Event):
                event = Event.from_dict(raw)
            return self._process(event)
        except Exception as exc:
            if isinstance(event, Event):
                title = event.title
            else:
                title = raw.get("title") if isinstance(raw, Mapping) else None
            logger.exception(f"Error deduplicating event {title!r}, passing it through")
            return DedupOutcome(PASSTHROUGH, event, error=exc)

    def _process(self, event: Event) -> DedupOutcome:
        if event in self.index:
            return DedupOutcome(KNOWN, event)

        key = fingerprint(event)
        primary = self.index.get(key)
        if primary is not None:
            return self._merge(primary, event, 1.0, EXACT)

        candidate, score = self.index.best_match(event, self.scorer, within_window)
        if candidate is not None and score >= self.threshold:
            logger.debug(f"Fuzzy duplicate detected: similarity={score:.3f}")
            return self._merge(candidate, event, score, FUZZY)

        self.index.add(key, event)
        return DedupOutcome(UNIQUE, event)

    def _merge(self, primary: Event, event: Event, score: float, merge_type: str) -> DedupOutcome:
        merge_events(primary, event)
        self._duplicates += 1
        record_merge(self.audit_sink, primary, event, score, merge_type)
        return DedupOutcome(merge_type, event, primary=primary, score=score)

    def dedupe(self, events: Iterable[Any]) -> DedupResult:
        """Process events in order; the first listing seen becomes canonical."""
        result = DedupResult()
        kinds: Counter[str] = Counter()
        emitted: set[int] = set()

        for raw in events:
            outcome = self.process(raw)
            kinds[outcome.kind] += 1
            if outcome.is_duplicate:
                result.merge_info.append(
                    MergeInfo(
                        primary_id=outcome.primary.id,
                        duplicate_event=outcome.event,
                        similarity_score=outcome.score,
                        merge_type=outcome.kind,
                    )
                )
            elif outcome.kind == KNOWN and id(outcome.event) in emitted:
                logger.debug(f"Skipping repeated event {outcome.event.id} in the same batch")
            else:
                if outcome.kind in (UNIQUE, KNOWN):
                    emitted.add(id(outcome.event))
                result.unique_events.append(outcome.event)

        total = sum(kinds.values())
        logger.info(
            f"Deduplication results: {total} input events -> "
            f"{len(result.unique_events)} unique events "
            f"({kinds[EXACT]} exact, {kinds[FUZZY]} fuzzy duplicates removed, "
            f"{kinds[PASSTHROUGH]} passed through)"
        )
        return result

    def seed(self, events: Iterable[Event]) -> int:
        """Register previously persisted canonical events without emitting them."""
        added = 0
        for event in events:
            key = fingerprint(event)
            if self.index.get(key) is None and event not in self.index:
                self.index.add(key, event)
                added += 1
        logger.debug(f"Seeded {added} canonical events")
        return added

    def get_stats(self) -> DedupStats:
        return DedupStats(
            total_unique_events=len(self.index),
            events_by_source=self.index.source_counts(),
            duplicates_detected=self._duplicates,
        )

    def reset(self) -> None:
        self.index.clear()
        self._duplicates = 0
        logger.debug("Event deduplicator state reset")
