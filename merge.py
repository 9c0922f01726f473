from __future__ import annotations

import logging
from datetime import datetime, timezone

from audit import MergeAuditSink
from models import Event
from similarity import age_range_overlap

logger = logging.getLogger(__name__)

# Below this overlap two age ranges count as materially different.
AGE_RANGE_AGREEMENT = 0.8


def merge_events(primary: Event, duplicate: Event, now: datetime | None = None) -> Event:
    """Fold `duplicate` into `primary` in place, keeping the richer data."""
    if not primary.sources:
        primary.sources = [primary.source]
    if duplicate.source not in primary.sources:
        primary.sources.append(duplicate.source)

    if duplicate.description and len(duplicate.description) > len(primary.description or ""):
        primary.description = duplicate.description

    if duplicate.image_url and not primary.image_url:
        primary.image_url = duplicate.image_url

    if (
        duplicate.registration_url
        and duplicate.registration_url != primary.registration_url
        and duplicate.registration_url not in primary.alternate_urls
    ):
        primary.alternate_urls.append(duplicate.registration_url)

    if len(duplicate.location.address) > len(primary.location.address):
        primary.location = primary.location.merged_with(duplicate.location)

    primary.cost = min(primary.cost, duplicate.cost)

    if primary.age_range and duplicate.age_range:
        if age_range_overlap(primary.age_range, duplicate.age_range) < AGE_RANGE_AGREEMENT:
            if duplicate.age_range.span < primary.age_range.span:
                primary.age_range = duplicate.age_range

    primary.last_merged = now or datetime.now(timezone.utc)
    primary.merge_count += 1

    logger.debug(
        f'Merged "{duplicate.title}" from {duplicate.source} into "{primary.title}"'
    )
    return primary


def record_merge(
    sink: MergeAuditSink | None,
    primary: Event,
    duplicate: Event,
    score: float,
    merge_type: str,
) -> str | None:
    """Best-effort audit write; failures are logged and never raised."""
    if sink is None:
        return None
    try:
        merge_id = sink.record_event_merge(primary.id, duplicate, score, merge_type)
    except Exception as exc:
        logger.warning(f"Failed to record merge of {duplicate.id} into {primary.id}: {exc}")
        return None
    if merge_id is None:
        logger.debug(f"Audit store does not know primary event {primary.id}")
    return merge_id
