from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from models import Event

logger = logging.getLogger(__name__)


class MergeAuditSink(Protocol):
    def record_event_merge(
        self,
        primary_id: str,
        duplicate_event: Event,
        similarity_score: float,
        merge_type: str,
    ) -> str | None:
        """Store one merge; return its id, or None if the primary is unknown."""


class JsonlMergeAuditSink:
    """Appends one JSON line per merge, shaped like an `event_merges` row."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def record_event_merge(
        self,
        primary_id: str,
        duplicate_event: Event,
        similarity_score: float,
        merge_type: str,
    ) -> str | None:
        merge_id = uuid.uuid4().hex
        record = {
            "id": merge_id,
            "primaryEventId": primary_id,
            "mergedEventId": duplicate_event.id,
            "mergedEventData": duplicate_event.to_dict(),
            "similarityScore": round(similarity_score, 4),
            "mergeType": merge_type,
            "mergedAt": datetime.now(timezone.utc).isoformat(),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=False) + "\n")
        logger.debug(f"Recorded {merge_type} merge {merge_id} into {primary_id}")
        return merge_id
