#!/usr/bin/env python3
"""Family event finder - scrape, dedupe and publish family-friendly events."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from audit import JsonlMergeAuditSink
from dedup import Deduplicator
from models import Event
from pipeline import ScraperManager

logger = logging.getLogger(__name__)

OUTPUT_DIR = Path(__file__).parent / "docs"
EVENTS_FILE = "events.json"
MERGES_FILE = "merges.jsonl"


def _sort_key(event) -> tuple:
    if isinstance(event, Event) and event.date:
        return (0, event.date.timestamp(), event.title.lower())
    return (1, 0.0, str(getattr(event, "title", "")).lower())


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--source", help="scrape only this source")
    parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    sink = JsonlMergeAuditSink(output_dir / MERGES_FILE)
    manager = ScraperManager(deduplicator=Deduplicator(audit_sink=sink))

    if args.source:
        result = manager.scrape_source(args.source)
    else:
        result = manager.scrape_all()

    unique_events = sorted(result.unique_events, key=_sort_key)
    output = {
        "last_updated": datetime.now(timezone.utc).isoformat(),
        "count": len(unique_events),
        "stats": manager.stats().to_dict(),
        "events": [e.to_dict() if isinstance(e, Event) else e for e in unique_events],
    }

    events_file = output_dir / EVENTS_FILE
    events_file.write_text(json.dumps(output, ensure_ascii=False, indent=2, default=str))
    logger.info(f"Written {len(unique_events)} events to {events_file}")


if __name__ == "__main__":
    main()
