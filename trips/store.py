"""
TripStore — the currently published trip records and their semantic index.

A workbook is parsed, merged, enriched and indexed off to the side; the result
is published as one immutable snapshot with a single assignment. Readers take
the snapshot once per request, so they see either the old data or the new
data, never a half-built index. A failed ingest leaves the previous snapshot
in place.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from app import config
from llm.index import TripIndex
from trips.dates import enrich_dates
from trips.merge import merge_sheets
from trips.sheets import find_sheet, read_workbook

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TripSnapshot:
    records: List[Dict[str, Any]]
    index: TripIndex
    source: str = ""
    loaded_at: dt.datetime = field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))

    @property
    def row_count(self) -> int:
        return len(self.records)


def enrich_workbook(content: bytes) -> List[Dict[str, Any]]:
    """Workbook bytes -> enriched trip records (merge + calendar fields)."""
    workbook = read_workbook(content)
    trips = find_sheet(workbook, config.TRIP_SHEET_NAME)
    checkins = find_sheet(workbook, config.CHECKIN_SHEET_NAME)
    demographics = find_sheet(workbook, config.DEMOGRAPHICS_SHEET_NAME)
    return enrich_dates(merge_sheets(trips, checkins, demographics))


class TripStore:
    """Holds at most one published TripSnapshot."""

    def __init__(self, embedder: Any) -> None:
        self.embedder = embedder
        self._snapshot: Optional[TripSnapshot] = None

    @property
    def snapshot(self) -> Optional[TripSnapshot]:
        return self._snapshot

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None

    def row_count(self) -> int:
        snap = self._snapshot
        return snap.row_count if snap else 0

    def publish(self, snapshot: TripSnapshot) -> None:
        self._snapshot = snapshot

    async def ingest(self, content: bytes, source: str = "upload") -> TripSnapshot:
        """Build a new snapshot from workbook bytes and publish it."""
        records = enrich_workbook(content)
        index = await TripIndex.build(records, self.embedder)
        snapshot = TripSnapshot(records=records, index=index, source=source)
        self.publish(snapshot)
        logger.info("Indexed %d trips from %s", snapshot.row_count, source)
        return snapshot

    async def ingest_path(self, path: str | Path) -> Optional[TripSnapshot]:
        """Ingest a workbook from disk; a missing file is skipped with a warning."""
        p = Path(path)
        if not p.is_file():
            logger.warning("Default workbook not found at %s; starting with no data", p)
            return None
        return await self.ingest(p.read_bytes(), source=str(p))
