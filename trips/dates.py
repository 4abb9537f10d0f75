"""
Calendar features derived from the raw trip date.

The raw value is either an Excel serial day count, a date-formatted cell
(already a datetime), or free text. Anything that cannot be resolved gives
None for all seven derived fields; a warning is logged so the degradation is
visible.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

# Days between the spreadsheet epoch (1899-12-30) and 1970-01-01.
EXCEL_EPOCH_OFFSET_DAYS = 25569
MS_PER_DAY = 86_400_000
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

TRIP_DATE_FIELD = "Trip_Date_and_Time"

TEMPORAL_FIELDS = (
    "TripDateISO",
    "TripEpoch",
    "TripYear",
    "TripMonth",
    "TripDay",
    "TripDayOfWeek",
    "TripHour",
)


def excel_serial_to_datetime(serial: float) -> datetime:
    """Excel serial day count -> aware UTC datetime. 25569 is 1970-01-01T00:00Z."""
    ms = round((serial - EXCEL_EPOCH_OFFSET_DAYS) * MS_PER_DAY)
    return UNIX_EPOCH + timedelta(milliseconds=ms)


def _as_aware(value: datetime) -> datetime:
    # Naive values are UTC, the same instant the cell's serial number encodes.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_trip_date(value: Any, trip_id: Any = None) -> Optional[datetime]:
    """
    Resolve a raw trip date into an aware datetime, or None.

    Numbers are Excel serials, datetimes pass through, strings go through
    pandas' general date parsing.
    """
    if value is None:
        return None
    try:
        if isinstance(value, bool):
            parsed = None
        elif isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                parsed = None
            else:
                parsed = excel_serial_to_datetime(value)
        elif isinstance(value, datetime):
            parsed = _as_aware(value)
        elif isinstance(value, date):
            parsed = _as_aware(datetime(value.year, value.month, value.day))
        elif isinstance(value, str):
            if not value.strip():
                parsed = None
            else:
                ts = pd.to_datetime(value.strip(), errors="coerce")
                parsed = None if pd.isna(ts) else _as_aware(ts.to_pydatetime())
        else:
            parsed = None
    except (OverflowError, ValueError, TypeError, OSError):
        parsed = None

    if parsed is None:
        logger.warning(
            "Unparseable trip date %r for trip %r; temporal fields left empty",
            value,
            trip_id,
            extra={"trip_id": trip_id, "raw_value": value},
        )
    return parsed


def _iso_utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def derive_temporal_fields(
    value: Any,
    tz: tzinfo | None = None,
    trip_id: Any = None,
) -> Dict[str, Any]:
    """
    Return the seven Trip* fields for a raw date value.

    Calendar components are computed in ``tz`` (default: the process's local
    zone). Either every field is set or every field is None.
    """
    empty: Dict[str, Any] = {name: None for name in TEMPORAL_FIELDS}
    if value is None:
        return empty

    moment = parse_trip_date(value, trip_id=trip_id)
    if moment is None:
        return empty

    try:
        local = moment.astimezone(tz) if tz is not None else moment.astimezone()
        epoch_ms = round((moment - UNIX_EPOCH).total_seconds() * 1000)
        return {
            "TripDateISO": _iso_utc(moment),
            "TripEpoch": epoch_ms,
            "TripYear": local.year,
            "TripMonth": local.month,
            "TripDay": local.day,
            # Python counts Monday as 0; the stored field counts Sunday as 0.
            "TripDayOfWeek": (local.weekday() + 1) % 7,
            "TripHour": local.hour,
        }
    except (OverflowError, ValueError, OSError):
        logger.warning(
            "Trip date %r for trip %r is out of range; temporal fields left empty",
            value,
            trip_id,
            extra={"trip_id": trip_id, "raw_value": value},
        )
        return empty


def enrich_dates(
    records: List[Dict[str, Any]],
    field: str = TRIP_DATE_FIELD,
    tz: tzinfo | None = None,
) -> List[Dict[str, Any]]:
    """Build a new list of records with the temporal fields appended."""
    return [
        {**record, **derive_temporal_fields(record.get(field), tz=tz, trip_id=record.get("Trip_ID"))}
        for record in records
    ]
