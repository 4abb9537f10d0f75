"""
Join trips with check-ins and customer demographics.

Every trip gets the user who checked in for it (first matching check-in row)
and that user's age (first matching demographics row). Unmatched lookups are
None, never an error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from trips.sheets import RawSheetRow, standardize_keys

TRIP_ID = "Trip_ID"
USER_ID = "User_ID"
AGE = "Age"
CHECKED_IN_USER_ID = "checkedInUserID"


def _first_match(rows: List[RawSheetRow], key: str, value: Any) -> Optional[RawSheetRow]:
    if value is None:
        return None
    for row in rows:
        if row.get(key) == value:
            return row
    return None


def merge_sheets(
    trips: List[RawSheetRow] | None,
    checkins: List[RawSheetRow] | None,
    demographics: List[RawSheetRow] | None,
) -> List[Dict[str, Any]]:
    """
    Merge the three sheets into one enriched record per trip, in trip order.

    Trip columns keep their original order; checkedInUserID and Age are
    appended after them.
    """
    trip_rows = standardize_keys(trips)
    checkin_rows = standardize_keys(checkins)
    demo_rows = standardize_keys(demographics)

    merged: List[Dict[str, Any]] = []
    for trip in trip_rows:
        checkin = _first_match(checkin_rows, TRIP_ID, trip.get(TRIP_ID))
        user_id = checkin.get(USER_ID) if checkin else None
        demo = _first_match(demo_rows, USER_ID, user_id)
        merged.append(
            {
                **trip,
                CHECKED_IN_USER_ID: user_id,
                AGE: demo.get(AGE) if demo else None,
            }
        )
    return merged
