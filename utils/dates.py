#utils/dates.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

# Attempts without a timestamp sort after every dated attempt.
UNKNOWN_CREATED = datetime.max.replace(tzinfo=timezone.utc)


def parse_iso8601(ts: Optional[str]) -> Optional[datetime]:
    """
    Parse a Blackboard timestamp into an aware UTC datetime.

    Examples
    --------
    >>> parse_iso8601("2025-08-19T10:52:51.123-07:00").isoformat()
    '2025-08-19T17:52:51.123000+00:00'

    >>> parse_iso8601("2025-08-19T17:52:51.000Z").isoformat()
    '2025-08-19T17:52:51+00:00'

    Notes
    -----
    - Accepts None / blank and returns None.
    - Keeps fractional seconds; they are the only tie-breaker the API gives us.
    - Naive strings are assumed to be UTC.
    - Unparseable strings return None, so the attempt sorts last instead of
      failing the whole column.
    """
    if ts is None or not str(ts).strip():
        return None

    s = str(ts).strip()
    # normalize 'Z' -> '+00:00' for fromisoformat()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
