"""Pull a day/month fragment such as ``09/01`` out of free text.

Bug descriptions carry the report date as a bare ``DD/MM`` token with no
year. The year is inferred from a reference date: the current year, except
that a December entry read during January-June belongs to the previous year.
The opposite case (a January entry read late in the year) is left alone.

This is a freshness heuristic for a live tracker. It is not suitable for data
older than about a year, or for data spanning arbitrary year boundaries.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta

_DAY_MONTH_RE = re.compile(r"(\d{1,2})/(\d{1,2})", re.ASCII)


def infer_year(month: int, today: date) -> int:
    if today.month <= 6 and month == 12:
        return today.year - 1
    return today.year


def _local_midnight(year: int, month: int, day: int) -> datetime:
    # Out-of-range parts roll over instead of raising: 31/04 -> 1 May,
    # 0/03 -> last day of February, month 13 -> January next year.
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return datetime(year, month, 1) + timedelta(days=day - 1)


def extract_date(text: object, today: date | None = None) -> int | None:
    """Return the first ``D/M`` date in *text* as epoch milliseconds.

    *today* is the reference date used for the year heuristic; it defaults to
    the local current date. Returns ``None`` when *text* is empty or has no
    ``D/M`` token.
    """
    if text is None:
        return None
    match = _DAY_MONTH_RE.search(str(text))
    if match is None:
        return None

    day = int(match.group(1))
    month = int(match.group(2))
    if today is None:
        today = date.today()
    moment = _local_midnight(infer_year(month, today), month, day)
    return int(moment.timestamp() * 1000)
