"""Canonical fiscal-quarter keys and per-period deduplication.

A companyfacts unit array routinely reports the same period several times:
the 10-Q figure, the same number restated in the next 10-K, amendments.
Each observation is mapped to a calendar-quarter key ("2024-Q3") from its
period-end date, and one winner is kept per key.

Winner rule, applied in encounter order:
  1. a point with a `filed` date beats one without;
  2. between two dated points the strictly later `filed` wins;
  3. otherwise the point seen first is kept.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date
from typing import Iterable

from bottomtick.models import ProcessedDataPoint, RawDataPoint

log = logging.getLogger(__name__)

_PERIOD_RE = re.compile(r"^(\d{4})-Q([1-4])$")


def parse_date(value: str | None) -> date | None:
    """Parse the leading YYYY-MM-DD of an ISO date/datetime string."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def period_key(end: str | date | None) -> str | None:
    """Map a period-end date to "{year}-Q{quarter}", quarter = ceil(month / 3)."""
    d = end if isinstance(end, date) else parse_date(end)
    if d is None:
        return None
    return f"{d.year}-Q{math.ceil(d.month / 3)}"


def parse_period(key: str) -> tuple[int, int]:
    """Inverse of period_key: "2024-Q3" → (2024, 3).  Raises ValueError otherwise."""
    m = _PERIOD_RE.match(key)
    if not m:
        raise ValueError(f"Not a canonical period: {key!r}")
    return int(m.group(1)), int(m.group(2))


def period_ordinal(key: str) -> int:
    """Chronological rank of a period key (year * 4 + quarter)."""
    year, quarter = parse_period(key)
    return year * 4 + quarter


def sort_periods(periods: Iterable[str], descending: bool = True) -> list[str]:
    return sorted(set(periods), key=period_ordinal, reverse=descending)


def _beats(challenger: ProcessedDataPoint, incumbent: ProcessedDataPoint) -> bool:
    if challenger.filed is None:
        return False
    if incumbent.filed is None:
        return True
    c_filed = parse_date(challenger.filed)
    i_filed = parse_date(incumbent.filed)
    if c_filed is None:
        return False
    if i_filed is None:
        return True
    return c_filed > i_filed


def _to_processed(point: RawDataPoint) -> ProcessedDataPoint | None:
    if not point.usable:
        return None
    end = parse_date(point.end)
    if end is None:
        return None
    quarter = math.ceil(end.month / 3)
    return ProcessedDataPoint(
        value=point.val,
        period=f"{end.year}-Q{quarter}",
        date=end.isoformat(),
        quarter=f"Q{quarter}",
        year=str(end.year),
        filed=point.filed if parse_date(point.filed) else None,
    )


def normalize(points: Iterable[RawDataPoint]) -> list[ProcessedDataPoint]:
    """Filter, key and deduplicate raw observations.

    Returns at most one point per canonical period, most recent first.
    Deterministic: the same input always yields the same output.
    """
    winners: dict[str, ProcessedDataPoint] = {}
    skipped = 0
    for raw in points:
        point = _to_processed(raw)
        if point is None:
            skipped += 1
            continue
        incumbent = winners.get(point.period)
        if incumbent is None or _beats(point, incumbent):
            winners[point.period] = point

    if skipped:
        log.debug("Skipped %d unusable data points", skipped)

    return sorted(
        winners.values(),
        key=lambda p: (p.date, period_ordinal(p.period)),
        reverse=True,
    )
