"""Calendar-interval helpers shared by the yearly ledger and monthly breakdown.

Every range here is a closed interval of calendar days ``[start, end]``.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator, Optional, Union

from leavehub.common.constants import TWO_PLACES

DateLike = Union[date, datetime]

HALF_DAY = Decimal("0.5")


def q2(value: Union[Decimal, int, float, str]) -> Decimal:
    """Round half-up to two decimal places."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def as_date(value: DateLike) -> date:
    """Truncate a datetime to its calendar date; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def inclusive_days(start: date, end: date) -> int:
    """Number of calendar days in ``[start, end]``; 0 when end precedes start."""
    return max(0, (end - start).days + 1)


def clip(
    start: date,
    end: date,
    window_start: date,
    window_end: date,
) -> Optional[tuple[date, date]]:
    """Intersection of two closed ranges, or ``None`` when disjoint."""
    lo = max(start, window_start)
    hi = min(end, window_end)
    if lo > hi:
        return None
    return lo, hi


def year_window(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def month_window(year: int, month: int) -> tuple[date, date]:
    first = date(year, month, 1)
    if month == 12:
        return first, date(year, 12, 31)
    return first, date(year, month + 1, 1) - timedelta(days=1)


def apportion_to_window(
    start: date,
    end: date,
    total_days: Decimal,
    window_start: date,
    window_end: date,
) -> Decimal:
    """Share of *total_days* that falls inside the window.

    Uses the calendar-day ratio ``days inside / days spanned``. A range fully
    inside the window keeps its exact total.
    """
    total_days = Decimal(total_days)
    overlap = clip(start, end, window_start, window_end)
    if overlap is None:
        return Decimal("0")
    if overlap == (start, end):
        return q2(total_days)
    spanned = inclusive_days(start, end)
    if spanned == 0:
        return Decimal("0")
    inside = inclusive_days(*overlap)
    return q2(Decimal(inside) / Decimal(spanned) * total_days)


def distribute_days(
    start: date,
    end: date,
    total_days: Decimal,
    *,
    is_half_day: bool = False,
    short_leave_hours: Optional[Decimal] = None,
    hours_per_day: int = 8,
) -> "OrderedDict[date, Decimal]":
    """Per-date weights for a leave request.

    Half-day and short-leave requests put all of their time on the start
    date; full-day requests are spread evenly across every date in range.
    Weights are left unrounded so that they sum exactly to the total.
    """
    weights: OrderedDict[date, Decimal] = OrderedDict(
        (d, Decimal("0")) for d in iter_dates(start, end)
    )
    if not weights:
        return weights

    if is_half_day:
        weights[start] = HALF_DAY
    elif short_leave_hours:
        weights[start] = Decimal(short_leave_hours) / Decimal(hours_per_day)
    else:
        share = Decimal(total_days) / Decimal(len(weights))
        for d in weights:
            weights[d] = share
    return weights


def group_by_month(
    weights: "OrderedDict[date, Decimal]",
) -> "OrderedDict[tuple[int, int], Decimal]":
    """Sum per-date weights into ``(year, month)`` buckets, chronologically."""
    months: OrderedDict[tuple[int, int], Decimal] = OrderedDict()
    for d in sorted(weights):
        key = (d.year, d.month)
        months[key] = months.get(key, Decimal("0")) + weights[d]
    return months
