"""Tenure-based daily accrual: entitlement = annual allotment / 365 × days served."""

from __future__ import annotations

from decimal import Decimal

from leavehub.common.constants import DAYS_PER_YEAR
from leavehub.engine.calendar import DateLike, as_date, q2


def days_served(join_date: DateLike, reference_date: DateLike) -> int:
    """Whole days between joining and *reference_date*, both truncated to midnight.

    The joining day itself counts as 0; the day after is 1. A reference date
    before joining yields 0 rather than an error.
    """
    delta = (as_date(reference_date) - as_date(join_date)).days
    return max(0, delta)


def accrued_entitlement(
    annual_days: Decimal,
    join_date: DateLike,
    reference_date: DateLike,
) -> Decimal:
    served = days_served(join_date, reference_date)
    if served == 0:
        return Decimal("0.00")
    return q2(Decimal(annual_days) * Decimal(served) / DAYS_PER_YEAR)
