"""Probation overlap classification.

Any overlap between a leave range and an open probation window makes the
whole request unpaid; there is no partial proration inside one request.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from leavehub.common.constants import OPEN_PROBATION, ProbationStatus
from leavehub.engine.calendar import DateLike, as_date
from leavehub.engine.types import EmployeeProfile


def overlaps_probation(
    leave_start: DateLike,
    leave_end: DateLike,
    status: Optional[ProbationStatus],
    probation_start: Optional[DateLike],
    probation_end: Optional[DateLike],
) -> bool:
    """Closed-interval overlap of the leave range with the probation window.

    Completed, terminated or absent probation never overlaps. Open probation
    with a missing start or end date is treated as overlapping.
    """
    if status is None or ProbationStatus(status) not in OPEN_PROBATION:
        return False
    if probation_start is None or probation_end is None:
        return True
    return (
        as_date(leave_start) <= as_date(probation_end)
        and as_date(leave_end) >= as_date(probation_start)
    )


def profile_overlaps_probation(
    profile: EmployeeProfile,
    leave_start: date,
    leave_end: date,
) -> bool:
    return overlaps_probation(
        leave_start,
        leave_end,
        profile.probation_status,
        profile.probation_start_date,
        profile.probation_end_date,
    )


def in_probation_on(profile: EmployeeProfile, day: DateLike) -> bool:
    """Whether *day* falls inside the employee's open probation window."""
    return profile_overlaps_probation(profile, as_date(day), as_date(day))
