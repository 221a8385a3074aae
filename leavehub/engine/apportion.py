"""Paid/unpaid apportioning of leave requests.

For each request, evaluated once at calculation time:

1. Overlap with an open probation window → every day unpaid.
2. Otherwise the balance available when the leave started is replayed:
   accrual at the start date minus all approved requests of the same type
   that started strictly earlier.
3. ``paid = min(days, balance)`` and ``unpaid = days - paid``.

Lookup failures (no policy, ambiguous policy) give a zero balance so that one
bad record never aborts a bulk computation.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from leavehub.common.constants import MONTH_NAMES, LeaveStatus, PolicyResolution
from leavehub.common.exceptions import PolicyAmbiguityError, PolicyNotFoundError
from leavehub.engine.accrual import accrued_entitlement
from leavehub.engine.calendar import (
    apportion_to_window,
    clip,
    distribute_days,
    group_by_month,
    q2,
    year_window,
)
from leavehub.engine.policy import resolve_policy
from leavehub.engine.probation import profile_overlaps_probation
from leavehub.engine.types import (
    DayTotals,
    EmployeeProfile,
    LeaveRecord,
    MonthlyBreakdown,
    MonthStats,
    PaidUnpaidResult,
    PolicyRecord,
)

ZERO = Decimal("0")


def policy_or_none(
    policies: Iterable[PolicyRecord],
    request: LeaveRecord,
    profile: EmployeeProfile,
    mode: PolicyResolution,
) -> Optional[PolicyRecord]:
    try:
        return resolve_policy(
            policies, request.leave_type, profile.employee_type, mode=mode,
        )
    except (PolicyNotFoundError, PolicyAmbiguityError):
        return None


def balance_at(
    profile: EmployeeProfile,
    policy: Optional[PolicyRecord],
    history: Iterable[LeaveRecord],
    as_of: date,
    *,
    exclude_id=None,
) -> Decimal:
    """Balance of *policy*'s leave type available on *as_of*, never negative."""
    if policy is None or not policy.is_paid:
        return Decimal("0.00")

    accrued = accrued_entitlement(policy.total_days_per_year, profile.join_date, as_of)
    consumed = ZERO
    for req in sorted(history, key=lambda r: r.start_date):
        if req.start_date >= as_of:
            break
        if (
            req.status == LeaveStatus.approved
            and req.leave_type == policy.leave_type
            and req.employee_id == profile.id
            and (exclude_id is None or req.id != exclude_id)
        ):
            consumed += req.total_days
    return q2(max(ZERO, accrued - consumed))


def split_paid_unpaid(
    request: LeaveRecord,
    profile: EmployeeProfile,
    policy: Optional[PolicyRecord],
    history: Iterable[LeaveRecord],
    *,
    window: Optional[tuple[date, date]] = None,
) -> PaidUnpaidResult:
    """Split one request into paid and unpaid days.

    With *window*, only the share of the request inside the window is split
    (a leave crossing a year boundary is apportioned by calendar days).
    """
    if window is None:
        days = q2(request.total_days)
    else:
        days = apportion_to_window(
            request.start_date, request.end_date, request.total_days, *window,
        )

    in_probation = profile_overlaps_probation(
        profile, request.start_date, request.end_date,
    )
    if days <= 0 or in_probation:
        return PaidUnpaidResult(
            leave_request_id=request.id,
            leave_type=request.leave_type,
            days_counted=days,
            paid_days=Decimal("0.00"),
            unpaid_days=days,
            is_paid=False,
            in_probation=in_probation,
        )

    balance = balance_at(
        profile, policy, history, request.start_date, exclude_id=request.id,
    )
    paid = q2(min(days, balance))
    unpaid = q2(days - paid)
    return PaidUnpaidResult(
        leave_request_id=request.id,
        leave_type=request.leave_type,
        days_counted=days,
        paid_days=paid,
        unpaid_days=unpaid,
        is_paid=paid > 0,
    )


def apportion_requests(
    profile: EmployeeProfile,
    requests: Iterable[LeaveRecord],
    policies: Iterable[PolicyRecord],
    *,
    window: tuple[date, date],
    mode: PolicyResolution = PolicyResolution.strict,
) -> list[PaidUnpaidResult]:
    """Paid/unpaid results for every approved request touching *window*."""
    policies = list(policies)
    history = [r for r in requests if r.employee_id == profile.id]
    results: list[PaidUnpaidResult] = []
    for req in sorted(history, key=lambda r: r.start_date):
        if req.status != LeaveStatus.approved:
            continue
        if clip(req.start_date, req.end_date, *window) is None:
            continue
        policy = policy_or_none(policies, req, profile, mode)
        results.append(split_paid_unpaid(req, profile, policy, history, window=window))
    return results


def monthly_breakdown(
    profile: EmployeeProfile,
    requests: Iterable[LeaveRecord],
    policies: Iterable[PolicyRecord],
    year: int,
    *,
    mode: PolicyResolution = PolicyResolution.strict,
    hours_per_day: int = 8,
) -> MonthlyBreakdown:
    """Distribute approved leave over the months of *year*.

    Each request's days are spread per date, grouped by month, and split with
    a running balance that starts at the balance on the request's start date
    and is carried forward month by month.
    """
    policies = list(policies)
    history = [r for r in requests if r.employee_id == profile.id]
    window = year_window(year)
    months = {
        m: MonthStats(month=m, month_name=MONTH_NAMES[m - 1]) for m in range(1, 13)
    }

    for req in sorted(history, key=lambda r: r.start_date):
        if req.status != LeaveStatus.approved:
            continue
        if clip(req.start_date, req.end_date, *window) is None:
            continue

        if profile_overlaps_probation(profile, req.start_date, req.end_date):
            running = ZERO
        else:
            policy = policy_or_none(policies, req, profile, mode)
            running = balance_at(
                profile, policy, history, req.start_date, exclude_id=req.id,
            )

        weights = distribute_days(
            req.start_date,
            req.end_date,
            req.total_days,
            is_half_day=req.is_half_day,
            short_leave_hours=req.short_leave_hours,
            hours_per_day=hours_per_day,
        )
        for (y, m), days in group_by_month(weights).items():
            paid = min(days, max(ZERO, running))
            running -= paid
            if y != year:
                continue
            stats = months[m]
            stats.paid_days = q2(stats.paid_days + paid)
            stats.unpaid_days = q2(stats.unpaid_days + (days - paid))
            stats.total_days = q2(stats.total_days + days)

    yearly = DayTotals()
    for stats in months.values():
        yearly.paid_days += stats.paid_days
        yearly.unpaid_days += stats.unpaid_days
        yearly.total_days += stats.total_days

    return MonthlyBreakdown(
        employee_id=profile.id,
        year=year,
        months=months,
        yearly_total=DayTotals(
            paid_days=q2(yearly.paid_days),
            unpaid_days=q2(yearly.unpaid_days),
            total_days=q2(yearly.total_days),
        ),
    )
