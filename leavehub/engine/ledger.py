"""Balance ledger: entitled / used / pending / remaining per leave type."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from leavehub.common.constants import LeaveStatus, LeaveType, PolicyResolution
from leavehub.engine.accrual import accrued_entitlement
from leavehub.engine.calendar import apportion_to_window, q2
from leavehub.engine.policy import applicable_policies
from leavehub.engine.types import (
    EmployeeProfile,
    EntitlementLine,
    EntitlementSnapshot,
    EntitlementTotals,
    LeaveRecord,
    PolicyRecord,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def utilization(used: Decimal, total: Decimal) -> Decimal:
    if total <= 0:
        return Decimal("0.00")
    return q2(used / total * HUNDRED)


def sum_by_type(
    requests: Iterable[LeaveRecord],
    status: LeaveStatus,
    window_start: date,
    window_end: date,
) -> dict[LeaveType, Decimal]:
    """Window-apportioned day totals of *status* requests, per leave type."""
    totals: dict[LeaveType, Decimal] = defaultdict(lambda: ZERO)
    for req in requests:
        if req.status != status:
            continue
        days = apportion_to_window(
            req.start_date, req.end_date, req.total_days, window_start, window_end,
        )
        if days > 0:
            totals[req.leave_type] += days
    return dict(totals)


def build_snapshot(
    profile: EmployeeProfile,
    policies: Iterable[PolicyRecord],
    requests: Iterable[LeaveRecord],
    *,
    reference_date: date,
    window_start: date,
    window_end: date,
    adjustments: Optional[Mapping[LeaveType, Decimal]] = None,
    mode: PolicyResolution = PolicyResolution.strict,
) -> EntitlementSnapshot:
    """Compute the entitlement snapshot for one employee.

    Entitlement accrues daily up to *reference_date*; manual adjustments are
    added on top. Approved and pending days are apportioned to the window,
    rejected requests are ignored, and remaining never drops below zero.
    Leave types that have requests but no resolvable policy are reported in
    ``missing_policies`` with zero entitlement.
    """
    adjustments = adjustments or {}
    requests = [r for r in requests if r.employee_id == profile.id]
    resolved = applicable_policies(policies, profile.employee_type, mode=mode)

    used = sum_by_type(requests, LeaveStatus.approved, window_start, window_end)
    pending = sum_by_type(requests, LeaveStatus.pending, window_start, window_end)

    lines: dict[LeaveType, EntitlementLine] = {}
    for leave_type, policy in resolved.items():
        total = q2(
            accrued_entitlement(
                policy.total_days_per_year, profile.join_date, reference_date,
            )
            + Decimal(adjustments.get(leave_type, ZERO))
        )
        lines[leave_type] = _line(
            leave_type, total, used.get(leave_type, ZERO), pending.get(leave_type, ZERO),
        )

    missing = sorted(
        (t for t in set(used) | set(pending) if t not in resolved),
        key=lambda t: t.value,
    )
    for leave_type in missing:
        lines[leave_type] = _line(
            leave_type,
            Decimal("0.00"),
            used.get(leave_type, ZERO),
            pending.get(leave_type, ZERO),
            policy_found=False,
        )

    return EntitlementSnapshot(
        employee_id=profile.id,
        reference_date=reference_date,
        window_start=window_start,
        window_end=window_end,
        lines=lines,
        missing_policies=missing,
        totals=_totals(lines.values()),
    )


def _line(
    leave_type: LeaveType,
    total: Decimal,
    used: Decimal,
    pending: Decimal,
    *,
    policy_found: bool = True,
) -> EntitlementLine:
    used = q2(used)
    pending = q2(pending)
    return EntitlementLine(
        leave_type=leave_type,
        total=total,
        used=used,
        pending=pending,
        remaining=q2(max(ZERO, total - used - pending)),
        utilization_percent=utilization(used, total),
        policy_found=policy_found,
    )


def _totals(lines: Iterable[EntitlementLine]) -> EntitlementTotals:
    total = used = pending = remaining = ZERO
    for line in lines:
        total += line.total
        used += line.used
        pending += line.pending
        remaining += line.remaining
    return EntitlementTotals(
        total=q2(total),
        used=q2(used),
        pending=q2(pending),
        remaining=q2(remaining),
        utilization_percent=utilization(used, total),
    )
