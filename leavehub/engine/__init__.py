"""Leave balance, accrual and paid/unpaid engine — pure functions, no I/O."""

from leavehub.engine.accrual import accrued_entitlement, days_served
from leavehub.engine.apportion import (
    apportion_requests,
    balance_at,
    monthly_breakdown,
    split_paid_unpaid,
)
from leavehub.engine.calendar import (
    apportion_to_window,
    distribute_days,
    group_by_month,
    inclusive_days,
    year_window,
)
from leavehub.engine.ledger import build_snapshot
from leavehub.engine.policy import applicable_policies, resolve_policy
from leavehub.engine.probation import in_probation_on, overlaps_probation
from leavehub.engine.types import (
    EmployeeProfile,
    EntitlementLine,
    EntitlementSnapshot,
    LeaveRecord,
    MonthlyBreakdown,
    MonthStats,
    PaidUnpaidResult,
    PolicyRecord,
)

__all__ = [
    # Accrual
    "accrued_entitlement",
    "days_served",
    # Calendar
    "apportion_to_window",
    "distribute_days",
    "group_by_month",
    "inclusive_days",
    "year_window",
    # Policy / probation
    "applicable_policies",
    "resolve_policy",
    "in_probation_on",
    "overlaps_probation",
    # Ledger / apportioning
    "build_snapshot",
    "apportion_requests",
    "balance_at",
    "monthly_breakdown",
    "split_paid_unpaid",
    # Types
    "EmployeeProfile",
    "EntitlementLine",
    "EntitlementSnapshot",
    "LeaveRecord",
    "MonthlyBreakdown",
    "MonthStats",
    "PaidUnpaidResult",
    "PolicyRecord",
]
