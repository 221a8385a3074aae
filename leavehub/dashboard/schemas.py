"""Dashboard / report response schemas.

Per-employee engine results (``PaidUnpaidResult``, ``MonthlyBreakdown``,
``EntitlementSnapshot``) are embedded as-is.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from leavehub.common.constants import LeaveType, ProbationStatus
from leavehub.engine.types import (
    DayTotals,
    EntitlementSnapshot,
    MonthlyBreakdown,
    PaidUnpaidResult,
)
from leavehub.leave.schemas import EmployeeBrief


# ═════════════════════════════════════════════════════════════════════
# Paid / unpaid
# ═════════════════════════════════════════════════════════════════════


class EmployeePaidUnpaid(BaseModel):
    employee: EmployeeBrief
    totals: DayTotals = Field(default_factory=DayTotals)
    by_leave_type: dict[LeaveType, DayTotals] = Field(default_factory=dict)
    requests: list[PaidUnpaidResult] = Field(default_factory=list)
    error: Optional[str] = None


class PaidUnpaidReport(BaseModel):
    year: int
    employees: list[EmployeePaidUnpaid]
    totals: DayTotals


class EmployeeMonthly(BaseModel):
    employee: EmployeeBrief
    breakdown: Optional[MonthlyBreakdown] = None
    error: Optional[str] = None


class MonthlyReport(BaseModel):
    year: int
    employees: list[EmployeeMonthly]


# ═════════════════════════════════════════════════════════════════════
# Balances / accruals
# ═════════════════════════════════════════════════════════════════════


class TeamMemberBalance(BaseModel):
    employee: EmployeeBrief
    snapshot: Optional[EntitlementSnapshot] = None
    error: Optional[str] = None


class AccrualError(BaseModel):
    employee_id: uuid.UUID
    error: str


class AccrualRunResult(BaseModel):
    as_of: date
    processed: int = 0
    skipped: int = 0
    errors: list[AccrualError] = Field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════
# Summary
# ═════════════════════════════════════════════════════════════════════


class StatusTotals(BaseModel):
    count: int = 0
    days: Decimal = Decimal("0")


class LeaveSummary(BaseModel):
    scope: str
    pending: StatusTotals = Field(default_factory=StatusTotals)
    approved: StatusTotals = Field(default_factory=StatusTotals)
    rejected: StatusTotals = Field(default_factory=StatusTotals)
    employees_in_probation: Optional[int] = None


class ProbationInfo(BaseModel):
    status: ProbationStatus
    end_date: Optional[date] = None
    in_probation_today: bool = False


class EmployeeDashboard(BaseModel):
    entitlement: EntitlementSnapshot
    summary: LeaveSummary
    probation: ProbationInfo
