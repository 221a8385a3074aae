"""Immutable value types consumed and produced by the leave engine.

All are pydantic models with ``from_attributes=True`` so they can be built
straight from ORM rows (``LeaveRecord.model_validate(leave_request)``).
Day quantities are ``Decimal`` rounded half-up to two places.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leavehub.common.constants import (
    EmployeeType,
    LeaveStatus,
    LeaveType,
    ProbationStatus,
)

_FROZEN = ConfigDict(from_attributes=True, frozen=True)


# ═════════════════════════════════════════════════════════════════════
# Inputs
# ═════════════════════════════════════════════════════════════════════


class EmployeeProfile(BaseModel):
    """Tenure, classification and probation window of one employee."""

    model_config = _FROZEN

    id: uuid.UUID
    join_date: date
    employee_type: Optional[EmployeeType] = None
    probation_status: ProbationStatus = ProbationStatus.none
    probation_start_date: Optional[date] = None
    probation_end_date: Optional[date] = None

    @field_validator("probation_status", mode="before")
    @classmethod
    def _null_probation(cls, v):
        return ProbationStatus.none if v is None else v


class PolicyRecord(BaseModel):
    """Annual allotment for a leave type, optionally scoped to an employee type."""

    model_config = _FROZEN

    leave_type: LeaveType
    employee_type: Optional[EmployeeType] = None
    total_days_per_year: Decimal
    is_paid: bool = True
    requires_approval: bool = True
    allow_half_day: bool = True
    is_active: bool = True


class LeaveRecord(BaseModel):
    """A historical or candidate leave request."""

    model_config = _FROZEN

    id: Optional[uuid.UUID] = None
    employee_id: uuid.UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: Decimal
    status: LeaveStatus = LeaveStatus.pending
    is_half_day: bool = False
    short_leave_hours: Optional[Decimal] = None


# ═════════════════════════════════════════════════════════════════════
# Outputs
# ═════════════════════════════════════════════════════════════════════


class EntitlementLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    leave_type: LeaveType
    total: Decimal
    used: Decimal
    pending: Decimal
    remaining: Decimal
    utilization_percent: Decimal
    policy_found: bool = True


class EntitlementTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: Decimal = Decimal("0")
    used: Decimal = Decimal("0")
    pending: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")
    utilization_percent: Decimal = Decimal("0")


class EntitlementSnapshot(BaseModel):
    """Computed (never stored) balance view for one employee and window."""

    model_config = ConfigDict(frozen=True)

    employee_id: uuid.UUID
    reference_date: date
    window_start: date
    window_end: date
    lines: dict[LeaveType, EntitlementLine]
    missing_policies: list[LeaveType] = Field(default_factory=list)
    totals: EntitlementTotals = Field(default_factory=EntitlementTotals)


class PaidUnpaidResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    leave_request_id: Optional[uuid.UUID]
    leave_type: LeaveType
    days_counted: Decimal
    paid_days: Decimal
    unpaid_days: Decimal
    is_paid: bool
    in_probation: bool = False


class MonthStats(BaseModel):
    month: int
    month_name: str
    paid_days: Decimal = Decimal("0")
    unpaid_days: Decimal = Decimal("0")
    total_days: Decimal = Decimal("0")


class DayTotals(BaseModel):
    paid_days: Decimal = Decimal("0")
    unpaid_days: Decimal = Decimal("0")
    total_days: Decimal = Decimal("0")


class MonthlyBreakdown(BaseModel):
    employee_id: uuid.UUID
    year: int
    months: dict[int, MonthStats]
    yearly_total: DayTotals
