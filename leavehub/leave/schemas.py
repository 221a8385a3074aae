"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Request  → request bodies (write)
  - *Out                → response bodies (read)
  - *Brief              → compact embedded representations

Entitlement snapshots and paid/unpaid results are returned as the engine's
own value types (``leavehub.engine.types``).
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from leavehub.common.constants import (
    EmployeeType,
    HalfDayPeriod,
    LeaveStatus,
    LeaveType,
)


# ═════════════════════════════════════════════════════════════════════
# Embedded / shared
# ═════════════════════════════════════════════════════════════════════


class EmployeeBrief(BaseModel):
    """Minimal employee info embedded in leave responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_code: Optional[str] = None
    name: str
    department: Optional[str] = None
    employee_type: Optional[EmployeeType] = None


# ═════════════════════════════════════════════════════════════════════
# Leave Policy
# ═════════════════════════════════════════════════════════════════════


class LeavePolicyCreate(BaseModel):
    leave_type: LeaveType
    employee_type: Optional[EmployeeType] = Field(
        None, description="Omit for a policy that applies to every employee type",
    )
    total_days_per_year: Decimal = Field(..., ge=0, le=365, decimal_places=2)
    is_paid: bool = True
    requires_approval: bool = True
    allow_half_day: bool = True
    description: Optional[str] = Field(None, max_length=1000)


class LeavePolicyUpdate(BaseModel):
    """Partial update; only fields that are set are written."""

    total_days_per_year: Optional[Decimal] = Field(None, ge=0, le=365, decimal_places=2)
    is_paid: Optional[bool] = None
    requires_approval: Optional[bool] = None
    allow_half_day: Optional[bool] = None
    description: Optional[str] = Field(None, max_length=1000)
    is_active: Optional[bool] = None


class LeavePolicyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    leave_type: LeaveType
    employee_type: Optional[EmployeeType] = None
    total_days_per_year: Decimal
    is_paid: bool = True
    requires_approval: bool = True
    allow_half_day: bool = True
    description: Optional[str] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Create
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for applying a leave request."""

    leave_type: LeaveType
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    reason: Optional[str] = Field(None, max_length=1000)
    is_half_day: bool = False
    half_day_period: Optional[HalfDayPeriod] = None
    short_leave_hours: Optional[Decimal] = Field(
        None, gt=0, decimal_places=2, description="Hours away for a short leave",
    )

    @model_validator(mode="after")
    def validate_shape(self) -> "LeaveRequestCreate":
        if self.is_half_day and self.short_leave_hours is not None:
            raise ValueError("A request is either a half-day or a short leave, not both.")
        if self.half_day_period is not None and not self.is_half_day:
            raise ValueError("half_day_period is only valid for half-day requests.")
        if abs((self.end_date - self.start_date).days) > 366:
            raise ValueError("Leave request cannot span more than 366 days.")
        return self


class LeaveRequestUpdate(BaseModel):
    """Partial edit of a pending request; unset fields keep their stored value."""

    leave_type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = Field(None, max_length=1000)
    is_half_day: Optional[bool] = None
    half_day_period: Optional[HalfDayPeriod] = None
    short_leave_hours: Optional[Decimal] = Field(None, gt=0, decimal_places=2)


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: Decimal
    reason: Optional[str] = None
    status: LeaveStatus
    is_half_day: bool = False
    half_day_period: Optional[HalfDayPeriod] = None
    short_leave_hours: Optional[Decimal] = None
    is_paid: bool = True
    submitted_at: Optional[datetime] = None
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    reviewer_comments: Optional[str] = None


class LeaveRequestDetailOut(LeaveRequestOut):
    """Leave request with the requesting employee embedded (list and review views)."""

    employee: Optional[EmployeeBrief] = None


# ═════════════════════════════════════════════════════════════════════
# Leave Approve / Reject
# ═════════════════════════════════════════════════════════════════════


class LeaveDecisionRequest(BaseModel):
    """Payload for approving or rejecting a leave request."""

    comments: Optional[str] = Field(None, max_length=500)


class BulkDecisionRequest(BaseModel):
    request_ids: list[uuid.UUID] = Field(..., min_length=1, max_length=100)
    action: Literal["approve", "reject"]
    comments: Optional[str] = Field(None, max_length=500)


class BulkDecisionItem(BaseModel):
    """Outcome for one request of a bulk decision."""

    request_id: uuid.UUID
    success: bool
    status: Optional[LeaveStatus] = None
    error: Optional[str] = None


# ═════════════════════════════════════════════════════════════════════
# Balance Adjustment
# ═════════════════════════════════════════════════════════════════════


class BalanceAdjustRequest(BaseModel):
    """Admin top-up of an employee's entitlement for one leave type."""

    leave_type: LeaveType
    additional_days: Decimal = Field(
        ..., decimal_places=2, description="Positive to credit, negative to debit",
    )
    reason: Optional[str] = Field(None, max_length=500)
    year: Optional[int] = Field(
        None, ge=2000, le=2100, description="Target year; defaults to current year",
    )

    @model_validator(mode="after")
    def validate_nonzero(self) -> "BalanceAdjustRequest":
        if self.additional_days == 0:
            raise ValueError("additional_days must not be zero.")
        return self


class BalanceAdjustmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: uuid.UUID
    leave_type: LeaveType
    year: int
    adjusted_days: Decimal
    updated_at: Optional[datetime] = None
