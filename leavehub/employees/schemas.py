"""Employee and probation Pydantic v2 schemas.

Naming conventions:
  - *Create / *Update / *Request → request bodies (write)
  - *Response                    → response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from leavehub.common.constants import EmployeeType, ProbationStatus, UserRole


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class EmployeeCreate(BaseModel):
    """Payload for onboarding an employee.

    ``with_probation`` defaults to on for the employee role; probation starts
    on the join date and lasts ``probation_days`` (or the configured default).
    """

    employee_code: Optional[str] = Field(None, max_length=30)
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    role: UserRole = UserRole.employee
    department: Optional[str] = Field(None, max_length=100)
    manager_id: Optional[uuid.UUID] = None
    join_date: date
    employee_type: Optional[EmployeeType] = None
    with_probation: Optional[bool] = None
    probation_days: Optional[int] = Field(None, ge=1, le=730)


class EmployeeUpdate(BaseModel):
    """Partial update of organisational fields; tenure and classification are fixed."""

    name: Optional[str] = Field(None, min_length=1, max_length=150)
    department: Optional[str] = Field(None, max_length=100)
    manager_id: Optional[uuid.UUID] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_code: Optional[str] = None
    name: str
    email: str
    role: UserRole
    department: Optional[str] = None
    manager_id: Optional[uuid.UUID] = None
    join_date: date
    employee_type: Optional[EmployeeType] = None
    probation_status: Optional[ProbationStatus] = None
    probation_start_date: Optional[date] = None
    probation_end_date: Optional[date] = None
    probation_duration: Optional[int] = None
    probation_completed_at: Optional[datetime] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Probation
# ═════════════════════════════════════════════════════════════════════


class ProbationExtendRequest(BaseModel):
    additional_days: int = Field(..., ge=1, le=365)
    reason: Optional[str] = Field(None, max_length=500)


class ProbationUpdateRequest(BaseModel):
    """Correct probation dates; the duration follows the dates unless given."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_days: Optional[int] = Field(None, ge=1, le=730)

    @model_validator(mode="after")
    def validate_any(self) -> "ProbationUpdateRequest":
        if self.start_date is None and self.end_date is None and self.duration_days is None:
            raise ValueError("Provide at least one of start_date, end_date or duration_days.")
        return self


class ProbationReasonRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class ProbationEndingSoonItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    department: Optional[str] = None
    probation_status: ProbationStatus
    probation_end_date: date
    days_remaining: int
