"""Seed helpers shared by the service and API test modules."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leavehub.auth.dependencies import create_access_token
from leavehub.common.constants import (
    EmployeeType,
    LeaveStatus,
    LeaveType,
    ProbationStatus,
    UserRole,
)
from leavehub.employees.models import Employee
from leavehub.engine.calendar import inclusive_days
from leavehub.leave.models import LeavePolicy, LeaveRequest


def _make_employee(
    *,
    name: str = "Test Employee",
    email: Optional[str] = None,
    role: UserRole = UserRole.employee,
    department: str = "Engineering",
    manager_id: Optional[uuid.UUID] = None,
    join_date: date = date(2024, 1, 1),
    employee_type: Optional[EmployeeType] = EmployeeType.onshore,
    probation_status: ProbationStatus = ProbationStatus.none,
    probation_start_date: Optional[date] = None,
    probation_end_date: Optional[date] = None,
    is_active: bool = True,
) -> dict:
    code = uuid.uuid4().hex[:6].upper()
    return dict(
        id=uuid.uuid4(),
        employee_code=f"LH-{code}",
        name=name,
        email=email or f"user.{code.lower()}@leavehub.io",
        role=role,
        department=department,
        manager_id=manager_id,
        join_date=join_date,
        employee_type=employee_type,
        probation_status=probation_status,
        probation_start_date=probation_start_date,
        probation_end_date=probation_end_date,
        is_active=is_active,
    )


async def seed_employee(db: AsyncSession, **kwargs) -> Employee:
    emp = Employee(**_make_employee(**kwargs))
    db.add(emp)
    await db.flush()
    return emp


async def seed_policy(
    db: AsyncSession,
    *,
    leave_type: LeaveType = LeaveType.annual,
    employee_type: Optional[EmployeeType] = EmployeeType.onshore,
    total_days_per_year: Decimal = Decimal("25"),
    is_paid: bool = True,
    is_active: bool = True,
    requires_approval: bool = True,
    allow_half_day: bool = True,
) -> LeavePolicy:
    policy = LeavePolicy(
        leave_type=leave_type,
        employee_type=employee_type,
        total_days_per_year=total_days_per_year,
        is_paid=is_paid,
        requires_approval=requires_approval,
        allow_half_day=allow_half_day,
        is_active=is_active,
    )
    db.add(policy)
    await db.flush()
    return policy


async def seed_leave(
    db: AsyncSession,
    employee: Employee,
    start_date: date,
    end_date: date,
    *,
    leave_type: LeaveType = LeaveType.annual,
    status: LeaveStatus = LeaveStatus.approved,
    total_days: Optional[Decimal] = None,
    is_half_day: bool = False,
    short_leave_hours: Optional[Decimal] = None,
) -> LeaveRequest:
    """Insert a leave request directly, bypassing the overlap check."""
    if total_days is None:
        total_days = Decimal(inclusive_days(start_date, end_date))
    req = LeaveRequest(
        employee_id=employee.id,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        total_days=total_days,
        status=status,
        is_half_day=is_half_day,
        short_leave_hours=short_leave_hours,
    )
    db.add(req)
    await db.flush()
    return req


def auth_headers(employee: Employee) -> dict[str, str]:
    """Bearer headers for *employee*, signed with the test secret."""
    token = create_access_token(employee.id, employee.role)
    return {"Authorization": f"Bearer {token}"}
